from __future__ import annotations

import logging

from flask import Blueprint, request, jsonify, g, abort

from models import storage
from models.budget import Budget
from models.schemas.budget import BudgetCreateSchema, BudgetOutSchema, BudgetDetailOutSchema
from utils.decorators import jwt_required, budget_owner_required

logger = logging.getLogger(__name__)

bp = Blueprint("budgets", __name__)

create_schema = BudgetCreateSchema()
out_schema = BudgetOutSchema()
out_list_schema = BudgetOutSchema(many=True)
detail_schema = BudgetDetailOutSchema()


@bp.get("/budgets")
@jwt_required()
def list_budgets():
    """
    List the authenticated user's budgets
    ---
    tags: [Budget]
    security:
      - Bearer: []
    responses:
      200: { description: OK }
    """
    rows = storage.get_budgets(g.current_username)
    return jsonify({"data": out_list_schema.dump(rows)})


@bp.get("/budgets/<budget_id>")
@budget_owner_required()
def get_budget(budget_id: str):
    """
    Get a budget with its accounts
    ---
    tags: [Budget]
    security:
      - Bearer: []
    parameters:
      - in: path
        name: budget_id
        type: string
        required: true
    responses:
      200: { description: OK }
      404: { description: Budget not found or not owned }
    """
    return jsonify({"data": detail_schema.dump(g.budget)})


@bp.post("/budgets")
@jwt_required()
def create_budget():
    """
    Create a budget
    ---
    tags: [Budget]
    security:
      - Bearer: []
    consumes: [application/json]
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            name: { type: string }
            currency_code: { type: string, example: USD }
    responses:
      201: { description: Created }
      409: { description: Budget already exists }
      400: { description: Invalid input }
    """
    data = create_schema.load(request.get_json(silent=True) or {})
    session = storage.get_session()
    exists = session.query(Budget).filter(
        Budget.owner_username == g.current_username,
        Budget.name == data["name"],
        Budget.currency_code == data["currency_code"],
    ).first()
    if exists:
        abort(409, description=f"budget {data['name']} already exists")

    budget = Budget(owner_username=g.current_username, name=data["name"], currency_code=data["currency_code"])
    budget.save()
    return jsonify({"data": out_schema.dump(budget)}), 201


@bp.delete("/budgets/<budget_id>")
@budget_owner_required()
def delete_budget(budget_id: str):
    """
    Delete a budget and everything in it
    ---
    tags: [Budget]
    security:
      - Bearer: []
    parameters:
      - in: path
        name: budget_id
        type: string
        required: true
    responses:
      200: { description: Budget deleted }
      404: { description: Budget not found or not owned }
    """
    storage.delete_budget_tx(budget_id)
    logger.info("Deleted budget %s of %s", budget_id, g.current_username)
    return jsonify({"message": "budget deleted"}), 200
