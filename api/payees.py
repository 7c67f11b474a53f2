from __future__ import annotations

from flask import Blueprint, request, jsonify, abort

from models import storage
from models.payee import Payee
from models.transaction import Transaction
from models.schemas.payee import PayeeSchema, PayeeOutSchema
from utils.decorators import budget_owner_required, parse_uuid

bp = Blueprint("payees", __name__)

payee_schema = PayeeSchema()
out_schema = PayeeOutSchema()
out_list_schema = PayeeOutSchema(many=True)


def get_payee(budget_id: str, payee_id: str) -> Payee:
    payee_id = parse_uuid(payee_id)
    p = storage.get_session().query(Payee).filter(Payee.budget_id == budget_id, Payee.id == payee_id).first()
    if not p:
        abort(404, description="payee not found in budget")
    return p


@bp.get("/budgets/<budget_id>/payees")
@budget_owner_required()
def list_payees(budget_id: str):
    """
    List the payees of a budget
    ---
    tags: [Payees]
    security:
      - Bearer: []
    parameters:
      - { in: path, name: budget_id, type: string, required: true }
    responses:
      200: { description: OK }
    """
    rows = storage.get_session().query(Payee).filter(Payee.budget_id == budget_id).order_by(Payee.name).all()
    return jsonify({"data": out_list_schema.dump(rows)})


@bp.get("/budgets/<budget_id>/payees/<payee_id>")
@budget_owner_required()
def get_payee_view(budget_id: str, payee_id: str):
    """
    Get a payee
    ---
    tags: [Payees]
    security:
      - Bearer: []
    parameters:
      - { in: path, name: budget_id, type: string, required: true }
      - { in: path, name: payee_id, type: string, required: true }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    return jsonify({"data": out_schema.dump(get_payee(budget_id, payee_id))})


@bp.post("/budgets/<budget_id>/payees")
@budget_owner_required()
def create_payee(budget_id: str):
    """
    Create a payee
    ---
    tags: [Payees]
    security:
      - Bearer: []
    consumes: [application/json]
    parameters:
      - { in: path, name: budget_id, type: string, required: true }
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            name: { type: string, minLength: 2 }
    responses:
      201: { description: Created }
      400: { description: Invalid input }
    """
    data = payee_schema.load(request.get_json(silent=True) or {})
    p = Payee(budget_id=budget_id, name=data["name"])
    p.save()
    return jsonify({"data": out_schema.dump(p)}), 201


@bp.put("/budgets/<budget_id>/payees/<payee_id>")
@budget_owner_required()
def rename_payee(budget_id: str, payee_id: str):
    """
    Rename a payee
    ---
    tags: [Payees]
    security:
      - Bearer: []
    consumes: [application/json]
    parameters:
      - { in: path, name: budget_id, type: string, required: true }
      - { in: path, name: payee_id, type: string, required: true }
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            name: { type: string, minLength: 2 }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    p = get_payee(budget_id, payee_id)
    data = payee_schema.load(request.get_json(silent=True) or {})
    p.name = data["name"]
    p.save()
    return jsonify({"data": out_schema.dump(p)})


@bp.delete("/budgets/<budget_id>/payees/<payee_id>")
@budget_owner_required()
def delete_payee(budget_id: str, payee_id: str):
    """
    Delete a payee (refused while transactions still use it)
    ---
    tags: [Payees]
    security:
      - Bearer: []
    parameters:
      - { in: path, name: budget_id, type: string, required: true }
      - { in: path, name: payee_id, type: string, required: true }
    responses:
      200: { description: Payee deleted }
      404: { description: Not found }
      409: { description: Payee in use }
    """
    p = get_payee(budget_id, payee_id)
    session = storage.get_session()
    in_use = session.query(session.query(Transaction).filter(Transaction.payee_id == p.id).exists()).scalar()
    if in_use:
        abort(409, description="payee is used by transactions")
    p.delete()
    storage.save()
    return jsonify({"message": "payee deleted"}), 200
