from __future__ import annotations

import logging

from flask import Blueprint, request, jsonify, abort

from models import storage
from models.category_group import CategoryGroup
from models.schemas.category import CategoryGroupSchema, CategoryGroupOutSchema
from utils.decorators import budget_owner_required, parse_uuid

logger = logging.getLogger(__name__)

bp = Blueprint("category_groups", __name__)

group_schema = CategoryGroupSchema()
out_schema = CategoryGroupOutSchema()
out_list_schema = CategoryGroupOutSchema(many=True)


def get_category_group(budget_id: str, category_group_id: str) -> CategoryGroup:
    """A category group of the budget, 404 otherwise"""
    category_group_id = parse_uuid(category_group_id)
    group = storage.get_session().query(CategoryGroup).filter(
        CategoryGroup.budget_id == budget_id, CategoryGroup.id == category_group_id
    ).first()
    if not group:
        abort(404, description="category group id not found")
    return group


@bp.get("/budgets/<budget_id>/category-groups")
@budget_owner_required()
def list_category_groups(budget_id: str):
    """
    List the category groups of a budget
    ---
    tags: [Categories]
    security:
      - Bearer: []
    parameters:
      - { in: path, name: budget_id, type: string, required: true }
    responses:
      200: { description: OK }
    """
    rows = storage.get_session().query(CategoryGroup).filter(
        CategoryGroup.budget_id == budget_id
    ).order_by(CategoryGroup.name).all()
    return jsonify({"data": out_list_schema.dump(rows)})


@bp.post("/budgets/<budget_id>/category-groups")
@budget_owner_required()
def create_category_group(budget_id: str):
    """
    Create a category group
    ---
    tags: [Categories]
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
            name: { type: string, minLength: 5 }
    responses:
      201: { description: Created }
      400: { description: Invalid input }
    """
    data = group_schema.load(request.get_json(silent=True) or {})
    group = CategoryGroup(budget_id=budget_id, name=data["name"])
    group.save()
    return jsonify({"data": out_schema.dump(group)}), 201


@bp.put("/budgets/<budget_id>/category-groups/<category_group_id>")
@budget_owner_required()
def rename_category_group(budget_id: str, category_group_id: str):
    """
    Rename a category group
    ---
    tags: [Categories]
    security:
      - Bearer: []
    consumes: [application/json]
    parameters:
      - { in: path, name: budget_id, type: string, required: true }
      - { in: path, name: category_group_id, type: string, required: true }
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            name: { type: string, minLength: 5 }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    group = get_category_group(budget_id, category_group_id)
    data = group_schema.load(request.get_json(silent=True) or {})
    group.name = data["name"]
    group.save()
    return jsonify({"data": out_schema.dump(group)})


@bp.delete("/budgets/<budget_id>/category-groups/<category_group_id>")
@budget_owner_required()
def delete_category_group(budget_id: str, category_group_id: str):
    """
    Delete a category group with all its categories
    ---
    tags: [Categories]
    security:
      - Bearer: []
    parameters:
      - { in: path, name: budget_id, type: string, required: true }
      - { in: path, name: category_group_id, type: string, required: true }
    responses:
      200: { description: Category group deleted }
      404: { description: Not found }
      500: { description: Deletion rolled back }
    """
    group = get_category_group(budget_id, category_group_id)
    storage.delete_category_group_tx(group.id)
    logger.info("Deleted category group %s of budget %s", group.id, budget_id)
    return jsonify({"message": "category group deleted"}), 200
