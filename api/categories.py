from __future__ import annotations

from flask import Blueprint, request, jsonify, abort

from models import storage
from models.category import Category
from models.category_group import CategoryGroup
from models.transaction import Transaction
from models.schemas.category import (
    CategorySchema,
    CategoryOutSchema,
    CategoryGroupWithCategoriesOutSchema,
)
from utils.decorators import budget_owner_required, parse_uuid
from .category_groups import get_category_group

bp = Blueprint("categories", __name__)

category_schema = CategorySchema()
out_schema = CategoryOutSchema()
grouped_out_schema = CategoryGroupWithCategoriesOutSchema(many=True)


def get_category(budget_id: str, category_id: str) -> Category:
    category_id = parse_uuid(category_id)
    c = storage.get_session().query(Category).join(CategoryGroup).filter(
        CategoryGroup.budget_id == budget_id, Category.id == category_id
    ).first()
    if not c:
        abort(404, description="category not found in budget")
    return c


@bp.get("/budgets/<budget_id>/categories")
@budget_owner_required()
def list_categories(budget_id: str):
    """
    List categories grouped by category group
    ---
    tags: [Categories]
    security:
      - Bearer: []
    parameters:
      - { in: path, name: budget_id, type: string, required: true }
    responses:
      200: { description: OK }
    """
    groups = storage.get_session().query(CategoryGroup).filter(
        CategoryGroup.budget_id == budget_id
    ).order_by(CategoryGroup.name).all()
    return jsonify({"data": grouped_out_schema.dump(groups)})


@bp.post("/budgets/<budget_id>/categories/<category_group_id>")
@budget_owner_required()
def create_category(budget_id: str, category_group_id: str):
    """
    Create a category under a category group of the budget
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
            name: { type: string, minLength: 2 }
    responses:
      201: { description: Created }
      404: { description: Category group not found }
      400: { description: Invalid input }
    """
    group = get_category_group(budget_id, category_group_id)
    data = category_schema.load(request.get_json(silent=True) or {})
    c = Category(category_group_id=group.id, name=data["name"])
    c.save()
    return jsonify({"data": out_schema.dump(c)}), 201


@bp.put("/budgets/<budget_id>/categories/<category_id>")
@budget_owner_required()
def rename_category(budget_id: str, category_id: str):
    """
    Rename a category
    ---
    tags: [Categories]
    security:
      - Bearer: []
    consumes: [application/json]
    parameters:
      - { in: path, name: budget_id, type: string, required: true }
      - { in: path, name: category_id, type: string, required: true }
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
    c = get_category(budget_id, category_id)
    data = category_schema.load(request.get_json(silent=True) or {})
    c.name = data["name"]
    c.save()
    return jsonify({"data": out_schema.dump(c)})


@bp.delete("/budgets/<budget_id>/categories/<category_id>")
@budget_owner_required()
def delete_category(budget_id: str, category_id: str):
    """
    Delete a category; its transactions become uncategorized
    ---
    tags: [Categories]
    security:
      - Bearer: []
    parameters:
      - { in: path, name: budget_id, type: string, required: true }
      - { in: path, name: category_id, type: string, required: true }
    responses:
      200: { description: Category deleted }
      404: { description: Not found }
    """
    c = get_category(budget_id, category_id)
    with storage.transaction() as session:
        session.query(Transaction).filter(Transaction.category_id == c.id).update(
            {Transaction.category_id: None}, synchronize_session=False
        )
        session.delete(c)
    return jsonify({"message": "category deleted"}), 200
