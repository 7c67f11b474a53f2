from __future__ import annotations

from typing import Tuple, Optional
from datetime import date

from flask import Blueprint, request, jsonify, abort

from models import storage
from models.account import Account
from models.category import Category
from models.category_group import CategoryGroup
from models.payee import Payee
from models.transaction import Transaction
from models.schemas.transaction import TransactionCreateSchema, TransactionOutSchema
from utils.decorators import budget_owner_required, parse_uuid

bp = Blueprint("transactions", __name__)

tx_create_schema = TransactionCreateSchema()
tx_out_schema = TransactionOutSchema()
tx_list_out_schema = TransactionOutSchema(many=True)

MAX_LIMIT = 100

SORT_COLUMNS = {
    "date": Transaction.date,
    "amount": Transaction.amount,
    "created_at": Transaction.created_at,
}


def parse_pagination() -> Tuple[int, int]:
    try:
        page = int(request.args.get("page", "1"))
        limit = int(request.args.get("limit", "20"))
        if page < 1:
            page = 1
        if limit < 1:
            limit = 1
        if limit > MAX_LIMIT:
            limit = MAX_LIMIT
        return page, limit
    except ValueError:
        abort(400, description="page and limit must be integers")


def parse_sort(default: str = "-date"):
    sort_param = request.args.get("sort", default)
    fields = [s.strip() for s in sort_param.split(",") if s.strip()]
    order_by = []
    for f in fields:
        desc = f.startswith("-")
        key = f[1:] if desc else f
        col = SORT_COLUMNS.get(key)
        if col is None:
            abort(400, description=f"Unsupported sort field: {key}")
        order_by.append(col.desc() if desc else col.asc())
    return order_by if order_by else [Transaction.date.desc()]


def parse_date_param(name: str) -> Optional[date]:
    val = request.args.get(name)
    if not val:
        return None
    try:
        return date.fromisoformat(val)
    except ValueError:
        abort(400, description=f"Invalid date format for {name}. Use YYYY-MM-DD")


def budget_transactions(session, budget_id: str):
    return session.query(Transaction).join(Account, Transaction.account_id == Account.id).filter(
        Account.budget_id == budget_id
    )


@bp.get("/budgets/<budget_id>/transactions")
@budget_owner_required()
def list_transactions(budget_id: str):
    """
    List the transactions of a budget (filters: account_id, from, to)
    ---
    tags: [Transactions]
    security:
      - Bearer: []
    parameters:
      - { in: path, name: budget_id, type: string, required: true }
      - { in: query, name: account_id, type: string }
      - { in: query, name: from, type: string, description: "YYYY-MM-DD" }
      - { in: query, name: to, type: string, description: "YYYY-MM-DD" }
      - { in: query, name: page, type: integer, default: 1 }
      - { in: query, name: limit, type: integer, default: 20 }
      - { in: query, name: sort, type: string, default: "-date", description: "date, amount, created_at; prefix - for desc" }
    responses:
      200: { description: OK }
      400: { description: Bad query parameter }
    """
    session = storage.get_session()
    page, limit = parse_pagination()
    order_by = parse_sort()
    date_from = parse_date_param("from")
    date_to = parse_date_param("to")

    q = budget_transactions(session, budget_id)
    account_id = request.args.get("account_id")
    if account_id:
        q = q.filter(Transaction.account_id == parse_uuid(account_id))
    if date_from:
        q = q.filter(Transaction.date >= date_from)
    if date_to:
        q = q.filter(Transaction.date <= date_to)

    total = q.count()
    rows = q.order_by(*order_by).offset((page - 1) * limit).limit(limit).all()
    return jsonify({"data": tx_list_out_schema.dump(rows), "meta": {"page": page, "limit": limit, "total": total}})


@bp.get("/budgets/<budget_id>/transactions/<transaction_id>")
@budget_owner_required()
def get_transaction(budget_id: str, transaction_id: str):
    """
    Get a transaction
    ---
    tags: [Transactions]
    security:
      - Bearer: []
    parameters:
      - { in: path, name: budget_id, type: string, required: true }
      - { in: path, name: transaction_id, type: string, required: true }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    transaction_id = parse_uuid(transaction_id)
    tx = budget_transactions(storage.get_session(), budget_id).filter(Transaction.id == transaction_id).first()
    if not tx:
        abort(404, description="transaction not found in budget")
    return jsonify({"data": tx_out_schema.dump(tx)})


@bp.post("/budgets/<budget_id>/transactions")
@budget_owner_required()
def create_transaction(budget_id: str):
    """
    Record a transaction on an account of the budget
    ---
    tags: [Transactions]
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
            account_id: { type: string }
            payee_id: { type: string }
            category_id: { type: string }
            date: { type: string, example: "2024-01-31" }
            memo: { type: string }
            amount: { type: integer, description: "minor units, negative for outflows", example: -1250 }
            cleared: { type: boolean }
            reconciled: { type: boolean }
    responses:
      201: { description: Created }
      404: { description: Account, payee or category not in the budget }
      400: { description: Invalid input }
    """
    session = storage.get_session()
    data = tx_create_schema.load(request.get_json(silent=True) or {})

    # Every referenced row must belong to this budget
    account = session.query(Account).filter(
        Account.id == str(data["account_id"]), Account.budget_id == budget_id
    ).first()
    if not account:
        abort(404, description="account not found in budget")
    payee = session.query(Payee).filter(Payee.id == str(data["payee_id"]), Payee.budget_id == budget_id).first()
    if not payee:
        abort(404, description="payee not found in budget")
    category = session.query(Category).join(CategoryGroup).filter(
        Category.id == str(data["category_id"]), CategoryGroup.budget_id == budget_id
    ).first()
    if not category:
        abort(404, description="category not found in budget")

    tx = Transaction(
        account_id=account.id,
        payee_id=payee.id,
        category_id=category.id,
        date=data["date"],
        memo=data.get("memo"),
        amount=data["amount"],
        cleared=data["cleared"],
        reconciled=data["reconciled"],
    )
    tx.save()
    return jsonify({"data": tx_out_schema.dump(tx)}), 201
