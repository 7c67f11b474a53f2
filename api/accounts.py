from __future__ import annotations

from flask import Blueprint, request, jsonify, abort
from marshmallow import ValidationError

from models import storage
from models.account import Account
from models.transaction import Transaction
from models.schemas.account import (
    AccountCreateSchema,
    AccountUpdateSchema,
    AccountOutSchema,
    normalize_account_type,
)
from utils.decorators import budget_owner_required, parse_uuid

bp = Blueprint("accounts", __name__)

create_schema = AccountCreateSchema()
update_schema = AccountUpdateSchema()
out_schema = AccountOutSchema()
out_list_schema = AccountOutSchema(many=True)


def _account_type(raw: str) -> str:
    try:
        return normalize_account_type(raw)
    except ValidationError:
        abort(400, description="invalid account type")


def _get_account(budget_id: str, account_id: str) -> Account:
    account_id = parse_uuid(account_id)
    account = storage.get_session().query(Account).filter(
        Account.budget_id == budget_id, Account.id == account_id
    ).first()
    if not account:
        abort(404, description="account not found in budget")
    return account


@bp.get("/budgets/<budget_id>/accounts")
@budget_owner_required()
def list_accounts(budget_id: str):
    """
    List the accounts of a budget
    ---
    tags: [Accounts]
    security:
      - Bearer: []
    parameters:
      - { in: path, name: budget_id, type: string, required: true }
    responses:
      200: { description: OK }
    """
    rows = storage.get_session().query(Account).filter(Account.budget_id == budget_id).order_by(Account.name).all()
    return jsonify({"data": out_list_schema.dump(rows)})


@bp.get("/budgets/<budget_id>/accounts/<account_id>")
@budget_owner_required()
def get_account(budget_id: str, account_id: str):
    """
    Get an account
    ---
    tags: [Accounts]
    security:
      - Bearer: []
    parameters:
      - { in: path, name: budget_id, type: string, required: true }
      - { in: path, name: account_id, type: string, required: true }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    return jsonify({"data": out_schema.dump(_get_account(budget_id, account_id))})


@bp.post("/budgets/<budget_id>/accounts")
@budget_owner_required()
def create_account(budget_id: str):
    """
    Create an account (savings, checking or lineofcredit)
    ---
    tags: [Accounts]
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
            name: { type: string }
            type: { type: string }
            balance: { type: integer }
    responses:
      201: { description: Created }
      400: { description: Invalid account type }
    """
    data = create_schema.load(request.get_json(silent=True) or {})
    account = Account(
        budget_id=budget_id,
        name=data["name"],
        type=_account_type(data["type"]),
        balance=data["balance"],
    )
    account.save()
    return jsonify({"data": out_schema.dump(account)}), 201


@bp.put("/budgets/<budget_id>/accounts/<account_id>")
@budget_owner_required()
def update_account(budget_id: str, account_id: str):
    """
    Update an account (partial)
    ---
    tags: [Accounts]
    security:
      - Bearer: []
    consumes: [application/json]
    parameters:
      - { in: path, name: budget_id, type: string, required: true }
      - { in: path, name: account_id, type: string, required: true }
      - in: body
        name: body
        schema:
          type: object
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    account = _get_account(budget_id, account_id)
    data = update_schema.load(request.get_json(silent=True) or {})
    if "type" in data:
        data["type"] = _account_type(data["type"])
    for key, value in data.items():
        setattr(account, key, value)
    account.save()
    return jsonify({"data": out_schema.dump(account)})


@bp.delete("/budgets/<budget_id>/accounts/<account_id>")
@budget_owner_required()
def delete_account(budget_id: str, account_id: str):
    """
    Delete an account and its transactions
    ---
    tags: [Accounts]
    security:
      - Bearer: []
    parameters:
      - { in: path, name: budget_id, type: string, required: true }
      - { in: path, name: account_id, type: string, required: true }
    responses:
      200: { description: Account deleted }
      404: { description: Not found }
    """
    account = _get_account(budget_id, account_id)
    with storage.transaction() as session:
        session.query(Transaction).filter(Transaction.account_id == account.id).delete(synchronize_session=False)
        session.delete(account)
    return jsonify({"message": "account deleted"}), 200
