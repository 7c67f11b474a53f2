from marshmallow import Schema, fields, validate

from models.account import ACCOUNT_TYPES

_account_type = validate.OneOf(ACCOUNT_TYPES, error="invalid account type")


class AccountCreateSchema(Schema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=255))
    type = fields.String(required=True)
    balance = fields.Integer(load_default=0)


class AccountUpdateSchema(Schema):
    name = fields.String(validate=validate.Length(min=1, max=255))
    type = fields.String()
    closed = fields.Boolean()
    note = fields.String(allow_none=True)
    balance = fields.Integer()
    cleared_balance = fields.Integer()
    uncleared_balance = fields.Integer()
    last_reconciled_at = fields.DateTime(allow_none=True)


class AccountOutSchema(Schema):
    id = fields.String()
    budget_id = fields.String()
    name = fields.String()
    type = fields.String()
    closed = fields.Boolean()
    note = fields.String(allow_none=True)
    balance = fields.Integer()
    cleared_balance = fields.Integer()
    uncleared_balance = fields.Integer()
    last_reconciled_at = fields.DateTime(allow_none=True)


def normalize_account_type(raw: str) -> str:
    """Lower-case the type and check it against the known account kinds."""
    value = (raw or "").strip().lower()
    _account_type(value)
    return value
