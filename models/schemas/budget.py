from marshmallow import Schema, fields, pre_load, validate

from models.schemas.account import AccountOutSchema


class BudgetCreateSchema(Schema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=255))
    currency_code = fields.String(
        required=True,
        validate=validate.Regexp(r"^[A-Z]{3}$", error="currency_code must be an ISO 4217 code."),
    )

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and isinstance(data.get("currency_code"), str):
            data["currency_code"] = data["currency_code"].strip().upper()
        return data


class BudgetOutSchema(Schema):
    id = fields.String()
    owner_username = fields.String()
    name = fields.String()
    currency_code = fields.String()
    created_at = fields.DateTime()


class BudgetDetailOutSchema(BudgetOutSchema):
    accounts = fields.List(fields.Nested(AccountOutSchema))
