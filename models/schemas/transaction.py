from marshmallow import Schema, fields, validate


class TransactionCreateSchema(Schema):
    account_id = fields.UUID(required=True)
    date = fields.Date(required=True)
    payee_id = fields.UUID(required=True)
    category_id = fields.UUID(required=True)
    memo = fields.String(load_default=None, validate=validate.Length(max=1024))
    amount = fields.Integer(required=True)
    cleared = fields.Boolean(load_default=False)
    reconciled = fields.Boolean(load_default=False)


class TransactionOutSchema(Schema):
    id = fields.String()
    date = fields.Date()
    account_id = fields.String()
    account_name = fields.String(attribute="account.name")
    payee_id = fields.String()
    payee_name = fields.String(attribute="payee.name")
    category_id = fields.String(allow_none=True)
    category_name = fields.Method("get_category_name")
    memo = fields.String(allow_none=True)
    amount = fields.Integer()
    approved = fields.Boolean()
    cleared = fields.Boolean()
    reconciled = fields.Boolean()

    def get_category_name(self, obj):
        return obj.category.name if obj.category else None
