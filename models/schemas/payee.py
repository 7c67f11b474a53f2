from marshmallow import Schema, fields, validate


class PayeeSchema(Schema):
    name = fields.String(required=True, validate=validate.Length(min=2, max=255))


class PayeeOutSchema(Schema):
    id = fields.String()
    budget_id = fields.String()
    name = fields.String()
