from marshmallow import Schema, fields


class RenewTokenSchema(Schema):
    refresh_token = fields.String(required=True)


class VerifyEmailQuerySchema(Schema):
    id = fields.String(required=True)
    code = fields.String(required=True)
