from marshmallow import Schema, fields, pre_load, validate


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


class UserCreateSchema(Schema):
    username = fields.String(required=True, validate=validate.Length(min=5, max=64))
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=10))

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data["email"] = _norm_email(data["email"])
        return data


class UserUpdateSchema(Schema):
    email = fields.Email()
    password = fields.String(load_only=True, validate=validate.Length(min=10))

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data["email"] = _norm_email(data["email"])
        return data


class UserLoginSchema(Schema):
    username = fields.String(required=True, validate=validate.Length(min=5))
    password = fields.String(required=True, validate=validate.Length(min=10))


class UserOutSchema(Schema):
    username = fields.String()
    email = fields.String()
    email_verified = fields.Boolean()
    created_at = fields.DateTime()
    last_password_change = fields.DateTime()
