from marshmallow import Schema, fields, validate


class CategoryGroupSchema(Schema):
    name = fields.String(required=True, validate=validate.Length(min=5, max=255))


class CategorySchema(Schema):
    name = fields.String(required=True, validate=validate.Length(min=2, max=255))


class CategoryOutSchema(Schema):
    id = fields.String()
    category_group_id = fields.String()
    name = fields.String()


class CategoryGroupOutSchema(Schema):
    id = fields.String()
    budget_id = fields.String()
    name = fields.String()


class CategoryGroupWithCategoriesOutSchema(Schema):
    category_group_id = fields.String(attribute="id")
    name = fields.String()
    categories = fields.List(fields.Nested(CategoryOutSchema))
