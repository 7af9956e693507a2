from marshmallow import Schema, fields, pre_load, post_load, validate, RAISE

from models.enums import Language, Role


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


class PreferencesSchema(Schema):
    class Meta:
        unknown = RAISE

    languages = fields.List(fields.Enum(Language, by_value=True), load_default=list)
    public_profile = fields.Boolean(load_default=False)

    @post_load
    def to_json(self, data, **kwargs):
        # stored in a JSON column: keep plain values
        data["languages"] = [lang.value for lang in data["languages"]]
        return data


class UserCreateSchema(Schema):
    email = fields.Email(required=True)
    display_name = fields.String(required=True, validate=validate.Length(min=1, max=255))
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=1))
    preferences = fields.Nested(PreferencesSchema, load_default=None)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data["email"] = _norm_email(data["email"])
        return data


class UserUpdateSchema(Schema):
    """Every field optional; omitted fields keep their current value."""

    email = fields.Email()
    display_name = fields.String(validate=validate.Length(min=1, max=255))
    # empty string is accepted and treated like an omitted role
    role = fields.String(allow_none=True, validate=validate.OneOf([r.value for r in Role] + [""]))
    preferences = fields.Nested(PreferencesSchema)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data["email"] = _norm_email(data["email"])
        return data


class UserOutSchema(Schema):
    id = fields.Integer()
    email = fields.String()
    display_name = fields.String()
    role = fields.Enum(Role, by_value=True)
    preferences = fields.Dict()
    # write-only on the model; always dumped empty
    password = fields.Function(lambda obj: "")


class UserListOutSchema(Schema):
    id = fields.Integer()
    email = fields.String()
    display_name = fields.String()
    role = fields.Enum(Role, by_value=True)
