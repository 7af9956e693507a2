from marshmallow import Schema, fields, validate, validates, ValidationError

from models.enums import Activity, Language
from models.schemas.common import validate_not_future


class LogCreateSchema(Schema):
    language = fields.Enum(Language, by_value=True, allow_none=True, load_default=None)
    date = fields.Date(required=True)
    duration = fields.Integer(required=True, strict=True, validate=validate.Range(min=1))
    activity = fields.Enum(Activity, by_value=True, required=True)
    notes = fields.Raw(allow_none=True, load_default=None)

    @validates("date")
    def _validate_date(self, value, **kwargs):
        validate_not_future(value)

    @validates("notes")
    def _validate_notes(self, value, **kwargs):
        if value is not None and not isinstance(value, (dict, list, str)):
            raise ValidationError("notes must be an object, a list or a string.")


class LogUpdateSchema(LogCreateSchema):
    """Same fields as create, all optional."""

    date = fields.Date()
    duration = fields.Integer(strict=True, validate=validate.Range(min=1))
    activity = fields.Enum(Activity, by_value=True)
    language = fields.Enum(Language, by_value=True, allow_none=True)
    notes = fields.Raw(allow_none=True)


class LogFilterSchema(Schema):
    language = fields.Enum(Language, by_value=True)
    date = fields.Date()
    from_ = fields.Date(data_key="from")
    until = fields.Date()
    page = fields.Integer(load_default=1, validate=validate.Range(min=1))
    user_id = fields.Integer()


class LogOutSchema(Schema):
    id = fields.Integer()
    user_id = fields.Integer()
    language = fields.Enum(Language, by_value=True, allow_none=True)
    date = fields.Date()
    duration = fields.Integer()
    activity = fields.Enum(Activity, by_value=True)
    notes = fields.Raw(allow_none=True)
    created_at = fields.DateTime()
    updated_at = fields.DateTime()
