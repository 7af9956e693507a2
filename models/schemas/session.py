from marshmallow import Schema, fields, pre_load, validate


class LoginSchema(Schema):
    email = fields.String(required=True, validate=validate.Length(min=1))
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=1))
    device_id = fields.String(required=True, validate=validate.Length(min=1, max=255))

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and isinstance(data.get("email"), str):
            data["email"] = data["email"].strip().lower()
        return data


class DeviceSchema(Schema):
    device_id = fields.String(required=True, validate=validate.Length(min=1, max=255))
