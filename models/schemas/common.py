from datetime import date

from marshmallow import ValidationError


def validate_not_future(d: date) -> None:
    if d and d > date.today():
        raise ValidationError("Date cannot be in the future.")
