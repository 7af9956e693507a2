"""
Claim bodies carried inside signed tokens.

Access and refresh tokens use two separate schemas, each with its own
audience. A payload is only ever parsed by the schema of the token type the
caller asked for; unknown or missing fields are a validation failure.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, asdict, field

from marshmallow import Schema, fields, post_load, RAISE

from models.enums import Role

ACCESS_AUDIENCE = "session:access"
REFRESH_AUDIENCE = "session:refresh"


@dataclass(frozen=True)
class UserSnapshot:
    id: int
    email: str
    display_name: str
    role: Role
    password: str = ""


@dataclass(frozen=True)
class AccessTokenClaims:
    user: UserSnapshot
    refresh_token_id: int = 0

    def to_payload(self) -> dict:
        payload = asdict(self)
        payload["user"]["role"] = self.user.role.value
        return payload


@dataclass(frozen=True)
class RefreshTokenClaims:
    user_id: int
    device_id: str
    # unique per issuance, so two tokens minted in the same second differ
    jti: str = field(default_factory=lambda: uuid.uuid4().hex)

    def to_payload(self) -> dict:
        return asdict(self)


class ClaimsSchema(Schema):
    """Base for claim schemas: registered claims are accepted, anything else unknown is rejected."""

    audience: str = ""

    class Meta:
        unknown = RAISE

    iat = fields.Integer(load_only=True)
    exp = fields.Integer(load_only=True, required=True)
    aud = fields.String(load_only=True, required=True)


class UserSnapshotSchema(Schema):
    class Meta:
        unknown = RAISE

    id = fields.Integer(required=True, strict=True)
    email = fields.String(required=True)
    display_name = fields.String(required=True)
    role = fields.Enum(Role, by_value=True, required=True)
    password = fields.String(load_default="")

    @post_load
    def make_snapshot(self, data, **kwargs):
        # never carry a password out of a token, whatever was signed
        data["password"] = ""
        return UserSnapshot(**data)


class AccessTokenClaimsSchema(ClaimsSchema):
    audience = ACCESS_AUDIENCE

    user = fields.Nested(UserSnapshotSchema, required=True)
    refresh_token_id = fields.Integer(required=True, strict=True)

    @post_load
    def make_claims(self, data, **kwargs):
        return AccessTokenClaims(user=data["user"], refresh_token_id=data["refresh_token_id"])


class RefreshTokenClaimsSchema(ClaimsSchema):
    audience = REFRESH_AUDIENCE

    user_id = fields.Integer(required=True, strict=True)
    device_id = fields.String(required=True)
    jti = fields.String(required=True)

    @post_load
    def make_claims(self, data, **kwargs):
        return RefreshTokenClaims(user_id=data["user_id"], device_id=data["device_id"], jti=data["jti"])
