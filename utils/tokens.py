"""
Signed token issuing and verification (PyJWT, HS256).

The signing key is handed to each issuer/verifier at construction; nothing
here reads application globals. Access and refresh tokens are signed with
the same key but carry different audiences and claim schemas, and each
TokenVerifier only accepts its own.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt
from marshmallow import ValidationError

from models.enums import Role
from models.schemas.claims import (
    AccessTokenClaims,
    AccessTokenClaimsSchema,
    ClaimsSchema,
    RefreshTokenClaims,
    RefreshTokenClaimsSchema,
    UserSnapshot,
)
from utils.exceptions import AuthenticationError, InternalError

logger = logging.getLogger(__name__)

DEFAULT_ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRES = timedelta(hours=1)
REFRESH_TOKEN_EXPIRES = timedelta(days=365)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def snapshot_user(user) -> UserSnapshot:
    """Point-in-time copy of a user, password stripped."""
    return UserSnapshot(
        id=user.id,
        email=user.email,
        display_name=user.display_name,
        role=Role(user.role),
    )


class TokenSigner:
    """Signs a claim body for one audience with the static key."""

    def __init__(self, secret: str, algorithm: str = DEFAULT_ALGORITHM, expires: timedelta = ACCESS_TOKEN_EXPIRES,
                 audience: str = ""):
        if not secret:
            raise ValueError("a signing secret is required")
        self._secret = secret
        self.algorithm = algorithm
        self.expires = expires
        self.audience = audience

    def sign(self, body: Dict[str, Any]) -> str:
        now = _now()
        payload = dict(body)
        payload.update(
            {
                "iat": int(now.timestamp()),
                "exp": int((now + self.expires).timestamp()),
                "aud": self.audience,
            }
        )
        try:
            return jwt.encode(payload, self._secret, algorithm=self.algorithm)
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            logger.error("token signing failed: %s", exc)
            raise InternalError("token signing failed") from exc


class AccessTokenIssuer(TokenSigner):
    def __init__(self, secret: str, algorithm: str = DEFAULT_ALGORITHM, expires: timedelta = ACCESS_TOKEN_EXPIRES):
        super().__init__(secret, algorithm, expires, AccessTokenClaimsSchema.audience)

    def issue(self, user, refresh_token_id: int = 0) -> str:
        """Mint a short-lived access token embedding a snapshot of `user`."""
        claims = AccessTokenClaims(user=snapshot_user(user), refresh_token_id=refresh_token_id or 0)
        return self.sign(claims.to_payload())


class RefreshTokenSigner(TokenSigner):
    def __init__(self, secret: str, algorithm: str = DEFAULT_ALGORITHM, expires: timedelta = REFRESH_TOKEN_EXPIRES):
        super().__init__(secret, algorithm, expires, RefreshTokenClaimsSchema.audience)

    def issue(self, user_id: int, device_id: str) -> str:
        return self.sign(RefreshTokenClaims(user_id=user_id, device_id=device_id).to_payload())


class TokenVerifier:
    """
    Verifies signature, expiry and audience, then parses the body with
    exactly one claim schema.
    """

    def __init__(self, secret: str, claims_schema: ClaimsSchema, algorithm: str = DEFAULT_ALGORITHM):
        if not secret:
            raise ValueError("a signing secret is required")
        self._secret = secret
        self.algorithm = algorithm
        self.schema = claims_schema

    def verify(self, token: str):
        if not token:
            raise AuthenticationError("missing token")
        try:
            decoded = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                audience=self.schema.audience,
                options={"require": ["exp", "aud"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise AuthenticationError("token expired") from exc
        except jwt.InvalidAudienceError as exc:
            raise AuthenticationError("wrong token type") from exc
        except jwt.InvalidTokenError as exc:
            raise AuthenticationError(f"invalid token: {exc}") from exc

        try:
            return self.schema.load(decoded)
        except ValidationError as exc:
            raise AuthenticationError(f"malformed claims: {exc.messages}") from exc


def access_verifier(secret: str, algorithm: str = DEFAULT_ALGORITHM) -> TokenVerifier:
    return TokenVerifier(secret, AccessTokenClaimsSchema(), algorithm)


def refresh_verifier(secret: str, algorithm: str = DEFAULT_ALGORITHM) -> TokenVerifier:
    return TokenVerifier(secret, RefreshTokenClaimsSchema(), algorithm)
