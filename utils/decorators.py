"""
Authorization guard.

AuthorizationGuard holds the two token verifiers (access / refresh) and the
ownership and role rules. The decorators pull the app's guard from
`current_app.extensions["guard"]` and expose the verified claims on `g`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import wraps

from flask import request, g, current_app

from models.enums import Role
from models.schemas.claims import AccessTokenClaims, RefreshTokenClaims
from utils.exceptions import AuthenticationError, AuthorizationError
from utils.tokens import TokenVerifier

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class Identity:
    id: int
    email: str
    display_name: str
    role: Role
    refresh_token_id: int = 0

    @classmethod
    def from_claims(cls, claims: AccessTokenClaims) -> "Identity":
        user = claims.user
        return cls(
            id=user.id,
            email=user.email,
            display_name=user.display_name,
            role=user.role,
            refresh_token_id=claims.refresh_token_id,
        )

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def bearer_token(header: str | None) -> str:
    """Extract the token from an `Authorization: Bearer <token>` header."""
    if not header or not header.startswith(BEARER_PREFIX):
        raise AuthenticationError("missing or invalid Authorization header")
    token = header[len(BEARER_PREFIX):].strip()
    if not token:
        raise AuthenticationError("empty bearer token")
    return token


class AuthorizationGuard:
    def __init__(self, access: TokenVerifier, refresh: TokenVerifier):
        self.access = access
        self.refresh = refresh

    def authenticate(self, header: str | None) -> Identity:
        """Validate an access token and return the identity it carries."""
        claims = self.access.verify(bearer_token(header))
        identity = Identity.from_claims(claims)
        if identity.role == Role.DISABLED:
            raise AuthenticationError(f"user {identity.id} is disabled")
        return identity

    def authenticate_refresh(self, header: str | None) -> tuple[RefreshTokenClaims, str]:
        """Validate a refresh token's signature/schema. Returns (claims, plaintext)."""
        token = bearer_token(header)
        return self.refresh.verify(token), token

    @staticmethod
    def authorize(identity: Identity, owner_id: int) -> None:
        """Owner or admin, otherwise AuthorizationError."""
        if identity.is_admin or identity.id == owner_id:
            return
        raise AuthorizationError(f"user {identity.id} may not access resource owned by {owner_id}")

    @staticmethod
    def authorize_role_change(identity: Identity, current_role: Role, requested_role: Role | str | None) -> Role:
        """
        Resolve the role a user update should end up with.

        An empty/omitted role keeps the current one. Only admins may change a
        role; in particular a non-admin can never grant ADMIN, not even to
        itself.
        """
        if requested_role in (None, ""):
            return Role(current_role)
        requested = Role(requested_role)
        if requested == Role(current_role):
            return requested
        if not identity.is_admin:
            raise AuthorizationError(f"user {identity.id} may not set role {requested.value}")
        return requested


def current_guard() -> AuthorizationGuard:
    return current_app.extensions["guard"]


def jwt_required():
    """Require a valid access token; exposes g.identity."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            g.identity = current_guard().authenticate(request.headers.get("Authorization"))
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def refresh_token_required():
    """Require a valid refresh token; exposes g.refresh_claims and g.refresh_token."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            claims, token = current_guard().authenticate_refresh(request.headers.get("Authorization"))
            g.refresh_claims = claims
            g.refresh_token = token
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def roles_required(required_roles: list[Role]):
    """
    Allow access if the identity has ANY of the required roles, 403 otherwise.
    """
    req = {Role(r) for r in (required_roles or [])}

    def decorator(fn):
        @wraps(fn)
        @jwt_required()
        def wrapper(*args, **kwargs):
            if g.identity.role not in req:
                raise AuthorizationError(f"user {g.identity.id} lacks role {sorted(r.value for r in req)}")
            return fn(*args, **kwargs)

        return wrapper

    return decorator
