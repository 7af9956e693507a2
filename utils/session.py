"""
Session orchestrator: the login / refresh / re-authenticate flows.

Every credential failure on these paths leaves as the same
AuthenticationError; the internal reason only reaches the log.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from models.credential_store import CredentialStore
from models.enums import Role
from models.schemas.claims import RefreshTokenClaims
from models.user import User
from utils.decorators import Identity
from utils.exceptions import AuthenticationError, NotFoundError
from utils.refresh_tokens import RefreshTokenManager
from utils.security import CredentialHasher
from utils.tokens import AccessTokenIssuer

logger = logging.getLogger(__name__)


@dataclass
class SessionResult:
    token: str
    user: User
    refresh_token: Optional[str] = None


class SessionOrchestrator:
    def __init__(
        self,
        store: CredentialStore,
        hasher: CredentialHasher,
        issuer: AccessTokenIssuer,
        refresh_tokens: RefreshTokenManager,
        rotate_on_reauth: bool = True,
    ):
        self.store = store
        self.hasher = hasher
        self.issuer = issuer
        self.refresh_tokens = refresh_tokens
        self.rotate_on_reauth = rotate_on_reauth

    def register(self, email: str, display_name: str, password: str,
                 preferences: dict | None = None, role: Role = Role.USER) -> User:
        user = User(
            email=email,
            display_name=display_name,
            password_hash=self.hasher.hash(password),
            role=role,
        )
        if preferences is not None:
            user.preferences = preferences
        return self.store.add(user)

    def _load_active_user(self, user_id: int) -> User:
        try:
            user = self.store.get(user_id)
        except NotFoundError as exc:
            raise AuthenticationError(f"user {user_id} no longer exists") from exc
        if user.is_disabled:
            raise AuthenticationError(f"user {user_id} is disabled")
        return user

    def login(self, email: str, password: str, device_id: str) -> SessionResult:
        user = self.store.find_by_email(email)
        if user is None:
            self.hasher.verify_dummy(password)
            logger.info("login rejected: unknown email")
            raise AuthenticationError("invalid credentials")
        if not self.hasher.verify(user.password_hash, password):
            logger.info("login rejected: wrong password for user id=%s", user.id)
            raise AuthenticationError("invalid credentials")
        if user.is_disabled:
            logger.info("login rejected: user id=%s is disabled", user.id)
            raise AuthenticationError("invalid credentials")

        if self.hasher.needs_rehash(user.password_hash):
            user.password_hash = self.hasher.hash(password)
            user.save()

        refresh_token, row = self.refresh_tokens.generate(user.id, device_id)
        token = self.issuer.issue(user, row.id)
        logger.info("user id=%s logged in on device %s", user.id, device_id)
        return SessionResult(token=token, refresh_token=refresh_token, user=user)

    def refresh(self, identity: Identity) -> SessionResult:
        """
        Re-issue an access token for a still-valid one, without touching
        refresh token state. A token minted from a refresh token whose row
        has since been invalidated is refused.
        """
        user = self._load_active_user(identity.id)

        if identity.refresh_token_id:
            try:
                row = self.refresh_tokens.get(identity.refresh_token_id)
            except NotFoundError as exc:
                raise AuthenticationError("refresh token row missing") from exc
            if row.user_id != user.id or not row.is_active:
                logger.info("attempted access token refresh with expired session (row id=%s)", row.id)
                raise AuthenticationError("session has been invalidated")

        return SessionResult(token=self.issuer.issue(user, identity.refresh_token_id), user=user)

    def reauthenticate(self, claims: RefreshTokenClaims, plaintext: str) -> SessionResult:
        """Mint a new access token (and, by policy, a rotated refresh token) from a refresh token."""
        row = self.refresh_tokens.verify(claims, plaintext)
        user = self._load_active_user(row.user_id)

        if not self.rotate_on_reauth:
            return SessionResult(token=self.issuer.issue(user, row.id), user=user)

        # only the request that still finds `row` active may rotate it
        refresh_token, new_row = self.refresh_tokens.generate(user.id, claims.device_id, expected_row_id=row.id)
        return SessionResult(
            token=self.issuer.issue(user, new_row.id),
            refresh_token=refresh_token,
            user=user,
        )

    def create_refresh_token(self, identity: Identity, device_id: str) -> SessionResult:
        """Start (or restart) a device lineage for an already authenticated user."""
        user = self._load_active_user(identity.id)
        refresh_token, row = self.refresh_tokens.generate(user.id, device_id)
        return SessionResult(
            token=self.issuer.issue(user, row.id),
            refresh_token=refresh_token,
            user=user,
        )

    def logout(self, identity: Identity, device_id: str) -> int:
        return self.refresh_tokens.revoke(identity.id, device_id)
