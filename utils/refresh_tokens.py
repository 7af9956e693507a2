"""
Refresh token lifecycle: generate, rotate, verify, revoke.

Per (user_id, device_id) lineage a row goes absent -> active -> invalidated.
Invalidation stamps `invalidated_at` and never deletes, so the table itself
is the audit trail and the single-active-token invariant can be checked by
inspecting it.

Only an argon2 hash of the signed token is stored. The plaintext is handed
back to the caller exactly once.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from models.base_model import utcnow
from models.refresh_token import RefreshToken
from models.schemas.claims import RefreshTokenClaims
from utils.exceptions import AuthenticationError, InternalError, NotFoundError
from utils.security import CredentialHasher
from utils.tokens import RefreshTokenSigner

logger = logging.getLogger(__name__)


class RefreshTokenManager:
    def __init__(self, storage, signer: RefreshTokenSigner, hasher: CredentialHasher):
        self.storage = storage
        self.signer = signer
        self.hasher = hasher

    def _active_query(self, session, user_id: int, device_id: str):
        return session.query(RefreshToken).filter(
            RefreshToken.user_id == user_id,
            RefreshToken.device_id == device_id,
            RefreshToken.invalidated_at.is_(None),
        )

    def generate(self, user_id: int, device_id: str,
                 expected_row_id: Optional[int] = None) -> Tuple[str, RefreshToken]:
        """
        Sign a new refresh token for the lineage, persist its hash (rotating
        out the previous active row) and return (plaintext, row).

        `expected_row_id` is the row the caller just verified; see rotate().
        """
        if not device_id:
            raise ValueError("device_id is required")

        plaintext = self.signer.issue(user_id, device_id)
        row = RefreshToken(
            user_id=user_id,
            device_id=device_id,
            token_hash=self.hasher.hash(plaintext),
        )
        self.rotate(user_id, device_id, row, expected_row_id=expected_row_id)
        return plaintext, row

    def rotate(self, user_id: int, device_id: str, row: RefreshToken,
               expected_row_id: Optional[int] = None) -> RefreshToken:
        """
        Invalidate every active row of the lineage and insert `row`, as one
        unit of work. On any failure nothing is changed and InternalError is
        raised; the previously active token stays usable.

        With `expected_row_id` the invalidation is a compare-and-swap: it only
        succeeds if that exact row is still active. When another request
        rotated it first, AuthenticationError is raised and nothing is
        inserted, so one refresh token is redeemed at most once.
        """
        if row.user_id != user_id or row.device_id != device_id:
            raise ValueError("row does not belong to the lineage being rotated")

        try:
            with self.storage.transaction() as session:
                now = utcnow()
                if expected_row_id is None:
                    # FOR UPDATE serializes concurrent rotations of the same lineage
                    # where the backend supports row locks; the partial unique index
                    # catches the rest.
                    previous = self._active_query(session, user_id, device_id).with_for_update().all()
                    for old in previous:
                        old.invalidated_at = now
                        old.updated_at = now
                    invalidated = len(previous)
                else:
                    invalidated = (
                        self._active_query(session, user_id, device_id)
                        .filter(RefreshToken.id == expected_row_id)
                        .update(
                            {RefreshToken.invalidated_at: now, RefreshToken.updated_at: now},
                            synchronize_session="fetch",
                        )
                    )
                    if invalidated != 1:
                        raise AuthenticationError(f"refresh token row {expected_row_id} was already rotated")
                # the UPDATE must reach the database before the INSERT, or the
                # partial unique index sees two active rows
                session.flush()
                session.add(row)
                session.flush()
        except SQLAlchemyError as exc:
            logger.error("refresh token rotation failed for user=%s device=%s: %s", user_id, device_id, exc)
            raise InternalError("refresh token rotation failed") from exc

        logger.info(
            "rotated refresh token for user=%s device=%s (invalidated %d, new id=%s)",
            user_id, device_id, invalidated, row.id,
        )
        return row

    def verify(self, claims: RefreshTokenClaims, plaintext: str) -> RefreshToken:
        """
        Return the active row for the claims' lineage if `plaintext` matches
        its stored hash. No row, an invalidated row and a hash mismatch all
        raise the same AuthenticationError after the same amount of hashing.
        """
        session = self.storage.get_session()
        row = self._active_query(session, claims.user_id, claims.device_id).first()

        if row is None or not row.is_active:
            self.hasher.verify_dummy(plaintext)
            logger.info("refresh token rejected: no active row for user=%s device=%s",
                        claims.user_id, claims.device_id)
            raise AuthenticationError("invalid refresh token")

        if not self.hasher.verify(row.token_hash, plaintext):
            logger.info("refresh token rejected: hash mismatch for row id=%s", row.id)
            raise AuthenticationError("invalid refresh token")

        return row

    def get(self, token_id: int) -> RefreshToken:
        row = self.storage.get(RefreshToken, token_id)
        if row is None:
            raise NotFoundError(f"no refresh token found with id {token_id}")
        return row

    def revoke(self, user_id: int, device_id: str) -> int:
        """Invalidate the active token of a lineage. Returns how many rows were stamped."""
        try:
            with self.storage.transaction() as session:
                now = utcnow()
                rows = self._active_query(session, user_id, device_id).with_for_update().all()
                for row in rows:
                    row.invalidated_at = now
                    row.updated_at = now
        except SQLAlchemyError as exc:
            logger.error("refresh token revocation failed for user=%s device=%s: %s", user_id, device_id, exc)
            raise InternalError("refresh token revocation failed") from exc

        logger.info("revoked %d refresh token(s) for user=%s device=%s", len(rows), user_id, device_id)
        return len(rows)

    def active_for(self, user_id: int, device_id: str) -> List[RefreshToken]:
        session = self.storage.get_session()
        return self._active_query(session, user_id, device_id).all()
