"""
security helpers:
- Argon2 hashing via argon2-cffi, for passwords and for refresh tokens at rest
- verification that never raises for a plain mismatch
- a dummy verification so "no such user/row" costs the same as a mismatch
"""
from __future__ import annotations

import logging

from argon2 import PasswordHasher
from argon2.exceptions import HashingError, InvalidHashError, VerificationError

from utils.exceptions import InternalError

logger = logging.getLogger(__name__)

_DUMMY_SECRET = "dummy-secret-for-timing-equalisation"


class CredentialHasher:
    """
    One-way adaptive hash with a fixed cost factor.

    The cost parameters are chosen once at construction; every hash produced
    by an instance uses them.
    """

    def __init__(self, time_cost: int = 2, memory_cost: int = 19456, parallelism: int = 1):
        self._ph = PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
        )
        # built up front so the first unknown-user login costs one verify, like every other
        self._dummy_hash = self._ph.hash(_DUMMY_SECRET)

    def hash(self, plaintext: str) -> str:
        """Hash a plaintext secret. Failure is fatal to the calling operation."""
        if not isinstance(plaintext, (str, bytes)):
            raise InternalError(f"cannot hash a {type(plaintext).__name__}")
        try:
            return self._ph.hash(plaintext)
        except HashingError as exc:
            logger.error("hashing failed: %s", exc)
            raise InternalError("hashing failed") from exc

    def verify(self, hashed: str, plaintext: str) -> bool:
        """Verify plaintext against a stored hash. A mismatch is False, not an error."""
        try:
            return self._ph.verify(hashed, plaintext)
        except VerificationError:
            return False
        except InvalidHashError:
            logger.warning("stored hash is not a valid argon2 hash")
            return False

    def verify_dummy(self, plaintext: str) -> bool:
        """Burn one verification's worth of work. Always False."""
        self.verify(self._dummy_hash, plaintext or "")
        return False

    def needs_rehash(self, hashed: str) -> bool:
        try:
            return self._ph.check_needs_rehash(hashed)
        except InvalidHashError:
            return True

