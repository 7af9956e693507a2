"""
Credential store: lookup/insert/update of user records.

Every query goes through the ORM, so user input is always bound as a
parameter.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from models.user import User
from utils.exceptions import ConflictError, NotFoundError

logger = logging.getLogger(__name__)


def normalize_email(email: str | None) -> str | None:
    return email.strip().lower() if isinstance(email, str) else email


class CredentialStore:
    def __init__(self, storage):
        self.storage = storage

    @property
    def session(self):
        return self.storage.get_session()

    def get(self, user_id: int) -> User:
        user = self.storage.get(User, user_id)
        if user is None:
            raise NotFoundError(f"no user found with id {user_id}")
        return user

    def find_by_email(self, email: str) -> Optional[User]:
        return self.session.query(User).filter(User.email == normalize_email(email)).first()

    def all(self, offset: int = 0, limit: Optional[int] = None) -> List[User]:
        query = self.session.query(User).order_by(User.id.asc()).offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def count(self) -> int:
        return self.session.query(User).count()

    def add(self, user: User) -> User:
        user.email = normalize_email(user.email)
        if self.find_by_email(user.email):
            raise ConflictError("Email already registered")
        self.storage.new(user)
        try:
            self.storage.save()
        except IntegrityError as exc:
            # lost a race against a concurrent registration
            logger.info("user insert rejected: %s", exc.orig)
            raise ConflictError("Email already registered") from exc
        logger.info("registered user id=%s", user.id)
        return user

    def update(self, user: User) -> User:
        user.email = normalize_email(user.email)
        with self.session.no_autoflush:
            clash = self.find_by_email(user.email)
        if clash is not None and clash.id != user.id:
            self.storage.rollback()
            raise ConflictError("Email already registered")
        user.save()
        return user
