#!/usr/bin/env python3
"""
Shared SQLAlchemy base and mixins for the Activity Logger API.

- Integer primary key (refresh_token_id back-references use 0 for "none")
- created_at / updated_at timestamps
- save() that goes through the global DBStorage
- SoftDeleteMixin for entities that are deactivated instead of removed

    class Log(SoftDeleteMixin, BaseModel, Base): ...
"""

from __future__ import annotations

from datetime import datetime, timezone

# Importing 'models' gives access to the global 'storage' instance (DBStorage)
# defined in models/__init__.py.
import models

from sqlalchemy import Column, Integer, DateTime
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class BaseModel:
    """
    Base mixin for all persistent models.

    Timestamps are set client side so the value stamped inside a unit of
    work is the one the caller observes after commit.
    """

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __init__(self, *args, **kwargs):
        for key, value in kwargs.items():
            if key != "__class__":
                setattr(self, key, value)

    def save(self):
        """Persist the instance using the global DBStorage and commit."""
        self.updated_at = utcnow()
        models.storage.new(self)
        models.storage.save()


class SoftDeleteMixin:
    """Adds a deleted_at timestamp; rows are stamped instead of removed."""

    deleted_at = Column(DateTime(timezone=True), nullable=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def soft_delete(self):
        """Sets deleted_at and commits."""
        self.deleted_at = utcnow()
        self.save()
