"""
RefreshToken model: one row per refresh token ever issued for a device.

Fields:
- user_id, device_id: the device lineage the token belongs to
- token_hash: argon2 hash of the signed token (the plaintext is never stored)
- invalidated_at: stamped once when the token is superseded or revoked

At most one row per (user_id, device_id) may have invalidated_at NULL. The
partial unique index below enforces that on both SQLite and PostgreSQL.
"""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Index, text
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base


class RefreshToken(BaseModel, Base):
    __tablename__ = "refresh_tokens"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    device_id = Column(String(255), nullable=False)
    token_hash = Column(String(255), nullable=False)
    invalidated_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User", back_populates="refresh_tokens")

    __table_args__ = (
        Index("ix_refresh_tokens_lineage", "user_id", "device_id"),
        Index(
            "uq_refresh_tokens_active",
            "user_id",
            "device_id",
            unique=True,
            postgresql_where=text("invalidated_at IS NULL"),
            sqlite_where=text("invalidated_at IS NULL"),
        ),
    )

    @property
    def is_active(self) -> bool:
        return self.invalidated_at is None

    def __repr__(self):
        return f"<RefreshToken id={self.id} user={self.user_id} device={self.device_id} active={self.is_active}>"
