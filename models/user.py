from sqlalchemy import Column, String, JSON
from sqlalchemy.types import Enum as SAEnum
from sqlalchemy.orm import relationship

from models.base_model import Base, BaseModel
from models.enums import Role


def _default_preferences():
    return {"languages": [], "public_profile": False}


class User(BaseModel, Base):
    __tablename__ = "users"

    email = Column(String(255), nullable=False, unique=True, index=True)
    display_name = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(SAEnum(Role, name="user_role", native_enum=False), nullable=False, default=Role.USER)
    preferences = Column(JSON, nullable=False, default=_default_preferences)

    refresh_tokens = relationship("RefreshToken", back_populates="user", passive_deletes=True)
    logs = relationship("Log", back_populates="user", passive_deletes=True)

    @property
    def is_disabled(self) -> bool:
        return self.role == Role.DISABLED
