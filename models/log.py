from sqlalchemy import Column, Integer, Date, ForeignKey, JSON, CheckConstraint, Index
from sqlalchemy.types import Enum as SAEnum
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base, SoftDeleteMixin
from models.enums import Activity, Language


class Log(SoftDeleteMixin, BaseModel, Base):
    __tablename__ = "logs"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    language = Column(SAEnum(Language, name="log_language", native_enum=False), nullable=True)
    date = Column(Date, nullable=False)
    duration = Column(Integer, nullable=False)  # minutes
    activity = Column(SAEnum(Activity, name="log_activity", native_enum=False), nullable=False)
    notes = Column(JSON, nullable=True)

    user = relationship("User", back_populates="logs")

    __table_args__ = (
        CheckConstraint("duration > 0", name="ck_logs_duration_positive"),
        Index("ix_logs_user_date", "user_id", "date"),
    )
