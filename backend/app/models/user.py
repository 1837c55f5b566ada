from __future__ import annotations
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, BigIntId, UTCDateTime, utcnow

if TYPE_CHECKING:  # pragma: no cover
    from app.models.program import LearningHistory


class User(Base):
    """Learner profile; ``xp`` only ever grows and ``rank`` is derived from it."""

    __tablename__ = "users"
    __table_args__ = (
        Index("idx_users_email", "email", unique=True),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(191))
    full_name: Mapped[str | None] = mapped_column(String(191), nullable=True)
    xp: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    rank: Mapped[str] = mapped_column(String(32), default="Beginner", server_default="Beginner")
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)

    histories: Mapped[list[LearningHistory]] = relationship("LearningHistory", back_populates="user")


__all__ = ["User"]
