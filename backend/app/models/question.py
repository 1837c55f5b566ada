from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Boolean, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, BigIntId, UTCDateTime, utcnow

if TYPE_CHECKING:  # pragma: no cover
    from app.models.program import ProgramQuestion


QUESTION_TYPES = ("single_choice", "multiple_choice", "text")


class Question(Base):
    __tablename__ = "questions"
    __table_args__ = (
        Index("idx_questions_category", "category"),
        Index("idx_questions_created_by", "created_by_admin_id"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    text: Mapped[str] = mapped_column(Text)
    question_type: Mapped[str] = mapped_column(String(32))
    explanation: Mapped[str | None] = mapped_column(Text, nullable=True)
    difficulty: Mapped[int] = mapped_column(Integer, default=1, server_default="1")
    points: Mapped[int] = mapped_column(Integer, default=10, server_default="10")
    tags: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    category: Mapped[str | None] = mapped_column(String(191), nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by_admin_id: Mapped[int | None] = mapped_column(
        BigIntId,
        ForeignKey("admin_users.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, onupdate=utcnow)

    options: Mapped[list[QuestionOption]] = relationship(
        "QuestionOption",
        back_populates="question",
        cascade="all, delete-orphan",
        order_by="QuestionOption.sort_order",
    )
    program_links: Mapped[list[ProgramQuestion]] = relationship("ProgramQuestion", back_populates="question")

    @property
    def correct_option_ids(self) -> list[int]:
        return [option.id for option in self.options if option.is_correct]


class QuestionOption(Base):
    __tablename__ = "question_options"
    __table_args__ = (
        Index("idx_question_options_question", "question_id", "sort_order"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    question_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("questions.id", ondelete="CASCADE"),
    )
    text: Mapped[str] = mapped_column(Text)
    sort_order: Mapped[int] = mapped_column(Integer)
    is_correct: Mapped[bool] = mapped_column(Boolean, default=False, server_default="0")

    question: Mapped[Question] = relationship("Question", back_populates="options")


class QuestionImportLog(Base):
    __tablename__ = "question_import_logs"
    __table_args__ = (
        Index("idx_question_import_logs_admin", "admin_user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    admin_user_id: Mapped[int | None] = mapped_column(
        BigIntId,
        ForeignKey("admin_users.id", ondelete="SET NULL"),
        nullable=True,
    )
    program_id: Mapped[int | None] = mapped_column(
        BigIntId,
        ForeignKey("programs.id", ondelete="SET NULL"),
        nullable=True,
    )
    source_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    action: Mapped[str] = mapped_column(String(32))
    questions_imported: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    new_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)


__all__ = ["QUESTION_TYPES", "Question", "QuestionImportLog", "QuestionOption"]
