from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, BigIntId, UTCDateTime, utcnow

if TYPE_CHECKING:  # pragma: no cover
    from app.models.question import Question
    from app.models.user import User


PROGRAM_TYPES = ("lecture", "test", "exam")

HISTORY_STATUS_IN_PROGRESS = "in_progress"
HISTORY_STATUS_COMPLETED = "completed"


class Program(Base):
    __tablename__ = "programs"
    __table_args__ = (
        UniqueConstraint("title", "type", name="uq_programs_title_type"),
        Index("idx_programs_type_active", "type", "is_active"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(191))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(String(16))
    category: Mapped[str | None] = mapped_column(String(191), nullable=True)
    content_body: Mapped[str | None] = mapped_column(Text, nullable=True)
    quiz_csv: Mapped[str | None] = mapped_column(Text, nullable=True)
    xp_reward: Mapped[int | None] = mapped_column(Integer, nullable=True)
    level_requirement: Mapped[int] = mapped_column(Integer, default=1, server_default="1")
    passing_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    time_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default="1")
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, onupdate=utcnow)

    question_links: Mapped[list[ProgramQuestion]] = relationship(
        "ProgramQuestion",
        back_populates="program",
        cascade="all, delete-orphan",
        order_by="ProgramQuestion.question_number",
    )
    histories: Mapped[list[LearningHistory]] = relationship("LearningHistory", back_populates="program")


class ProgramQuestion(Base):
    __tablename__ = "program_questions"
    __table_args__ = (
        UniqueConstraint("program_id", "question_id", name="uq_program_questions_program_question"),
        Index("idx_program_questions_order", "program_id", "question_number"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    program_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("programs.id", ondelete="CASCADE"),
    )
    question_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("questions.id", ondelete="CASCADE"),
    )
    question_number: Mapped[int] = mapped_column(Integer)

    program: Mapped[Program] = relationship("Program", back_populates="question_links")
    question: Mapped[Question] = relationship("Question", back_populates="program_links")


class LearningHistory(Base):
    """One attempt of a user at a program; created on start, completed once."""

    __tablename__ = "learning_history"
    __table_args__ = (
        Index("idx_learning_history_user_program", "user_id", "program_id", "is_passed"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("users.id", ondelete="CASCADE"),
    )
    program_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("programs.id", ondelete="CASCADE"),
    )
    status: Mapped[str] = mapped_column(
        String(16), default=HISTORY_STATUS_IN_PROGRESS, server_default=HISTORY_STATUS_IN_PROGRESS
    )
    score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_passed: Mapped[bool] = mapped_column(Boolean, default=False, server_default="0")
    started_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    user: Mapped[User] = relationship("User", back_populates="histories")
    program: Mapped[Program] = relationship("Program", back_populates="histories")
    answers: Mapped[list[UserAnswer]] = relationship(
        "UserAnswer", back_populates="history", cascade="all, delete-orphan"
    )


class UserAnswer(Base):
    __tablename__ = "user_answers"
    __table_args__ = (
        Index("idx_user_answers_history", "history_id"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    history_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("learning_history.id", ondelete="CASCADE"),
    )
    question_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("questions.id", ondelete="CASCADE"),
    )
    selected_option_id: Mapped[int | None] = mapped_column(
        BigIntId,
        ForeignKey("question_options.id", ondelete="SET NULL"),
        nullable=True,
    )
    text_answer: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_correct: Mapped[bool] = mapped_column(Boolean, default=False, server_default="0")

    history: Mapped[LearningHistory] = relationship("LearningHistory", back_populates="answers")


class Weakness(Base):
    __tablename__ = "weaknesses"
    __table_args__ = (
        UniqueConstraint("user_id", "question_id", name="uq_weaknesses_user_question"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("users.id", ondelete="CASCADE"),
    )
    question_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("questions.id", ondelete="CASCADE"),
    )
    failure_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    last_failed_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)


__all__ = [
    "HISTORY_STATUS_COMPLETED",
    "HISTORY_STATUS_IN_PROGRESS",
    "LearningHistory",
    "PROGRAM_TYPES",
    "Program",
    "ProgramQuestion",
    "UserAnswer",
    "Weakness",
]
