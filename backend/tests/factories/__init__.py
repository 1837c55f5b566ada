"""Factory exports for tests."""

from .base import SQLAlchemyFactory, set_factory_session
from .admin import AdminUserFactory
from .programs import (
    LearningHistoryFactory,
    ProgramFactory,
    ProgramQuestionFactory,
    QuestionFactory,
    QuestionOptionFactory,
    create_choice_question,
)
from .users import UserFactory

__all__ = [
    "SQLAlchemyFactory",
    "set_factory_session",
    "AdminUserFactory",
    "LearningHistoryFactory",
    "ProgramFactory",
    "ProgramQuestionFactory",
    "QuestionFactory",
    "QuestionOptionFactory",
    "UserFactory",
    "create_choice_question",
]
