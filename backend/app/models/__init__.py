
from .user import User  # noqa: F401
from .admin_user import AdminUser  # noqa: F401
from .question import Question, QuestionImportLog, QuestionOption  # noqa: F401
from .program import (  # noqa: F401
    LearningHistory,
    Program,
    ProgramQuestion,
    UserAnswer,
    Weakness,
)

__all__ = [
    "User",
    "AdminUser",
    "Question",
    "QuestionOption",
    "QuestionImportLog",
    "Program",
    "ProgramQuestion",
    "LearningHistory",
    "UserAnswer",
    "Weakness",
]
