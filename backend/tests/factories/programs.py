from __future__ import annotations

import factory

from app.models.program import LearningHistory, Program, ProgramQuestion
from app.models.question import Question, QuestionOption

from .base import SQLAlchemyFactory
from .users import UserFactory


class ProgramFactory(SQLAlchemyFactory):
    class Meta:
        model = Program

    title = factory.Sequence(lambda n: f"{n:03d}. Prompting basics")
    type = "test"
    category = "Imported"
    level_requirement = 1
    is_active = True


class QuestionFactory(SQLAlchemyFactory):
    class Meta:
        model = Question

    text = factory.Faker("sentence")
    question_type = "single_choice"
    difficulty = 1
    points = 10


class QuestionOptionFactory(SQLAlchemyFactory):
    class Meta:
        model = QuestionOption

    question = factory.SubFactory(QuestionFactory)
    text = factory.Faker("word")
    sort_order = factory.Sequence(lambda n: n + 1)
    is_correct = False

    @factory.lazy_attribute
    def question_id(self):
        return self.question.id


class ProgramQuestionFactory(SQLAlchemyFactory):
    class Meta:
        model = ProgramQuestion

    program = factory.SubFactory(ProgramFactory)
    question = factory.SubFactory(QuestionFactory)
    question_number = factory.Sequence(lambda n: n + 1)

    @factory.lazy_attribute
    def program_id(self):
        return self.program.id

    @factory.lazy_attribute
    def question_id(self):
        return self.question.id


class LearningHistoryFactory(SQLAlchemyFactory):
    class Meta:
        model = LearningHistory

    user = factory.SubFactory(UserFactory)
    program = factory.SubFactory(ProgramFactory)

    @factory.lazy_attribute
    def user_id(self):
        return self.user.id

    @factory.lazy_attribute
    def program_id(self):
        return self.program.id


def create_choice_question(
    *,
    program: Program | None = None,
    question_type: str = "single_choice",
    options: tuple[str, ...] = ("A", "B", "C"),
    correct: tuple[int, ...] = (1,),
    question_number: int | None = None,
) -> Question:
    """Create a question with positional options (1-based ``correct``)."""

    question = QuestionFactory(question_type=question_type)
    for position, text in enumerate(options, start=1):
        QuestionOptionFactory(
            question=question,
            text=text,
            sort_order=position,
            is_correct=position in correct,
        )
    if program is not None:
        kwargs = {"question_number": question_number} if question_number is not None else {}
        ProgramQuestionFactory(program=program, question=question, **kwargs)
    return question
