"""Grade submitted answers for a test, exam or lecture quiz.

Every question carries equal weight. Choice questions are graded
against the set of correct keys (option ids for stored questions,
1-based positions for CSV quizzes); free-text questions are graded by an
external verdict supplied by the caller.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Mapping, Sequence, Union

if TYPE_CHECKING:  # pragma: no cover
    from app.models.question import Question
    from app.services.questions.csv_parser import CsvQuestionInput

Answer = Union[int, list[int], str, None]


@dataclass(frozen=True)
class GradableQuestion:
    key: int
    question_type: str
    correct: tuple[int, ...] = ()
    choices: frozenset[int] = field(default_factory=frozenset)


@dataclass(frozen=True)
class QuestionResult:
    key: int
    is_correct: bool


@dataclass(frozen=True)
class AttemptScore:
    score: int
    raw_score: float
    passed: bool
    correct_count: int
    total: int
    results: tuple[QuestionResult, ...]

    @property
    def incorrect_keys(self) -> list[int]:
        return [result.key for result in self.results if not result.is_correct]


def gradable_from_question(question: Question) -> GradableQuestion:
    options = sorted(question.options, key=lambda option: (option.sort_order, option.id))
    return GradableQuestion(
        key=question.id,
        question_type=question.question_type,
        correct=tuple(option.id for option in options if option.is_correct),
        choices=frozenset(option.id for option in options),
    )


def gradable_from_csv(position: int, record: CsvQuestionInput) -> GradableQuestion:
    return GradableQuestion(
        key=position,
        question_type=record.question_type,
        correct=tuple(record.correct_indices),
        choices=frozenset(range(1, len(record.options) + 1)),
    )


def _as_selection(answer: Answer) -> list[int]:
    if answer is None or isinstance(answer, str):
        return []
    if isinstance(answer, bool):
        return []
    if isinstance(answer, int):
        return [answer]
    return [value for value in answer if isinstance(value, int) and not isinstance(value, bool)]


def is_answer_correct(question: GradableQuestion, answer: Answer, verdict: bool | None = None) -> bool:
    if question.question_type == "single_choice":
        selection = _as_selection(answer)
        return bool(question.correct) and len(selection) == 1 and selection[0] == question.correct[0]
    if question.question_type == "multiple_choice":
        selection = _as_selection(answer)
        return bool(question.correct) and set(selection) == set(question.correct)
    return verdict is True


def score_answers(
    questions: Sequence[GradableQuestion],
    answers: Mapping[int, Answer],
    *,
    passing_score: int,
    text_verdicts: Mapping[int, bool] | None = None,
) -> AttemptScore:
    verdicts = text_verdicts or {}
    results = tuple(
        QuestionResult(
            key=question.key,
            is_correct=is_answer_correct(question, answers.get(question.key), verdicts.get(question.key)),
        )
        for question in questions
    )
    correct_count = sum(1 for result in results if result.is_correct)
    total = len(results)
    raw_score = correct_count / total * 100 if total else 0.0
    return AttemptScore(
        score=math.floor(raw_score + 0.5),
        raw_score=raw_score,
        passed=total > 0 and raw_score >= passing_score,
        correct_count=correct_count,
        total=total,
        results=results,
    )


__all__ = [
    "Answer",
    "AttemptScore",
    "GradableQuestion",
    "QuestionResult",
    "gradable_from_csv",
    "gradable_from_question",
    "is_answer_correct",
    "score_answers",
]
