from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.core.config import settings
from app.core.errors import ErrorCode
from app.core.exceptions import raise_app_error
from app.models.program import HISTORY_STATUS_COMPLETED, LearningHistory, Program, ProgramQuestion, UserAnswer
from app.models.question import Question
from app.services.gamification.completion import CompletionResult, complete_activity, fetch_owned_history, lock_user
from app.services.gamification.scoring import (
    Answer,
    AttemptScore,
    GradableQuestion,
    gradable_from_csv,
    gradable_from_question,
    score_answers,
)
from app.services.gamification.weaknesses import record_weaknesses
from app.services.questions.csv_parser import parse_and_validate_questions

logger = logging.getLogger(__name__)

LECTURE_SCORE = 100


@dataclass(frozen=True)
class AttemptOutcome:
    history_id: int
    score: int
    passed: bool
    correct_count: int
    total: int
    completion: CompletionResult
    incorrect_question_ids: list[int] = field(default_factory=list)


def start_attempt(db: Session, *, user_id: int, program_id: int) -> LearningHistory:
    program = db.get(Program, program_id)
    if program is None:
        raise_app_error(ErrorCode.PROGRAMS_PROGRAM_NOT_FOUND)
    if not program.is_active:
        raise_app_error(ErrorCode.PROGRAMS_PROGRAM_INACTIVE)

    history = LearningHistory(user_id=user_id, program_id=program.id)
    db.add(history)
    db.flush()
    return history


def load_program_questions(db: Session, program_id: int) -> list[Question]:
    stmt = (
        select(Question)
        .join(ProgramQuestion, ProgramQuestion.question_id == Question.id)
        .where(ProgramQuestion.program_id == program_id)
        .options(selectinload(Question.options))
        .order_by(ProgramQuestion.question_number, ProgramQuestion.id)
    )
    return list(db.scalars(stmt))


def _selection(answer: Answer) -> list[int]:
    if isinstance(answer, int) and not isinstance(answer, bool):
        return [answer]
    if isinstance(answer, list):
        return list(answer)
    return []


def _validate_answers(questions: list[GradableQuestion], answers: Mapping[int, Answer]) -> None:
    by_key = {question.key: question for question in questions}
    unknown = sorted(key for key in answers if key not in by_key)
    if unknown:
        raise_app_error(ErrorCode.LEARNING_INVALID_ANSWERS, extra={"unknown_question_ids": unknown})

    for key, answer in answers.items():
        question = by_key[key]
        if question.question_type == "text":
            continue
        stray = [value for value in _selection(answer) if value not in question.choices]
        if stray:
            raise_app_error(
                ErrorCode.LEARNING_INVALID_ANSWERS,
                extra={"question_id": key, "invalid_option_ids": stray},
            )


def _answer_rows(
    history_id: int,
    questions: list[GradableQuestion],
    answers: Mapping[int, Answer],
    score: AttemptScore,
) -> list[UserAnswer]:
    verdicts = {result.key: result.is_correct for result in score.results}
    rows: list[UserAnswer] = []
    for question in questions:
        answer = answers.get(question.key)
        is_correct = verdicts[question.key]
        if question.question_type == "text":
            rows.append(
                UserAnswer(
                    history_id=history_id,
                    question_id=question.key,
                    text_answer=answer if isinstance(answer, str) else None,
                    is_correct=is_correct,
                )
            )
            continue

        selected = _selection(answer) or [None]
        rows.extend(
            UserAnswer(
                history_id=history_id,
                question_id=question.key,
                selected_option_id=option_id,
                is_correct=is_correct,
            )
            for option_id in selected
        )
    return rows


def _check_lecture_quiz(
    program: Program,
    answers: Mapping[int, Answer],
    text_verdicts: Mapping[int, bool] | None,
) -> None:
    if not program.quiz_csv:
        return

    parsed = parse_and_validate_questions(program.quiz_csv)
    if parsed.issues:
        logger.warning(
            "Lecture quiz has invalid rows: program_id=%s issues=%s",
            program.id,
            len(parsed.issues),
        )
    questions = [gradable_from_csv(position, record) for position, record in enumerate(parsed.data, start=1)]
    if not questions:
        return

    result = score_answers(questions, answers, passing_score=100, text_verdicts=text_verdicts)
    if not result.passed:
        raise_app_error(
            ErrorCode.LEARNING_LECTURE_QUIZ_FAILED,
            extra={"incorrect_positions": result.incorrect_keys},
        )


def submit_attempt(
    db: Session,
    *,
    user_id: int,
    history_id: int,
    answers: Mapping[int, Answer],
    text_verdicts: Mapping[int, bool] | None = None,
) -> AttemptOutcome:
    """Grade an in-progress attempt and complete it.

    Lectures are passed outright once their optional quiz is answered
    correctly. Tests and exams are scored against the program's linked
    questions; each answer is stored and wrong questions are tracked as
    weaknesses before XP is awarded.

    The attempt row and then the user row stay locked until the caller
    commits, so a concurrent submit of the same attempt sees it completed
    and writes nothing.
    """

    history = fetch_owned_history(db, history_id=history_id, user_id=user_id, lock=True)
    lock_user(db, user_id)

    if history.status == HISTORY_STATUS_COMPLETED:
        completion = complete_activity(
            db,
            user_id=user_id,
            history_id=history.id,
            score=history.score or 0,
            is_passed=history.is_passed,
        )
        return AttemptOutcome(
            history_id=history.id,
            score=history.score or 0,
            passed=history.is_passed,
            correct_count=0,
            total=0,
            completion=completion,
        )

    program = history.program

    if program.type == "lecture":
        _check_lecture_quiz(program, answers, text_verdicts)
        completion = complete_activity(
            db,
            user_id=user_id,
            history_id=history.id,
            score=LECTURE_SCORE,
            is_passed=True,
        )
        return AttemptOutcome(
            history_id=history.id,
            score=LECTURE_SCORE,
            passed=True,
            correct_count=0,
            total=0,
            completion=completion,
        )

    questions = [gradable_from_question(question) for question in load_program_questions(db, program.id)]
    _validate_answers(questions, answers)

    passing_score = program.passing_score if program.passing_score is not None else settings.default_passing_score
    result = score_answers(questions, answers, passing_score=passing_score, text_verdicts=text_verdicts)

    db.add_all(_answer_rows(history.id, questions, answers, result))
    db.flush()
    record_weaknesses(db, user_id=user_id, question_ids=result.incorrect_keys)

    completion = complete_activity(
        db,
        user_id=user_id,
        history_id=history.id,
        score=result.score,
        is_passed=result.passed,
    )
    logger.info(
        "Attempt submitted: history_id=%s program_id=%s score=%s passed=%s",
        history.id,
        program.id,
        result.score,
        result.passed,
    )
    return AttemptOutcome(
        history_id=history.id,
        score=result.score,
        passed=result.passed,
        correct_count=result.correct_count,
        total=result.total,
        completion=completion,
        incorrect_question_ids=result.incorrect_keys,
    )


__all__ = ["AttemptOutcome", "load_program_questions", "start_attempt", "submit_attempt"]
