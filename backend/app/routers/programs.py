from __future__ import annotations

import logging

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import ErrorCode
from app.core.exceptions import BaseAppException, raise_app_error
from app.deps.auth import get_current_user, get_db
from app.models.program import Program
from app.models.user import User
from app.schemas.programs import (
    AttemptStartResponse,
    AttemptSubmitRequest,
    AttemptSubmitResponse,
    ProgramItem,
)
from app.services.gamification.attempts import start_attempt, submit_attempt

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/programs", tags=["programs"])


@router.get("", response_model=list[ProgramItem])
def list_programs(
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[ProgramItem]:
    programs = db.scalars(
        select(Program)
        .where(Program.is_active.is_(True))
        .order_by(Program.level_requirement, Program.title, Program.id)
    ).all()
    return [ProgramItem.model_validate(program) for program in programs]


@router.post(
    "/{program_id}/attempts",
    response_model=AttemptStartResponse,
    status_code=status.HTTP_201_CREATED,
)
def start_program_attempt(
    program_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> AttemptStartResponse:
    try:
        history = start_attempt(db, user_id=current_user.id, program_id=program_id)
        db.commit()
    except BaseAppException:
        db.rollback()
        raise
    except Exception:
        db.rollback()
        logger.exception("Failed to start attempt: user_id=%s program_id=%s", current_user.id, program_id)
        raise_app_error(ErrorCode.COMMON_UNEXPECTED_ERROR)

    return AttemptStartResponse(
        history_id=history.id,
        program_id=history.program_id,
        status=history.status,
        started_at=history.started_at,
    )


@router.post("/attempts/{history_id}/submit", response_model=AttemptSubmitResponse)
def submit_program_attempt(
    history_id: int,
    payload: AttemptSubmitRequest | None = Body(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> AttemptSubmitResponse:
    payload = payload or AttemptSubmitRequest()
    user_id = current_user.id
    try:
        outcome = submit_attempt(
            db,
            user_id=user_id,
            history_id=history_id,
            answers=payload.answers,
            text_verdicts=payload.text_verdicts,
        )
        db.commit()
    except BaseAppException:
        db.rollback()
        raise
    except Exception:
        db.rollback()
        logger.exception("Failed to submit attempt: user_id=%s history_id=%s", user_id, history_id)
        raise_app_error(ErrorCode.COMMON_UNEXPECTED_ERROR)

    completion = outcome.completion
    return AttemptSubmitResponse(
        history_id=outcome.history_id,
        score=outcome.score,
        passed=outcome.passed,
        correct_count=outcome.correct_count,
        total=outcome.total,
        incorrect_question_ids=outcome.incorrect_question_ids,
        xp_gained=completion.xp_gained,
        new_rank=completion.new_rank,
        is_rank_up=completion.is_rank_up,
        already_completed=completion.already_completed,
    )
