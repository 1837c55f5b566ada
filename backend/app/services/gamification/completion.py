from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.core.errors import ErrorCode
from app.core.exceptions import raise_app_error
from app.models.program import HISTORY_STATUS_COMPLETED, LearningHistory, Program
from app.models.user import User
from app.services.gamification.levels import calculate_level
from app.services.gamification.xp_config import default_program_xp

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompletionResult:
    history_id: int
    xp_gained: int
    new_rank: str
    is_rank_up: bool
    already_completed: bool = False


def _normalise_completed_at(completed_at: datetime | None) -> datetime:
    if completed_at is None:
        return datetime.now(timezone.utc)
    if completed_at.tzinfo is None:
        return completed_at.replace(tzinfo=timezone.utc)
    return completed_at.astimezone(timezone.utc)


def fetch_owned_history(db: Session, *, history_id: int, user_id: int, lock: bool = False) -> LearningHistory:
    stmt = select(LearningHistory).where(LearningHistory.id == history_id)
    if lock:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    history = db.execute(stmt).scalar_one_or_none()
    if history is None:
        raise_app_error(ErrorCode.LEARNING_HISTORY_NOT_FOUND)
    if history.user_id != user_id:
        raise_app_error(ErrorCode.LEARNING_HISTORY_OWNED_BY_OTHER)
    return history


def lock_user(db: Session, user_id: int) -> User:
    user = db.execute(
        select(User).where(User.id == user_id).with_for_update().execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if user is None:
        raise_app_error(ErrorCode.AUTH_USER_NOT_FOUND)
    return user


def _has_previous_pass(db: Session, *, user_id: int, program_id: int, history_id: int) -> bool:
    # Locking read so a pass committed while waiting on the user lock is seen
    stmt = (
        select(LearningHistory.id)
        .where(
            LearningHistory.user_id == user_id,
            LearningHistory.program_id == program_id,
            LearningHistory.status == HISTORY_STATUS_COMPLETED,
            LearningHistory.is_passed.is_(True),
            LearningHistory.id != history_id,
        )
        .limit(1)
        .with_for_update()
    )
    return db.scalar(stmt) is not None


def reward_for_program(program: Program) -> int:
    if program.xp_reward is not None:
        return max(0, program.xp_reward)
    return default_program_xp(program.type)


def complete_activity(
    db: Session,
    *,
    user_id: int,
    history_id: int,
    score: int,
    is_passed: bool,
    completed_at: datetime | None = None,
) -> CompletionResult:
    """Mark a learning history completed and award XP at most once.

    XP is only granted for the first passing completion of a program. The
    history row and then the user row are locked for the rest of the
    caller's transaction before the previous-pass check, and XP is
    incremented inside the database. The caller owns the commit.
    """

    history = fetch_owned_history(db, history_id=history_id, user_id=user_id, lock=True)
    # History then user; completions for one user are serialised from here
    user = lock_user(db, user_id)

    if history.status == HISTORY_STATUS_COMPLETED:
        return CompletionResult(
            history_id=history.id,
            xp_gained=0,
            new_rank=user.rank,
            is_rank_up=False,
            already_completed=True,
        )

    program = db.get(Program, history.program_id)
    if program is None:
        raise_app_error(ErrorCode.PROGRAMS_PROGRAM_NOT_FOUND)

    reward = 0
    if is_passed and not _has_previous_pass(
        db, user_id=user_id, program_id=program.id, history_id=history.id
    ):
        reward = reward_for_program(program)

    result = db.execute(
        update(LearningHistory)
        .where(
            LearningHistory.id == history.id,
            LearningHistory.status != HISTORY_STATUS_COMPLETED,
        )
        .values(
            status=HISTORY_STATUS_COMPLETED,
            score=score,
            is_passed=is_passed,
            completed_at=_normalise_completed_at(completed_at),
        )
        .execution_options(synchronize_session=False)
    )
    db.expire(history)

    if result.rowcount == 0:
        return CompletionResult(
            history_id=history_id,
            xp_gained=0,
            new_rank=user.rank,
            is_rank_up=False,
            already_completed=True,
        )

    old_rank = user.rank
    if reward > 0:
        db.execute(
            update(User)
            .where(User.id == user_id)
            .values(xp=User.xp + reward)
            .execution_options(synchronize_session=False)
        )
        db.refresh(user)

    new_rank = calculate_level(user.xp).rank
    if new_rank != user.rank:
        user.rank = new_rank
    db.flush()

    if reward:
        logger.info(
            "Awarded xp: user_id=%s program_id=%s xp=%s total=%s rank=%s",
            user_id,
            program.id,
            reward,
            user.xp,
            new_rank,
        )

    return CompletionResult(
        history_id=history_id,
        xp_gained=reward,
        new_rank=new_rank,
        is_rank_up=new_rank != old_rank,
    )


__all__ = ["CompletionResult", "complete_activity", "fetch_owned_history", "lock_user", "reward_for_program"]
