"""Track questions a learner keeps getting wrong."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.db.base import utcnow
from app.models.program import Weakness


def record_weaknesses(
    db: Session,
    *,
    user_id: int,
    question_ids: Iterable[int],
    failed_at: datetime | None = None,
) -> list[int]:
    """Bump the failure counter of each question, creating rows as needed.

    Returns the distinct question ids that were recorded. Callers hold the
    user row lock, so inserts for one user never race each other.
    """

    ids = list(dict.fromkeys(question_ids))
    if not ids:
        return []

    timestamp = failed_at or utcnow()
    existing = set(
        db.scalars(
            select(Weakness.question_id).where(
                Weakness.user_id == user_id,
                Weakness.question_id.in_(ids),
            )
            .with_for_update()
        )
    )

    if existing:
        db.execute(
            update(Weakness)
            .where(
                Weakness.user_id == user_id,
                Weakness.question_id.in_(existing),
            )
            .values(failure_count=Weakness.failure_count + 1, last_failed_at=timestamp)
            .execution_options(synchronize_session=False)
        )

    db.add_all(
        Weakness(user_id=user_id, question_id=question_id, failure_count=1, last_failed_at=timestamp)
        for question_id in ids
        if question_id not in existing
    )
    db.flush()
    return ids


__all__ = ["record_weaknesses"]
