"""Audit trail for question imports."""

from __future__ import annotations

import json
from typing import Any

from sqlalchemy.orm import Session

from app.models.question import QuestionImportLog


def _normalise(value: Any) -> str | None:
    """Serialise structured payloads as deterministic JSON."""

    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, sort_keys=True)
    return str(value)


def record_question_import_log(
    db: Session,
    *,
    admin_user_id: int | None,
    action: str,
    questions_imported: int,
    program_id: int | None = None,
    source_name: str | None = None,
    note: Any | None = None,
    new_value: Any | None = None,
) -> QuestionImportLog:
    """Persist a row to ``question_import_logs``; the caller commits."""

    log = QuestionImportLog(
        admin_user_id=admin_user_id,
        program_id=program_id,
        source_name=source_name,
        action=action,
        questions_imported=questions_imported,
        note=_normalise(note),
        new_value=_normalise(new_value),
    )
    db.add(log)
    db.flush()
    return log


__all__ = ["record_question_import_log"]
