from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import ErrorCode
from app.core.exceptions import BaseAppException, raise_app_error
from app.deps import admin as admin_deps
from app.models.admin_user import AdminUser
from app.schemas.questions import (
    ImportIssueItem,
    QuestionImportPreviewResponse,
    QuestionImportResponse,
    QuestionRowPreview,
)
from app.services.questions.importer import (
    QuestionImportError,
    QuestionImporter,
    preview_questions,
)
from app.services.questions.template_exporter import QuestionTemplateExporter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/questions", tags=["admin_questions"])


async def _read_upload(file: UploadFile) -> bytes:
    content = await file.read()
    if not content:
        raise_app_error(ErrorCode.QUESTIONS_IMPORT_EMPTY_FILE)
    if len(content) > settings.question_import_max_bytes:
        raise_app_error(
            ErrorCode.QUESTIONS_IMPORT_TOO_LARGE,
            extra={"max_bytes": settings.question_import_max_bytes},
        )
    return content


@router.get("/template", response_class=Response)
def download_question_template(
    fmt: str = Query(default="csv", alias="format"),
    _: AdminUser = Depends(admin_deps.get_current_admin),
) -> Response:
    result = QuestionTemplateExporter().build(fmt)
    return Response(
        content=result.content,
        media_type=result.media_type,
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )


@router.post("/import/preview", response_model=QuestionImportPreviewResponse)
async def preview_question_import(
    file: UploadFile = File(...),
    _: AdminUser = Depends(admin_deps.get_current_admin),
) -> QuestionImportPreviewResponse:
    content = await _read_upload(file)
    parsed = preview_questions(file.filename, content)
    return QuestionImportPreviewResponse(
        rows=[
            QuestionRowPreview(
                row_index=row.row_index,
                content=row.content,
                question_type=row.question_type,
                options=list(row.options),
                correct_indices=list(row.correct_indices),
                explanation=row.explanation,
                difficulty=row.difficulty,
                points=row.points,
                tags=list(row.tags),
                category=row.category,
                image_url=row.image_url,
            )
            for row in parsed.data
        ],
        errors=parsed.errors,
        issues=[
            ImportIssueItem(
                kind=issue.kind.value,
                message=issue.message,
                row_index=issue.row_index,
                column=issue.column,
            )
            for issue in parsed.issues
        ],
        valid_count=len(parsed.data),
        error_count=len(parsed.issues),
    )


@router.post("/import", response_model=QuestionImportResponse)
async def import_questions(
    file: UploadFile = File(...),
    program_id: int | None = Query(default=None),
    replace_links: bool = Query(default=False),
    admin: AdminUser = Depends(admin_deps.get_current_admin),
    db: Session = Depends(admin_deps.get_db),
) -> QuestionImportResponse:
    content = await _read_upload(file)

    importer = QuestionImporter(db)
    nested_tx = db.begin_nested()
    try:
        summary = importer.import_questions(
            content=content,
            filename=file.filename,
            admin_id=admin.id,
            program_id=program_id,
            replace_links=replace_links,
        )
        nested_tx.commit()
        db.commit()
    except QuestionImportError as exc:
        if nested_tx.is_active:
            nested_tx.rollback()
        raise_app_error(
            exc.error_code,
            detail=exc.detail,
            extra={"errors": exc.errors} if exc.errors else None,
        )
    except BaseAppException:
        if nested_tx.is_active:
            nested_tx.rollback()
        raise
    except Exception:
        if nested_tx.is_active:
            nested_tx.rollback()
        logger.exception("Question import failed: admin_id=%s filename=%s", admin.id, file.filename)
        raise_app_error(ErrorCode.COMMON_UNEXPECTED_ERROR)

    return QuestionImportResponse(
        questions_imported=summary.questions_imported,
        question_ids=summary.question_ids,
        program_id=summary.program_id,
        links_created=summary.links_created,
    )
