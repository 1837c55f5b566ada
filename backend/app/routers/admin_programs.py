from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.core.errors import ErrorCode
from app.core.exceptions import raise_app_error
from app.deps import admin as admin_deps
from app.models.admin_user import AdminUser
from app.models.program import Program, ProgramQuestion
from app.models.question import Question
from app.schemas.questions import (
    AdminProgramQuestionItem,
    AdminProgramQuestionsResponse,
    QuestionOptionOut,
)


router = APIRouter(prefix="/admin/programs", tags=["admin_programs"])


@router.get("/{program_id}/questions", response_model=AdminProgramQuestionsResponse)
def list_program_questions(
    program_id: int,
    _: AdminUser = Depends(admin_deps.get_current_admin),
    db: Session = Depends(admin_deps.get_db),
) -> AdminProgramQuestionsResponse:
    program = db.get(Program, program_id)
    if program is None:
        raise_app_error(ErrorCode.PROGRAMS_PROGRAM_NOT_FOUND)

    rows = db.execute(
        select(ProgramQuestion.question_number, Question)
        .join(Question, Question.id == ProgramQuestion.question_id)
        .where(ProgramQuestion.program_id == program.id)
        .options(selectinload(Question.options))
        .order_by(ProgramQuestion.question_number, ProgramQuestion.id)
    ).all()

    return AdminProgramQuestionsResponse(
        program_id=program.id,
        title=program.title,
        type=program.type,
        items=[
            AdminProgramQuestionItem(
                question_number=number,
                id=question.id,
                text=question.text,
                question_type=question.question_type,
                explanation=question.explanation,
                difficulty=question.difficulty,
                points=question.points,
                tags=question.tags,
                category=question.category,
                image_url=question.image_url,
                options=[QuestionOptionOut.model_validate(option) for option in question.options],
            )
            for number, question in rows
        ],
    )
