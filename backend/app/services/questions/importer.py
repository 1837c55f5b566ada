from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from app.core.errors import ErrorCode
from app.models.program import Program, ProgramQuestion
from app.models.question import Question, QuestionOption
from app.services.gamification.xp_config import LECTURE_DEFAULT_XP
from app.services.gamification.program_labels import describe_program_file
from app.services.questions.audit import record_question_import_log
from app.services.questions.csv_parser import (
    CsvQuestionInput,
    ImportIssue,
    ImportIssueKind,
    QuestionParseResult,
    parse_and_validate_questions,
    parse_question_upload,
)

logger = logging.getLogger(__name__)

IMPORTED_CATEGORY = "Imported"
ACTION_IMPORT = "IMPORT"
ACTION_PROGRAM_IMPORT = "PROGRAM_IMPORT"
ACTION_LECTURE_IMPORT = "LECTURE_IMPORT"
LECTURE_TYPE = "lecture"
DEFAULT_LECTURE_CATEGORY = "General"
LECTURE_QUIZ_SUFFIX = "_確認問題.csv"
SKIP_ERROR_LIMIT = 5


@dataclass(frozen=True)
class QuestionImportSummary:
    questions_imported: int
    question_ids: list[int]
    program_id: int | None = None
    links_created: int = 0
    source_name: str | None = None


@dataclass(frozen=True)
class ProgramImportResult:
    filename: str
    status: str  # "imported" or "skipped"
    title: str
    program_type: str
    program_id: int | None = None
    questions_imported: int = 0
    xp_reward: int = 0
    level_requirement: int = 1
    errors: list[str] = field(default_factory=list)

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"


@dataclass(frozen=True)
class LectureImportResult:
    filename: str
    status: str  # "imported" or "skipped"
    title: str
    category: str
    program_id: int | None = None
    created: bool = False
    quiz_questions: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"


class QuestionImportError(Exception):
    def __init__(
        self,
        *,
        error_code: ErrorCode,
        detail: str | None = None,
        issues: Sequence[ImportIssue] | None = None,
    ) -> None:
        super().__init__(detail or error_code.value)
        self.error_code = error_code
        self.detail = detail
        self.issues = list(issues or [])

    @property
    def errors(self) -> list[str]:
        return [issue.message for issue in self.issues]


def preview_questions(filename: str | None, content: bytes) -> QuestionParseResult:
    """Parse an upload without touching the database."""

    return parse_question_upload(filename, content)


def _raise_for_issues(parsed: QuestionParseResult) -> None:
    if not parsed.issues:
        return
    if any(issue.kind is ImportIssueKind.MALFORMED_CSV for issue in parsed.issues):
        raise QuestionImportError(
            error_code=ErrorCode.QUESTIONS_IMPORT_MALFORMED,
            detail=parsed.issues[0].message,
            issues=parsed.issues,
        )
    raise QuestionImportError(
        error_code=ErrorCode.QUESTIONS_IMPORT_VALIDATION,
        detail=f"{len(parsed.issues)} row error(s) found; nothing was imported",
        issues=parsed.issues,
    )


class QuestionImporter:
    """Persist validated question rows and link them to programs."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def import_questions(
        self,
        *,
        content: bytes,
        filename: str | None,
        admin_id: int | None,
        program_id: int | None = None,
        replace_links: bool = False,
    ) -> QuestionImportSummary:
        program = self._load_program_for_update(program_id) if program_id is not None else None

        parsed = parse_question_upload(filename, content)
        _raise_for_issues(parsed)
        if not parsed.data:
            raise QuestionImportError(
                error_code=ErrorCode.QUESTIONS_IMPORT_VALIDATION,
                detail="The file contains no question rows",
            )

        questions = self.persist_questions(parsed.data, admin_id=admin_id)
        links_created = 0
        if program is not None:
            links_created = self.link_questions(program, questions, replace=replace_links)

        question_ids = [question.id for question in questions]
        record_question_import_log(
            self._db,
            admin_user_id=admin_id,
            action=ACTION_IMPORT,
            questions_imported=len(questions),
            program_id=program.id if program is not None else None,
            source_name=filename,
            new_value={
                "question_ids": question_ids,
                "links_created": links_created,
                "replace_links": replace_links,
            },
        )
        logger.info(
            "Imported questions: admin_id=%s program_id=%s count=%s source=%s",
            admin_id,
            program_id,
            len(questions),
            filename,
        )

        return QuestionImportSummary(
            questions_imported=len(questions),
            question_ids=question_ids,
            program_id=program.id if program is not None else None,
            links_created=links_created,
            source_name=filename,
        )

    # ------------------------------------------------------------------#
    # Persistence helpers
    # ------------------------------------------------------------------#

    def _load_program_for_update(self, program_id: int) -> Program:
        program = self._db.execute(
            select(Program).where(Program.id == program_id).with_for_update()
        ).scalar_one_or_none()
        if program is None:
            raise QuestionImportError(
                error_code=ErrorCode.PROGRAMS_PROGRAM_NOT_FOUND,
                detail="Program not found",
            )
        return program

    def persist_questions(
        self,
        rows: Sequence[CsvQuestionInput],
        *,
        admin_id: int | None,
        category: str | None = None,
    ) -> list[Question]:
        questions: list[Question] = []
        for row in rows:
            question = Question(
                text=row.content,
                question_type=row.question_type,
                explanation=row.explanation,
                difficulty=row.difficulty,
                points=row.points,
                tags=list(row.tags) or None,
                category=row.category or category,
                image_url=row.image_url,
                created_by_admin_id=admin_id,
            )
            question.options = [
                QuestionOption(
                    text=text,
                    sort_order=position,
                    is_correct=row.is_correct_position(position),
                )
                for position, text in enumerate(row.options, start=1)
            ]
            questions.append(question)

        self._db.add_all(questions)
        self._db.flush()
        return questions

    def link_questions(self, program: Program, questions: Sequence[Question], *, replace: bool) -> int:
        if replace:
            self._db.execute(delete(ProgramQuestion).where(ProgramQuestion.program_id == program.id))
            next_number = 1
        else:
            current = self._db.scalar(
                select(func.max(ProgramQuestion.question_number)).where(
                    ProgramQuestion.program_id == program.id
                )
            )
            next_number = (current or 0) + 1

        links = [
            ProgramQuestion(
                program_id=program.id,
                question_id=question.id,
                question_number=next_number + offset,
            )
            for offset, question in enumerate(questions)
        ]
        self._db.add_all(links)
        self._db.flush()
        self._db.expire(program, ["question_links"])
        return len(links)


class ProgramImporter:
    """Create or refresh one program from a question-bank CSV file."""

    def __init__(self, db: Session) -> None:
        self._db = db
        self._questions = QuestionImporter(db)

    def import_program_file(
        self,
        filename: str,
        content: bytes,
        *,
        admin_id: int | None = None,
    ) -> ProgramImportResult:
        descriptor = describe_program_file(filename)
        parsed = parse_and_validate_questions(content)

        if parsed.issues or not parsed.data:
            errors = parsed.errors[:SKIP_ERROR_LIMIT] or ["The file contains no question rows"]
            logger.warning("Skipping program file: filename=%s errors=%s", filename, len(parsed.issues))
            return ProgramImportResult(
                filename=filename,
                status="skipped",
                title=descriptor.title,
                program_type=descriptor.program_type,
                xp_reward=descriptor.xp_reward,
                level_requirement=descriptor.level_requirement,
                errors=errors,
            )

        quiz_csv = content.decode("utf-8-sig")
        program = self._db.execute(
            select(Program)
            .where(Program.title == descriptor.title, Program.type == descriptor.program_type)
            .with_for_update()
        ).scalar_one_or_none()
        if program is None:
            program = Program(title=descriptor.title, type=descriptor.program_type)
            self._db.add(program)

        program.xp_reward = descriptor.xp_reward
        program.level_requirement = descriptor.level_requirement
        program.quiz_csv = quiz_csv
        program.category = IMPORTED_CATEGORY
        program.is_active = True
        self._db.flush()

        questions = self._questions.persist_questions(
            parsed.data,
            admin_id=admin_id,
            category=IMPORTED_CATEGORY,
        )
        self._questions.link_questions(program, questions, replace=True)

        record_question_import_log(
            self._db,
            admin_user_id=admin_id,
            action=ACTION_PROGRAM_IMPORT,
            questions_imported=len(questions),
            program_id=program.id,
            source_name=filename,
            new_value={
                "title": descriptor.title,
                "type": descriptor.program_type,
                "xp_reward": descriptor.xp_reward,
                "level_requirement": descriptor.level_requirement,
            },
        )

        return ProgramImportResult(
            filename=filename,
            status="imported",
            title=descriptor.title,
            program_type=descriptor.program_type,
            program_id=program.id,
            questions_imported=len(questions),
            xp_reward=descriptor.xp_reward,
            level_requirement=descriptor.level_requirement,
        )


def lecture_title(filename: str) -> str:
    """``001_はじめに.md`` becomes ``001_はじめに``."""

    stem, dot, suffix = filename.rpartition(".")
    return stem if dot and suffix.lower() == "md" else filename


def lecture_quiz_name(title: str) -> str:
    return f"{title}{LECTURE_QUIZ_SUFFIX}"


class LectureImporter:
    """Create or refresh one lecture program from a markdown file.

    The lecture is keyed by its title, so re-running an import updates the
    existing row. An accompanying quiz CSV is validated before anything is
    written; a broken quiz skips the lecture rather than storing a quiz
    learners could never pass.
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def _skip(self, filename: str, title: str, category: str, errors: list[str]) -> LectureImportResult:
        logger.warning("Skipping lecture file: filename=%s errors=%s", filename, len(errors))
        return LectureImportResult(
            filename=filename,
            status="skipped",
            title=title,
            category=category,
            errors=errors[:SKIP_ERROR_LIMIT],
        )

    def import_lecture_file(
        self,
        filename: str,
        content: bytes,
        *,
        category: str = DEFAULT_LECTURE_CATEGORY,
        quiz_content: bytes | None = None,
        admin_id: int | None = None,
    ) -> LectureImportResult:
        title = lecture_title(filename)
        try:
            body = content.decode("utf-8-sig")
        except UnicodeDecodeError:
            return self._skip(filename, title, category, ["The lecture file is not valid UTF-8"])

        quiz_csv: str | None = None
        quiz_questions = 0
        if quiz_content is not None:
            parsed = parse_and_validate_questions(quiz_content)
            if parsed.issues or not parsed.data:
                errors = parsed.errors or ["The quiz file contains no question rows"]
                return self._skip(filename, title, category, [f"{lecture_quiz_name(title)}: {e}" for e in errors])
            quiz_csv = quiz_content.decode("utf-8-sig")
            quiz_questions = len(parsed.data)

        program = self._db.execute(
            select(Program).where(Program.title == title, Program.type == LECTURE_TYPE).with_for_update()
        ).scalar_one_or_none()
        created = program is None
        if program is None:
            program = Program(title=title, type=LECTURE_TYPE)
            self._db.add(program)

        program.description = f"カテゴリー: {category}"
        program.category = category
        program.content_body = body
        program.quiz_csv = quiz_csv
        program.xp_reward = LECTURE_DEFAULT_XP
        program.level_requirement = 1
        program.is_active = True
        self._db.flush()

        record_question_import_log(
            self._db,
            admin_user_id=admin_id,
            action=ACTION_LECTURE_IMPORT,
            questions_imported=quiz_questions,
            program_id=program.id,
            source_name=filename,
            new_value={
                "title": title,
                "category": category,
                "created": created,
                "has_quiz": quiz_csv is not None,
            },
        )
        logger.info(
            "%s lecture: program_id=%s title=%s category=%s quiz_questions=%s",
            "Created" if created else "Updated",
            program.id,
            title,
            category,
            quiz_questions,
        )

        return LectureImportResult(
            filename=filename,
            status="imported",
            title=title,
            category=category,
            program_id=program.id,
            created=created,
            quiz_questions=quiz_questions,
        )


__all__ = [
    "LectureImportResult",
    "LectureImporter",
    "ProgramImportResult",
    "ProgramImporter",
    "QuestionImportError",
    "QuestionImportSummary",
    "QuestionImporter",
    "lecture_quiz_name",
    "lecture_title",
    "preview_questions",
]
