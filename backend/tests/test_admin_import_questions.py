from __future__ import annotations

import io
import json

from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import ErrorCode
from app.models.program import ProgramQuestion
from app.models.question import Question, QuestionImportLog, QuestionOption
from tests.factories import AdminUserFactory, ProgramFactory, UserFactory, create_choice_question
from tests.utils.auth import admin_auth_header, user_auth_header

VALID_CSV = (
    "content,question_type,option_1,option_2,option_3,correct_indices,explanation,tags\n"
    "What does LLM stand for?,single,Large Language Model,Low Level Machine,Long Loop Memory,1,Basics,\"ai,terms\"\n"
    "Pick the primary colours,multi,Red,Green,Blue,1|3,,colour\n"
    "Describe a use case,text,,,,,,\n"
)

INVALID_CSV = (
    "content,question_type,option_1,option_2,correct_indices\n"
    "Valid row,single,A,B,1\n"
    "Broken row,single,A,,1\n"
)


def _upload(content: str | bytes, filename: str = "questions.csv") -> dict:
    if isinstance(content, str):
        content = content.encode("utf-8")
    return {"file": (filename, io.BytesIO(content), "text/csv")}


def _count(db: Session, model) -> int:
    return db.scalar(select(func.count()).select_from(model))


def test_import_creates_questions_and_options(client: TestClient, db_session: Session):
    admin = AdminUserFactory()
    db_session.commit()

    response = client.post("/admin/questions/import", files=_upload(VALID_CSV), headers=admin_auth_header(admin))

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["questions_imported"] == 3
    assert body["program_id"] is None
    assert len(body["question_ids"]) == 3

    questions = db_session.scalars(select(Question).order_by(Question.id)).all()
    assert [q.question_type for q in questions] == ["single_choice", "multiple_choice", "text"]
    assert questions[0].tags == ["ai", "terms"]
    assert questions[0].created_by_admin_id == admin.id

    colours = db_session.scalars(
        select(QuestionOption).where(QuestionOption.question_id == questions[1].id).order_by(QuestionOption.sort_order)
    ).all()
    assert [(o.text, o.sort_order, o.is_correct) for o in colours] == [
        ("Red", 1, True),
        ("Green", 2, False),
        ("Blue", 3, True),
    ]

    log = db_session.scalars(select(QuestionImportLog)).one()
    assert log.action == "IMPORT"
    assert log.questions_imported == 3
    assert log.source_name == "questions.csv"
    assert json.loads(log.new_value)["question_ids"] == body["question_ids"]


def test_any_row_error_rejects_the_whole_file(client: TestClient, db_session: Session):
    admin = AdminUserFactory()
    db_session.commit()

    response = client.post("/admin/questions/import", files=_upload(INVALID_CSV), headers=admin_auth_header(admin))

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == ErrorCode.QUESTIONS_IMPORT_VALIDATION.value
    assert error["extra"]["errors"] == ["Row 3: 'single_choice' requires at least 2 options (found 1)."]
    assert _count(db_session, Question) == 0
    assert _count(db_session, QuestionImportLog) == 0


def test_malformed_file_is_rejected(client: TestClient, db_session: Session):
    admin = AdminUserFactory()
    db_session.commit()

    response = client.post(
        "/admin/questions/import",
        files=_upload(b"\xff\xfe\x00\x81garbage"),
        headers=admin_auth_header(admin),
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == ErrorCode.QUESTIONS_IMPORT_MALFORMED.value


def test_empty_upload_is_rejected(client: TestClient, db_session: Session):
    admin = AdminUserFactory()
    db_session.commit()

    response = client.post("/admin/questions/import", files=_upload(b""), headers=admin_auth_header(admin))

    assert response.status_code == 400
    assert response.json()["error"]["code"] == ErrorCode.QUESTIONS_IMPORT_EMPTY_FILE.value


def test_oversized_upload_is_rejected(client: TestClient, db_session: Session, monkeypatch):
    admin = AdminUserFactory()
    db_session.commit()
    monkeypatch.setattr(settings, "question_import_max_bytes", 16)

    response = client.post("/admin/questions/import", files=_upload(VALID_CSV), headers=admin_auth_header(admin))

    assert response.status_code == 413
    assert response.json()["error"]["extra"] == {"max_bytes": 16}


def test_import_appends_links_after_existing_questions(client: TestClient, db_session: Session):
    admin = AdminUserFactory()
    program = ProgramFactory()
    create_choice_question(program=program, question_number=1)
    create_choice_question(program=program, question_number=2)
    db_session.commit()

    response = client.post(
        f"/admin/questions/import?program_id={program.id}",
        files=_upload(VALID_CSV),
        headers=admin_auth_header(admin),
    )

    assert response.status_code == 200, response.text
    assert response.json()["links_created"] == 3
    numbers = db_session.scalars(
        select(ProgramQuestion.question_number)
        .where(ProgramQuestion.program_id == program.id)
        .order_by(ProgramQuestion.question_number)
    ).all()
    assert numbers == [1, 2, 3, 4, 5]


def test_import_can_replace_program_links(client: TestClient, db_session: Session):
    admin = AdminUserFactory()
    program = ProgramFactory()
    create_choice_question(program=program, question_number=1)
    db_session.commit()

    response = client.post(
        f"/admin/questions/import?program_id={program.id}&replace_links=true",
        files=_upload(VALID_CSV),
        headers=admin_auth_header(admin),
    )

    assert response.status_code == 200, response.text
    links = db_session.scalars(
        select(ProgramQuestion).where(ProgramQuestion.program_id == program.id).order_by(ProgramQuestion.question_number)
    ).all()
    assert [link.question_number for link in links] == [1, 2, 3]
    assert [link.question_id for link in links] == response.json()["question_ids"]


def test_import_into_missing_program_is_rejected(client: TestClient, db_session: Session):
    admin = AdminUserFactory()
    db_session.commit()

    response = client.post(
        "/admin/questions/import?program_id=404",
        files=_upload(VALID_CSV),
        headers=admin_auth_header(admin),
    )

    assert response.status_code == 404
    assert response.json()["error"]["code"] == ErrorCode.PROGRAMS_PROGRAM_NOT_FOUND.value
    assert _count(db_session, Question) == 0


def test_preview_reports_rows_and_errors_without_saving(client: TestClient, db_session: Session):
    admin = AdminUserFactory()
    db_session.commit()

    response = client.post(
        "/admin/questions/import/preview",
        files=_upload(INVALID_CSV),
        headers=admin_auth_header(admin),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["valid_count"] == 1
    assert body["error_count"] == 1
    assert body["rows"][0]["content"] == "Valid row"
    assert body["rows"][0]["row_index"] == 2
    assert body["issues"][0]["kind"] == "insufficient_options"
    assert body["issues"][0]["row_index"] == 3
    assert _count(db_session, Question) == 0


def test_admin_token_is_required(client: TestClient, db_session: Session):
    user = UserFactory()
    db_session.commit()

    missing = client.post("/admin/questions/import", files=_upload(VALID_CSV))
    learner = client.post("/admin/questions/import", files=_upload(VALID_CSV), headers=user_auth_header(user))

    assert missing.status_code in (401, 403)
    assert learner.status_code == 403
    assert learner.json()["error"]["code"] == ErrorCode.ADMIN_AUTH_ADMIN_TOKEN_SCOPE_INVALID.value


def test_inactive_admin_is_rejected(client: TestClient, db_session: Session):
    admin = AdminUserFactory(is_active=False)
    db_session.commit()

    response = client.post("/admin/questions/import", files=_upload(VALID_CSV), headers=admin_auth_header(admin))

    assert response.status_code == 403
    assert response.json()["error"]["code"] == ErrorCode.ADMIN_AUTH_ADMIN_NOT_FOUND_OR_INACTIVE.value


def test_program_questions_are_listed_in_order(client: TestClient, db_session: Session):
    admin = AdminUserFactory()
    program = ProgramFactory(title="001. Basics (初級)")
    second = create_choice_question(program=program, question_number=2, options=("X", "Y"), correct=(2,))
    first = create_choice_question(program=program, question_number=1)
    db_session.commit()

    response = client.get(f"/admin/programs/{program.id}/questions", headers=admin_auth_header(admin))

    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "001. Basics (初級)"
    assert [item["id"] for item in body["items"]] == [first.id, second.id]
    assert [option["is_correct"] for option in body["items"][1]["options"]] == [False, True]


def test_listing_unknown_program_questions(client: TestClient, db_session: Session):
    admin = AdminUserFactory()
    db_session.commit()

    response = client.get("/admin/programs/999/questions", headers=admin_auth_header(admin))

    assert response.status_code == 404
    assert response.json()["error"]["code"] == ErrorCode.PROGRAMS_PROGRAM_NOT_FOUND.value
