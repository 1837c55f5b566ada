from __future__ import annotations

import csv
import io

from fastapi.testclient import TestClient
from openpyxl import load_workbook
from sqlalchemy.orm import Session

from app.core.errors import ErrorCode
from app.services.questions.csv_parser import QUESTION_COLUMNS, parse_and_validate_questions, parse_question_workbook
from tests.factories import AdminUserFactory
from tests.utils.auth import admin_auth_header


def test_csv_template_download(client: TestClient, db_session: Session):
    admin = AdminUserFactory()
    db_session.commit()

    response = client.get("/admin/questions/template", headers=admin_auth_header(admin))

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert 'filename="question_template.csv"' in response.headers["content-disposition"]
    assert response.content.startswith("\ufeff".encode("utf-8"))

    text = response.content.decode("utf-8-sig")
    header = next(csv.reader(io.StringIO(text)))
    assert header == list(QUESTION_COLUMNS)


def test_csv_template_passes_its_own_validation(client: TestClient, db_session: Session):
    admin = AdminUserFactory()
    db_session.commit()

    response = client.get("/admin/questions/template?format=csv", headers=admin_auth_header(admin))
    result = parse_and_validate_questions(response.content)

    assert result.errors == []
    assert [row.question_type for row in result.data] == ["single_choice", "multiple_choice"]


def test_xlsx_template_download(client: TestClient, db_session: Session):
    admin = AdminUserFactory()
    db_session.commit()

    response = client.get("/admin/questions/template?format=XLSX", headers=admin_auth_header(admin))

    assert response.status_code == 200
    assert 'filename="question_template.xlsx"' in response.headers["content-disposition"]

    wb = load_workbook(io.BytesIO(response.content), read_only=True)
    ws = wb["questions"]
    header = list(next(ws.iter_rows(values_only=True)))
    wb.close()
    assert header == list(QUESTION_COLUMNS)
    assert parse_question_workbook(response.content).errors == []


def test_unknown_template_format(client: TestClient, db_session: Session):
    admin = AdminUserFactory()
    db_session.commit()

    response = client.get("/admin/questions/template?format=pdf", headers=admin_auth_header(admin))

    assert response.status_code == 400
    assert response.json()["error"]["code"] == ErrorCode.QUESTIONS_TEMPLATE_FORMAT_INVALID.value
