from __future__ import annotations

import csv
import io
from dataclasses import dataclass

from app.core.errors import ErrorCode
from app.core.exceptions import raise_app_error
from app.services.questions.csv_parser import BOM, QUESTION_COLUMNS

SAMPLE_ROWS: tuple[dict[str, str], ...] = (
    {
        "content": "Which prompt is most specific?",
        "question_type": "single",
        "option_1": "Write something",
        "option_2": "Summarise this memo in three bullet points",
        "option_3": "Help me",
        "correct_indices": "2",
        "explanation": "It states the task, the input and the output format.",
        "difficulty": "1",
        "points": "10",
        "tags": "prompting,basics",
        "category": "Prompting",
    },
    {
        "content": "Select every statement that is true about hallucinations.",
        "question_type": "multi",
        "option_1": "Models can state false facts confidently",
        "option_2": "Checking sources reduces the risk",
        "option_3": "Hallucinations never happen with long prompts",
        "correct_indices": "1|2",
        "difficulty": "2",
        "points": "10",
        "tags": "ethics",
        "category": "Safety",
    },
)


@dataclass(frozen=True)
class TemplateResult:
    filename: str
    media_type: str
    content: bytes


class QuestionTemplateExporter:
    CSV_MEDIA_TYPE = "text/csv; charset=utf-8"
    XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    HEADERS = list(QUESTION_COLUMNS)
    FILENAME_STEM = "question_template"
    SHEET_NAME = "questions"

    def build(self, fmt: str = "csv") -> TemplateResult:
        fmt = (fmt or "csv").strip().lower()
        if fmt == "csv":
            return TemplateResult(
                filename=f"{self.FILENAME_STEM}.csv",
                media_type=self.CSV_MEDIA_TYPE,
                content=self._build_csv(),
            )
        if fmt == "xlsx":
            return TemplateResult(
                filename=f"{self.FILENAME_STEM}.xlsx",
                media_type=self.XLSX_MEDIA_TYPE,
                content=self._build_workbook(),
            )
        raise_app_error(ErrorCode.QUESTIONS_TEMPLATE_FORMAT_INVALID, detail=f"Unsupported format: {fmt}")

    def _rows(self) -> list[list[str]]:
        return [[sample.get(name, "") for name in self.HEADERS] for sample in SAMPLE_ROWS]

    def _build_csv(self) -> bytes:
        buffer = io.StringIO(newline="")
        writer = csv.writer(buffer, lineterminator="\r\n")
        writer.writerow(self.HEADERS)
        writer.writerows(self._rows())
        # Spreadsheet software needs the BOM to detect UTF-8
        return (BOM + buffer.getvalue()).encode("utf-8")

    def _build_workbook(self) -> bytes:
        from openpyxl import Workbook

        wb = Workbook()
        ws = wb.active
        ws.title = self.SHEET_NAME
        ws.append(self.HEADERS)
        for row in self._rows():
            ws.append(row)

        buffer = io.BytesIO()
        wb.save(buffer)
        return buffer.getvalue()


__all__ = ["QuestionTemplateExporter", "SAMPLE_ROWS", "TemplateResult"]
