"""Parse and validate question-bank spreadsheets.

The parser turns a header-keyed table (CSV text or the first sheet of an
``.xlsx`` workbook) into typed :class:`CsvQuestionInput` records. It never
raises: every problem is reported as an :class:`ImportIssue` tied to the
spreadsheet row it came from (the header is row 1, the first record row 2)
and the offending row is left out of ``data``. Callers decide what a
non-empty issue list means; the importer refuses the whole batch.

Recognised columns::

    content, question_type, option_1 .. option_10, correct_indices,
    explanation, difficulty, points, tags, category, image_url

Header names are matched case-insensitively after trimming; unknown
columns are ignored.
"""

from __future__ import annotations

import csv
import io
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from pathlib import PurePath
from typing import Any, Final, Iterable, Iterator, Mapping, Sequence

BOM: Final[str] = "\ufeff"
MAX_OPTIONS: Final[int] = 10
OPTION_COLUMNS: Final[tuple[str, ...]] = tuple(f"option_{n}" for n in range(1, MAX_OPTIONS + 1))
REQUIRED_COLUMNS: Final[tuple[str, ...]] = ("content", "question_type")
QUESTION_COLUMNS: Final[tuple[str, ...]] = (
    "content",
    "question_type",
    *OPTION_COLUMNS,
    "correct_indices",
    "explanation",
    "difficulty",
    "points",
    "tags",
    "category",
    "image_url",
)

QUESTION_TYPE_TOKENS: Final[frozenset[str]] = frozenset(
    {"single", "single_choice", "multi", "multiple_choice", "text"}
)
CHOICE_TYPES: Final[frozenset[str]] = frozenset({"single_choice", "multiple_choice"})

DEFAULT_DIFFICULTY: Final[int] = 1
DEFAULT_POINTS: Final[int] = 10

_INDEX_SEPARATORS = str.maketrans({"|": ","})
# Leading ASCII integer, so "2.0" reads as 2 and "３" is rejected
_LEADING_INT = re.compile(r"[+-]?[0-9]+", re.ASCII)
_XLSX_SIGNATURE = b"PK\x03\x04"
_WORKBOOK_SHEET = "questions"


class ImportIssueKind(str, Enum):
    MISSING_FIELD = "missing_field"
    INVALID_ENUM = "invalid_enum"
    INSUFFICIENT_OPTIONS = "insufficient_options"
    MISSING_CORRECT_ANSWER = "missing_correct_answer"
    OUT_OF_RANGE_INDEX = "out_of_range_index"
    NO_VALID_ANSWER = "no_valid_answer"
    MALFORMED_CSV = "malformed_csv"


@dataclass(frozen=True)
class ImportIssue:
    kind: ImportIssueKind
    message: str
    row_index: int | None = None
    column: str | None = None

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class CsvQuestionInput:
    content: str
    question_type: str
    options: tuple[str, ...] = ()
    correct_indices: tuple[int, ...] = ()
    explanation: str | None = None
    difficulty: int = DEFAULT_DIFFICULTY
    points: int = DEFAULT_POINTS
    tags: tuple[str, ...] = ()
    image_url: str | None = None
    category: str | None = None
    row_index: int = 0

    @property
    def is_choice(self) -> bool:
        return self.question_type in CHOICE_TYPES

    def is_correct_position(self, position: int) -> bool:
        """Whether the 1-based option ``position`` is marked correct."""

        return position in self.correct_indices


@dataclass(frozen=True)
class QuestionParseResult:
    data: list[CsvQuestionInput] = field(default_factory=list)
    issues: list[ImportIssue] = field(default_factory=list)

    @property
    def errors(self) -> list[str]:
        return [issue.message for issue in self.issues]

    @property
    def ok(self) -> bool:
        return not self.issues


def _malformed(message: str) -> QuestionParseResult:
    return QuestionParseResult(
        data=[],
        issues=[ImportIssue(ImportIssueKind.MALFORMED_CSV, message)],
    )


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def canonical_question_type(token: str) -> str:
    """Map an accepted input token onto a stored question type."""

    lowered = token.strip().lower()
    if "single" in lowered:
        return "single_choice"
    if "multi" in lowered:
        return "multiple_choice"
    return "text"


def _text(record: Mapping[str, str], column: str) -> str:
    return (record.get(column) or "").strip()


def _optional_text(record: Mapping[str, str], column: str) -> str | None:
    return _text(record, column) or None


def _leading_int(value: str) -> int | None:
    match = _LEADING_INT.match(value.strip())
    return int(match.group()) if match else None


def _int_or_default(value: str, default: int) -> int:
    parsed = _leading_int(value)
    return default if parsed is None else parsed


def _split_tags(value: str) -> tuple[str, ...]:
    tags: list[str] = []
    for raw in value.split(","):
        tag = raw.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tuple(tags)


def _collect_options(record: Mapping[str, str]) -> tuple[str, ...]:
    return tuple(option for option in (_text(record, column) for column in OPTION_COLUMNS) if option)


# ---------------------------------------------------------------------------
# Row validation
# ---------------------------------------------------------------------------


def _parse_correct_indices(
    raw: str,
    *,
    option_count: int,
    row_index: int,
    issues: list[ImportIssue],
) -> tuple[int, ...] | None:
    accepted: list[int] = []
    rejected = 0
    for token in raw.translate(_INDEX_SEPARATORS).split(","):
        value = token.strip()
        index = _leading_int(value)
        if index is not None and 1 <= index <= option_count:
            if index not in accepted:
                accepted.append(index)
            continue
        rejected += 1
        issues.append(
            ImportIssue(
                ImportIssueKind.OUT_OF_RANGE_INDEX,
                f"Row {row_index}: Invalid correct_index '{value}'. Must be between 1 and {option_count}.",
                row_index=row_index,
                column="correct_indices",
            )
        )

    if not accepted:
        issues.append(
            ImportIssue(
                ImportIssueKind.NO_VALID_ANSWER,
                f"Row {row_index}: No valid correct_indices found.",
                row_index=row_index,
                column="correct_indices",
            )
        )
        return None
    # Any rejected token disqualifies the whole row
    if rejected:
        return None
    return tuple(sorted(accepted))


def validate_question_record(
    record: Mapping[str, str],
    *,
    row_index: int,
    issues: list[ImportIssue],
) -> CsvQuestionInput | None:
    """Validate one header-keyed record, appending problems to ``issues``.

    Checks run in a fixed order and stop at the first failing check, except
    for correct-index tokens which are each reported individually.
    """

    content = _text(record, "content")
    if not content:
        issues.append(
            ImportIssue(
                ImportIssueKind.MISSING_FIELD,
                f"Row {row_index}: 'content' is required.",
                row_index=row_index,
                column="content",
            )
        )
        return None

    raw_type = _text(record, "question_type")
    if not raw_type:
        issues.append(
            ImportIssue(
                ImportIssueKind.MISSING_FIELD,
                f"Row {row_index}: 'question_type' is required.",
                row_index=row_index,
                column="question_type",
            )
        )
        return None
    if raw_type.lower() not in QUESTION_TYPE_TOKENS:
        issues.append(
            ImportIssue(
                ImportIssueKind.INVALID_ENUM,
                f"Row {row_index}: Invalid question_type '{raw_type}'. Use 'single', 'multi', or 'text'.",
                row_index=row_index,
                column="question_type",
            )
        )
        return None
    question_type = canonical_question_type(raw_type)

    options = _collect_options(record)
    correct_indices: tuple[int, ...] = ()
    if question_type in CHOICE_TYPES:
        if len(options) < 2:
            issues.append(
                ImportIssue(
                    ImportIssueKind.INSUFFICIENT_OPTIONS,
                    f"Row {row_index}: '{question_type}' requires at least 2 options (found {len(options)}).",
                    row_index=row_index,
                    column="option_1",
                )
            )
            return None

        raw_indices = _text(record, "correct_indices")
        if not raw_indices:
            issues.append(
                ImportIssue(
                    ImportIssueKind.MISSING_CORRECT_ANSWER,
                    f"Row {row_index}: 'correct_indices' is required for choice questions.",
                    row_index=row_index,
                    column="correct_indices",
                )
            )
            return None

        parsed = _parse_correct_indices(
            raw_indices,
            option_count=len(options),
            row_index=row_index,
            issues=issues,
        )
        if parsed is None:
            return None
        correct_indices = parsed

    return CsvQuestionInput(
        content=content,
        question_type=question_type,
        options=options,
        correct_indices=correct_indices,
        explanation=_optional_text(record, "explanation"),
        difficulty=_int_or_default(_text(record, "difficulty"), DEFAULT_DIFFICULTY),
        points=_int_or_default(_text(record, "points"), DEFAULT_POINTS),
        tags=_split_tags(_text(record, "tags")),
        image_url=_optional_text(record, "image_url"),
        category=_optional_text(record, "category"),
        row_index=row_index,
    )


def _normalise_headers(header_row: Sequence[str]) -> list[str]:
    headers = [str(cell or "").strip().lower() for cell in header_row]
    if headers and headers[0].startswith(BOM):
        headers[0] = headers[0].lstrip(BOM).strip()
    return headers


def _is_blank(cells: Sequence[str]) -> bool:
    return all(not (cell or "").strip() for cell in cells)


def validate_question_table(rows: Iterable[Sequence[str]]) -> QuestionParseResult:
    """Validate a table whose first row is the header.

    ``rows`` may raise :class:`csv.Error` while being consumed; the whole
    table is then reported as malformed.
    """

    iterator: Iterator[Sequence[str]] = iter(rows)
    try:
        header_row = next(iterator, None)
        if header_row is None or _is_blank(header_row):
            return _malformed("CSV Parse Error: header row is missing.")

        headers = _normalise_headers(header_row)
        missing = [column for column in REQUIRED_COLUMNS if column not in headers]
        if missing:
            return _malformed(f"CSV Parse Error: missing required column(s): {', '.join(missing)}.")

        data: list[CsvQuestionInput] = []
        issues: list[ImportIssue] = []
        for row_index, cells in enumerate(iterator, start=2):
            if _is_blank(cells):
                continue
            record = {
                header: cells[position] or ""
                for position, header in enumerate(headers)
                if header and position < len(cells)
            }
            question = validate_question_record(record, row_index=row_index, issues=issues)
            if question is not None:
                data.append(question)
    except csv.Error as exc:
        return _malformed(f"CSV Parse Error: {exc}")

    return QuestionParseResult(data=data, issues=issues)


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def decode_question_csv(content: bytes, encoding: str = "utf-8") -> str:
    """Decode uploaded bytes, dropping a leading byte-order mark.

    Raises :class:`UnicodeDecodeError` (or :class:`LookupError` for an
    unknown encoding) when the payload cannot be decoded.
    """

    text = content.decode(encoding)
    return text.lstrip(BOM) if text.startswith(BOM) else text


def parse_and_validate_questions(content: str | bytes, *, encoding: str = "utf-8") -> QuestionParseResult:
    """Parse CSV text (or bytes) into validated question records."""

    if isinstance(content, (bytes, bytearray)):
        try:
            content = decode_question_csv(bytes(content), encoding)
        except (UnicodeDecodeError, LookupError):
            return _malformed(f"CSV Parse Error: file is not valid {encoding} text.")

    text = content[1:] if content.startswith(BOM) else content
    if not text.strip():
        return _malformed("CSV Parse Error: file is empty.")

    reader = csv.reader(io.StringIO(text, newline=""))
    return validate_question_table(reader)


def _cell_to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def parse_question_workbook(content: bytes) -> QuestionParseResult:
    """Validate the ``questions`` sheet (or the first sheet) of a workbook."""

    from openpyxl import load_workbook

    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except Exception as exc:  # openpyxl provides coarse exceptions
        return _malformed(f"Workbook Parse Error: {exc}")

    # Sheet XML is only parsed while rows are read in read-only mode
    try:
        if _WORKBOOK_SHEET in workbook.sheetnames:
            sheet = workbook[_WORKBOOK_SHEET]
        else:
            sheet = workbook.worksheets[0]
        rows = [[_cell_to_text(value) for value in row] for row in sheet.iter_rows(values_only=True)]
    except Exception as exc:
        return _malformed(f"Workbook Parse Error: {exc}")
    finally:
        workbook.close()

    return validate_question_table(rows)


def is_workbook_upload(filename: str | None, content: bytes) -> bool:
    if filename and PurePath(filename).suffix.lower() == ".xlsx":
        return True
    return content.startswith(_XLSX_SIGNATURE)


def parse_question_upload(
    filename: str | None,
    content: bytes,
    *,
    encoding: str = "utf-8",
) -> QuestionParseResult:
    """Dispatch an uploaded file to the CSV or workbook parser."""

    if is_workbook_upload(filename, content):
        return parse_question_workbook(content)
    return parse_and_validate_questions(content, encoding=encoding)


__all__ = [
    "CHOICE_TYPES",
    "CsvQuestionInput",
    "ImportIssue",
    "ImportIssueKind",
    "MAX_OPTIONS",
    "OPTION_COLUMNS",
    "QUESTION_COLUMNS",
    "QuestionParseResult",
    "canonical_question_type",
    "decode_question_csv",
    "is_workbook_upload",
    "parse_and_validate_questions",
    "parse_question_upload",
    "parse_question_workbook",
    "validate_question_record",
    "validate_question_table",
]
