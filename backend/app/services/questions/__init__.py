"""Question bank import and export helpers."""

from __future__ import annotations

from importlib import import_module
from typing import Any

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "CsvQuestionInput": (
        "app.services.questions.csv_parser",
        "CsvQuestionInput",
    ),
    "ImportIssue": (
        "app.services.questions.csv_parser",
        "ImportIssue",
    ),
    "ImportIssueKind": (
        "app.services.questions.csv_parser",
        "ImportIssueKind",
    ),
    "QuestionParseResult": (
        "app.services.questions.csv_parser",
        "QuestionParseResult",
    ),
    "parse_and_validate_questions": (
        "app.services.questions.csv_parser",
        "parse_and_validate_questions",
    ),
    "parse_question_upload": (
        "app.services.questions.csv_parser",
        "parse_question_upload",
    ),
    "parse_question_workbook": (
        "app.services.questions.csv_parser",
        "parse_question_workbook",
    ),
    "ProgramImporter": (
        "app.services.questions.importer",
        "ProgramImporter",
    ),
    "QuestionImportError": (
        "app.services.questions.importer",
        "QuestionImportError",
    ),
    "QuestionImporter": (
        "app.services.questions.importer",
        "QuestionImporter",
    ),
    "preview_questions": (
        "app.services.questions.importer",
        "preview_questions",
    ),
    "QuestionTemplateExporter": (
        "app.services.questions.template_exporter",
        "QuestionTemplateExporter",
    ),
    "record_question_import_log": (
        "app.services.questions.audit",
        "record_question_import_log",
    ),
}

__all__ = sorted(_LAZY_IMPORTS)


def __getattr__(name: str) -> Any:
    try:
        module_path, attribute = _LAZY_IMPORTS[name]
    except KeyError as exc:  # pragma: no cover - defensive branch
        raise AttributeError(name) from exc

    module = import_module(module_path)
    value = getattr(module, attribute)
    globals()[name] = value
    return value


def __dir__() -> list[str]:  # pragma: no cover - simple proxy
    return list(__all__)
