from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class QuestionRowPreview(BaseModel):
    row_index: int
    content: str
    question_type: str
    options: list[str]
    correct_indices: list[int]
    explanation: str | None = None
    difficulty: int
    points: int
    tags: list[str]
    category: str | None = None
    image_url: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ImportIssueItem(BaseModel):
    kind: str
    message: str
    row_index: int | None = None
    column: str | None = None


class QuestionImportPreviewResponse(BaseModel):
    rows: list[QuestionRowPreview]
    errors: list[str]
    issues: list[ImportIssueItem]
    valid_count: int
    error_count: int


class QuestionImportResponse(BaseModel):
    questions_imported: int
    question_ids: list[int]
    program_id: int | None = None
    links_created: int = 0


class QuestionOptionOut(BaseModel):
    id: int
    text: str
    sort_order: int
    is_correct: bool

    model_config = ConfigDict(from_attributes=True)


class AdminProgramQuestionItem(BaseModel):
    question_number: int
    id: int
    text: str
    question_type: str
    explanation: str | None = None
    difficulty: int
    points: int
    tags: list[str] | None = None
    category: str | None = None
    image_url: str | None = None
    options: list[QuestionOptionOut]


class AdminProgramQuestionsResponse(BaseModel):
    program_id: int
    title: str
    type: str
    items: list[AdminProgramQuestionItem]
