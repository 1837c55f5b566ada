from __future__ import annotations

from datetime import datetime
from typing import Union

from pydantic import BaseModel, ConfigDict, Field


AnswerValue = Union[int, list[int], str, None]


class AttemptStartResponse(BaseModel):
    history_id: int
    program_id: int
    status: str
    started_at: datetime


class AttemptSubmitRequest(BaseModel):
    # Keys are question ids (tests/exams) or 1-based quiz positions (lectures)
    answers: dict[int, AnswerValue] = Field(default_factory=dict)
    text_verdicts: dict[int, bool] = Field(default_factory=dict)


class AttemptSubmitResponse(BaseModel):
    history_id: int
    score: int
    passed: bool
    correct_count: int
    total: int
    incorrect_question_ids: list[int]
    xp_gained: int
    new_rank: str
    is_rank_up: bool
    already_completed: bool


class ProgramItem(BaseModel):
    id: int
    title: str
    type: str
    category: str | None = None
    xp_reward: int | None = None
    level_requirement: int
    passing_score: int | None = None
    time_limit: int | None = None

    model_config = ConfigDict(from_attributes=True)
