from __future__ import annotations

from pydantic import BaseModel


class UserProgressResponse(BaseModel):
    user_id: int
    xp: int
    level: int
    rank: str
    current_level_min: int
    next_level_min: int | None
    progress: float
