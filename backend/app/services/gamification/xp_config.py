"""Experience point rewards per activity.

The tables below are process-wide, read-only configuration. Rewards are
computed from the activity type and, depending on the type, the unlock
level of the program, the test difficulty or the exam rank tier:

* lectures pay a flat amount;
* tests pay ``floor((BASE + level * LEVEL_MULTIPLIER) * difficulty_multiplier)``;
* exams pay a flat amount per rank tier, derived from the level when no
  tier is given.

Unknown activity types earn nothing and unknown difficulty or tier names
fall back to the defaults; the calculator never raises.
"""

from __future__ import annotations

import math
from types import MappingProxyType
from typing import Final, Literal, Mapping

ActivityType = Literal["lecture", "test", "exam"]
Difficulty = Literal["BEGINNER", "INTERMEDIATE", "ADVANCED"]
RankTier = Literal["BEGINNER", "STANDARD", "EXPERT", "MASTER"]

LECTURE_DEFAULT_XP: Final[int] = 50

TEST_BASE_XP: Final[int] = 100
TEST_LEVEL_MULTIPLIER: Final[int] = 50
TEST_DIFFICULTY_MULTIPLIER: Final[Mapping[str, float]] = MappingProxyType(
    {
        "BEGINNER": 1.0,
        "INTERMEDIATE": 1.5,
        "ADVANCED": 2.0,
    }
)

EXAM_RANK_XP: Final[Mapping[str, int]] = MappingProxyType(
    {
        "BEGINNER": 1000,
        "STANDARD": 3000,
        "EXPERT": 10000,
        "MASTER": 30000,
    }
)

# Upper level bound (inclusive) for each exam tier when no tier is supplied
EXAM_LEVEL_BREAKPOINTS: Final[tuple[tuple[int, str], ...]] = (
    (2, "BEGINNER"),
    (5, "STANDARD"),
    (7, "EXPERT"),
)
EXAM_TOP_TIER: Final[str] = "MASTER"

# Used when a program row carries no explicit xp_reward
PROGRAM_DEFAULT_XP: Final[Mapping[str, int]] = MappingProxyType(
    {
        "lecture": 10,
        "test": 50,
        "exam": 100,
    }
)
PROGRAM_FALLBACK_XP: Final[int] = 10


def _normalise_key(value: str | None) -> str | None:
    if value is None:
        return None
    key = str(value).strip().upper()
    return key or None


def exam_tier_for_level(level: int) -> str:
    for upper_bound, tier in EXAM_LEVEL_BREAKPOINTS:
        if level <= upper_bound:
            return tier
    return EXAM_TOP_TIER


def calculate_xp_reward(
    activity_type: str,
    level: int,
    difficulty: str | None = None,
    rank_tier: str | None = None,
) -> int:
    """Return the non-negative XP awarded for completing an activity."""

    if activity_type == "lecture":
        return LECTURE_DEFAULT_XP

    if activity_type == "test":
        multiplier = TEST_DIFFICULTY_MULTIPLIER.get(_normalise_key(difficulty) or "", 1.0)
        base = TEST_BASE_XP + level * TEST_LEVEL_MULTIPLIER
        return max(0, math.floor(base * multiplier))

    if activity_type == "exam":
        tier = _normalise_key(rank_tier)
        if tier in EXAM_RANK_XP:
            return EXAM_RANK_XP[tier]
        return EXAM_RANK_XP[exam_tier_for_level(level)]

    return 0


def default_program_xp(program_type: str | None) -> int:
    return PROGRAM_DEFAULT_XP.get(program_type or "", PROGRAM_FALLBACK_XP)


__all__ = [
    "ActivityType",
    "Difficulty",
    "EXAM_RANK_XP",
    "LECTURE_DEFAULT_XP",
    "PROGRAM_DEFAULT_XP",
    "RankTier",
    "TEST_BASE_XP",
    "TEST_DIFFICULTY_MULTIPLIER",
    "TEST_LEVEL_MULTIPLIER",
    "calculate_xp_reward",
    "default_program_xp",
    "exam_tier_for_level",
]
