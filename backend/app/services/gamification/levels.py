from __future__ import annotations

from dataclasses import dataclass
from typing import Final


@dataclass(frozen=True)
class LevelThreshold:
    level: int
    min_xp: int
    rank: str


@dataclass(frozen=True)
class LevelInfo:
    level: int
    rank: str
    current_level_min: int
    next_level_min: int | None  # None at the top level


# Ordered by min_xp ascending
LEVEL_THRESHOLDS: Final[tuple[LevelThreshold, ...]] = (
    LevelThreshold(1, 0, "Beginner"),
    LevelThreshold(2, 300, "Beginner"),
    LevelThreshold(3, 1000, "Standard"),
    LevelThreshold(4, 3000, "Standard"),
    LevelThreshold(5, 6000, "Standard"),
    LevelThreshold(6, 10000, "Expert"),
    LevelThreshold(7, 15000, "Expert"),
    LevelThreshold(8, 22000, "Master"),
    LevelThreshold(9, 32000, "Master"),
    LevelThreshold(10, 50000, "Master"),
)

DEFAULT_RANK: Final[str] = LEVEL_THRESHOLDS[0].rank


def calculate_level(xp: int) -> LevelInfo:
    """Resolve the highest level whose minimum XP does not exceed ``xp``.

    XP below the first threshold (including negative values) resolves to
    the first level.
    """

    index = 0
    for position, threshold in enumerate(LEVEL_THRESHOLDS):
        if xp >= threshold.min_xp:
            index = position
        else:
            break

    current = LEVEL_THRESHOLDS[index]
    following = LEVEL_THRESHOLDS[index + 1] if index + 1 < len(LEVEL_THRESHOLDS) else None
    return LevelInfo(
        level=current.level,
        rank=current.rank,
        current_level_min=current.min_xp,
        next_level_min=following.min_xp if following else None,
    )


def get_level_progress(xp: int) -> float:
    """Percentage (0-100) of the way from the current level to the next."""

    info = calculate_level(xp)
    if info.next_level_min is None:
        return 100.0

    span = info.next_level_min - info.current_level_min
    progress = (xp - info.current_level_min) / span * 100
    return min(100.0, max(0.0, progress))


__all__ = [
    "DEFAULT_RANK",
    "LEVEL_THRESHOLDS",
    "LevelInfo",
    "LevelThreshold",
    "calculate_level",
    "get_level_progress",
]
