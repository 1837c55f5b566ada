"""XP, level and attempt completion helpers."""

from __future__ import annotations

from importlib import import_module
from typing import Any

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "AttemptOutcome": (
        "app.services.gamification.attempts",
        "AttemptOutcome",
    ),
    "start_attempt": (
        "app.services.gamification.attempts",
        "start_attempt",
    ),
    "submit_attempt": (
        "app.services.gamification.attempts",
        "submit_attempt",
    ),
    "CompletionResult": (
        "app.services.gamification.completion",
        "CompletionResult",
    ),
    "complete_activity": (
        "app.services.gamification.completion",
        "complete_activity",
    ),
    "LevelInfo": (
        "app.services.gamification.levels",
        "LevelInfo",
    ),
    "calculate_level": (
        "app.services.gamification.levels",
        "calculate_level",
    ),
    "get_level_progress": (
        "app.services.gamification.levels",
        "get_level_progress",
    ),
    "ProgramDescriptor": (
        "app.services.gamification.program_labels",
        "ProgramDescriptor",
    ),
    "describe_program_file": (
        "app.services.gamification.program_labels",
        "describe_program_file",
    ),
    "score_answers": (
        "app.services.gamification.scoring",
        "score_answers",
    ),
    "record_weaknesses": (
        "app.services.gamification.weaknesses",
        "record_weaknesses",
    ),
    "calculate_xp_reward": (
        "app.services.gamification.xp_config",
        "calculate_xp_reward",
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
