"""Derive program metadata from question-bank file names.

Test banks are named ``<number>_<topic>(<level label>).csv``, e.g.
``04_ノーコード(初級).csv``; certification exams carry ``認定試験`` and a
level label somewhere in the name. The label drives the unlock level,
the test difficulty, the exam rank tier and therefore the XP reward.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from dataclasses import dataclass
from pathlib import PurePath
from types import MappingProxyType
from typing import Final, Mapping

from app.services.gamification.xp_config import calculate_xp_reward

logger = logging.getLogger(__name__)

LABEL_BEGINNER: Final[str] = "初級"
LABEL_INTERMEDIATE: Final[str] = "中級"
LABEL_ADVANCED: Final[str] = "上級"
CERTIFICATION_MARKER: Final[str] = "認定試験"

LEVEL_LABELS: Final[Mapping[str, str]] = MappingProxyType(
    {
        "beginner": LABEL_BEGINNER,
        "intermediate": LABEL_INTERMEDIATE,
        "advanced": LABEL_ADVANCED,
    }
)

TOPIC_LABELS: Final[Mapping[str, str]] = MappingProxyType(
    {
        "basics": "環境・基礎",
        "efficiency": "業務効率化",
        "data": "データ活用",
        "nocode": "ノーコード",
        "communication": "コミュニケーション",
        "career": "キャリアスキル",
        "creative": "クリエイティブ",
        "ethics": "倫理・セキュリティ",
        "usecases": "ユースケース",
        "mindset": "マインドセット",
    }
)

LABEL_DIFFICULTY: Final[Mapping[str, str]] = MappingProxyType(
    {
        LABEL_BEGINNER: "BEGINNER",
        LABEL_INTERMEDIATE: "INTERMEDIATE",
        LABEL_ADVANCED: "ADVANCED",
    }
)

LABEL_RANK_TIER: Final[Mapping[str, str]] = MappingProxyType(
    {
        LABEL_BEGINNER: "BEGINNER",
        LABEL_INTERMEDIATE: "STANDARD",
        LABEL_ADVANCED: "EXPERT",
    }
)

CERTIFICATION_UNLOCK_LEVEL: Final[Mapping[str, int]] = MappingProxyType(
    {
        LABEL_BEGINNER: 4,
        LABEL_INTERMEDIATE: 8,
        LABEL_ADVANCED: 10,
    }
)

_SEQUENCE_PATTERN = re.compile(r"^\d+$")


@dataclass(frozen=True)
class ProgramDescriptor:
    title: str
    program_type: str
    level_requirement: int
    xp_reward: int
    level_label: str | None = None
    sequence: int | None = None
    difficulty: str | None = None
    rank_tier: str | None = None


def numbered_bank_unlock_level(label: str | None, sequence: int | None) -> int:
    """Unlock level for a numbered test bank."""

    if label is None or sequence is None:
        return 1
    if label == LABEL_BEGINNER:
        if sequence <= 3:
            return 1
        if sequence <= 6:
            return 2
        return 3
    if label == LABEL_INTERMEDIATE:
        return 5 if sequence <= 5 else 6
    if label == LABEL_ADVANCED:
        return 9
    return 1


def _split_numbered_name(name: str) -> tuple[int, str, str] | None:
    underscore = name.find("_")
    open_paren = name.rfind("(")
    close_paren = name.rfind(")")
    if underscore <= 0 or open_paren <= underscore or close_paren <= open_paren:
        return None
    number = name[:underscore].strip()
    if not _SEQUENCE_PATTERN.match(number):
        return None
    topic = name[underscore + 1 : open_paren].strip()
    label = name[open_paren + 1 : close_paren].strip()
    return int(number), topic, label


def _certification_label(name: str) -> str | None:
    for label in (LABEL_BEGINNER, LABEL_INTERMEDIATE, LABEL_ADVANCED):
        if label in name:
            return label
    return None


def describe_program_file(filename: str) -> ProgramDescriptor:
    """Build the program descriptor for a question-bank file name."""

    name = unicodedata.normalize("NFC", PurePath(filename).name)
    stem = name[:-4] if name.lower().endswith(".csv") else name

    numbered = _split_numbered_name(stem)
    if numbered is not None:
        sequence, topic, label = numbered
        level = numbered_bank_unlock_level(label, sequence)
        difficulty = LABEL_DIFFICULTY.get(label)
        return ProgramDescriptor(
            title=f"{sequence:03d}. {topic} ({label})",
            program_type="test",
            level_requirement=level,
            xp_reward=calculate_xp_reward("test", level, difficulty),
            level_label=label,
            sequence=sequence,
            difficulty=difficulty,
        )

    if CERTIFICATION_MARKER in stem:
        label = _certification_label(stem)
        level = CERTIFICATION_UNLOCK_LEVEL.get(label or "", 1)
        rank_tier = LABEL_RANK_TIER.get(label or "")
        title = f"{CERTIFICATION_MARKER} ({label})" if label else CERTIFICATION_MARKER
        return ProgramDescriptor(
            title=title,
            program_type="exam",
            level_requirement=level,
            xp_reward=calculate_xp_reward("exam", level, rank_tier=rank_tier),
            level_label=label,
            rank_tier=rank_tier,
        )

    logger.warning("Program file name did not match any naming rule: %s", filename)
    return ProgramDescriptor(
        title=stem,
        program_type="test",
        level_requirement=1,
        xp_reward=calculate_xp_reward("test", 1),
    )


__all__ = [
    "CERTIFICATION_MARKER",
    "LEVEL_LABELS",
    "ProgramDescriptor",
    "TOPIC_LABELS",
    "describe_program_file",
    "numbered_bank_unlock_level",
]
