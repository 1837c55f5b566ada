from __future__ import annotations

import unicodedata

import pytest

from app.services.gamification.program_labels import (
    LEVEL_LABELS,
    TOPIC_LABELS,
    describe_program_file,
    numbered_bank_unlock_level,
)


def test_numbered_bank_file():
    descriptor = describe_program_file("04_ノーコード(初級).csv")

    assert descriptor.title == "004. ノーコード (初級)"
    assert descriptor.program_type == "test"
    assert descriptor.level_requirement == 2
    assert descriptor.difficulty == "BEGINNER"
    assert descriptor.sequence == 4
    assert descriptor.xp_reward == 200


def test_intermediate_bank_uses_difficulty_multiplier():
    descriptor = describe_program_file("imports/test/07_データ活用(中級).csv")

    assert descriptor.level_requirement == 6
    assert descriptor.difficulty == "INTERMEDIATE"
    assert descriptor.xp_reward == 600


@pytest.mark.parametrize(
    ("label", "sequence", "expected"),
    [
        ("初級", 1, 1),
        ("初級", 3, 1),
        ("初級", 6, 2),
        ("初級", 7, 3),
        ("中級", 5, 5),
        ("中級", 6, 6),
        ("上級", 1, 9),
        ("特級", 1, 1),
        (None, 3, 1),
    ],
)
def test_numbered_bank_unlock_levels(label, sequence, expected):
    assert numbered_bank_unlock_level(label, sequence) == expected


@pytest.mark.parametrize(
    ("filename", "title", "level", "tier", "xp"),
    [
        ("認定試験_初級.csv", "認定試験 (初級)", 4, "BEGINNER", 1000),
        ("AI認定試験(中級).csv", "認定試験 (中級)", 8, "STANDARD", 3000),
        ("認定試験_上級.csv", "認定試験 (上級)", 10, "EXPERT", 10000),
    ],
)
def test_certification_exam_files(filename, title, level, tier, xp):
    descriptor = describe_program_file(filename)

    assert descriptor.program_type == "exam"
    assert descriptor.title == title
    assert descriptor.level_requirement == level
    assert descriptor.rank_tier == tier
    assert descriptor.xp_reward == xp


def test_decomposed_file_names_are_normalised():
    decomposed = unicodedata.normalize("NFD", "02_データ活用(初級).csv")

    descriptor = describe_program_file(decomposed)

    assert descriptor.title == "002. データ活用 (初級)"


def test_unrecognised_name_falls_back_to_stem(caplog):
    with caplog.at_level("WARNING"):
        descriptor = describe_program_file("misc questions.csv")

    assert descriptor.title == "misc questions"
    assert descriptor.program_type == "test"
    assert descriptor.level_requirement == 1
    assert descriptor.xp_reward == 150
    assert "misc questions.csv" in caplog.text


def test_label_maps_are_read_only():
    assert LEVEL_LABELS["beginner"] == "初級"
    assert TOPIC_LABELS["nocode"] == "ノーコード"
    with pytest.raises(TypeError):
        LEVEL_LABELS["expert"] = "特級"  # type: ignore[index]
