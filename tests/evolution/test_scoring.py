"""Tests for the shared scoring primitives."""

import random

import pytest

from hyperevo.evolution.scoring import clamp, competitive_score, group_by_segment, select_random
from hyperevo.store.base import Entity
from hyperevo.types import ALL_SKILL_TYPES


@pytest.mark.parametrize("value,expected", [(-0.5, 0.0), (0.25, 0.25), (1.7, 1.0)])
def test_clamp(value, expected):
    assert clamp(value) == expected


def test_competitive_score_weights():
    blank = Entity(id="a")
    assert competitive_score(blank) == pytest.approx(0.5 * 0.15)

    full = Entity(
        id="b",
        success_rate=1.0,
        avg_confidence=1.0,
        total_tasks_completed=250,
        learning_velocity=1.0,
        task_specializations={s: 0.5 for s in ALL_SKILL_TYPES},
    )
    assert competitive_score(full) == pytest.approx(1.0)


def test_competitive_score_experience_saturates():
    a = Entity(id="a", total_tasks_completed=100)
    b = Entity(id="b", total_tasks_completed=10_000)
    assert competitive_score(a) == competitive_score(b)


def test_select_random_is_distinct_and_bounded():
    picked = select_random(ALL_SKILL_TYPES, 5, random.Random(3))
    assert len(picked) == 5
    assert len(set(picked)) == 5
    assert select_random(["x", "y"], 10, random.Random(3)) in (["x", "y"], ["y", "x"])
    assert select_random(["x"], -1) == []


def test_select_random_is_reproducible():
    assert select_random(ALL_SKILL_TYPES, 4, random.Random(11)) == select_random(
        ALL_SKILL_TYPES, 4, random.Random(11)
    )


def test_group_by_segment_defaults_to_general():
    groups = group_by_segment([
        Entity(id="a", sector="FINANCE"),
        Entity(id="b"),
        Entity(id="c", sector="FINANCE"),
        Entity(id="d", sector=None),
    ])
    assert list(groups) == ["FINANCE", "GENERAL"]
    assert [e.id for e in groups["FINANCE"]] == ["a", "c"]
    assert [e.id for e in groups["GENERAL"]] == ["b", "d"]
