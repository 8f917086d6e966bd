"""Scoring primitives shared by every evolution mode."""

from __future__ import annotations

import random
from typing import Sequence, TypeVar, TYPE_CHECKING

from hyperevo.types import ALL_SKILL_TYPES

if TYPE_CHECKING:
    from hyperevo.store.base import Entity

T = TypeVar("T")


def clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return min(max(value, lo), hi)


def competitive_score(entity: Entity) -> float:
    """Rank used to decide adversarial pairings.

    30% success rate, 20% confidence, 20% experience (saturating at 100
    tasks), 15% learning velocity, 15% specialization breadth.
    """
    experience = clamp(entity.total_tasks_completed / 100)
    breadth = len(entity.task_specializations) / len(ALL_SKILL_TYPES)
    return (
        entity.success_rate * 0.30
        + entity.avg_confidence * 0.20
        + experience * 0.20
        + entity.learning_velocity * 0.15
        + breadth * 0.15
    )


def select_random(items: Sequence[T], count: int, rng: random.Random | None = None) -> list[T]:
    """Up to ``count`` distinct items, chosen by shuffle-then-slice."""
    shuffled = list(items)
    (rng or random).shuffle(shuffled)
    return shuffled[:max(0, count)]


def group_by_segment(entities: Sequence[Entity]) -> dict[str, list[Entity]]:
    """Partition by segment label; unset labels fall into GENERAL."""
    groups: dict[str, list[Entity]] = {}
    for entity in entities:
        groups.setdefault(entity.segment, []).append(entity)
    return groups
