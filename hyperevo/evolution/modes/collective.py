"""Collective intelligence: the best performers' skills flow to everyone.

Skill types held by the top performers are aggregated; every entity gets a
boost per aggregated type that grows with the number of holders, capped by
``collective_boost_max``.
"""

from __future__ import annotations

import math
from typing import Sequence

from hyperevo.evolution.modes.base import EvolutionResult, ModeContext, ModeOutcome, raise_skill
from hyperevo.evolution.scoring import clamp
from hyperevo.store.base import Entity, EntityUpdate, LearningEvent, MemoryRecord
from hyperevo.types import EntityId, MemoryType


def top_performers(entities: Sequence[Entity], min_rate: float, share: float) -> list[Entity]:
    ranked = sorted(
        (e for e in entities if e.success_rate > min_rate),
        key=lambda e: e.success_rate,
        reverse=True,
    )
    return ranked[: math.ceil(len(entities) * share)]


def aggregate_holders(performers: Sequence[Entity]) -> dict[str, list[EntityId]]:
    """Skill type -> ids of the top performers holding it."""
    holders: dict[str, list[EntityId]] = {}
    for performer in performers:
        for skill_type in performer.task_specializations:
            holders.setdefault(skill_type, []).append(performer.id)
    return holders


async def run(entities: Sequence[Entity], ctx: ModeContext) -> ModeOutcome:
    cfg = ctx.config
    intensity = ctx.intensity
    await ctx.log.info("collective.start", entities=len(entities), intensity=intensity)

    holders = aggregate_holders(
        top_performers(entities, cfg.min_top_performer_rate, cfg.top_performer_percentage)
    )

    outcome = ModeOutcome()
    updates: list[EntityUpdate] = []
    memories: list[MemoryRecord] = []
    events: list[LearningEvent] = []

    for entity in entities:
        specs = dict(entity.task_specializations)
        gain = 0.0
        transferred = 0
        for skill_type, ids in holders.items():
            boost = min(cfg.collective_boost_max, intensity * cfg.collective_boost_base * len(ids))
            if entity.skill(skill_type) < cfg.max_skill_score:
                raise_skill(specs, skill_type, boost)
                gain += boost
                transferred += 1

        updates.append(EntityUpdate(
            id=entity.id,
            task_specializations=specs,
            learning_velocity=entity.learning_velocity + intensity * cfg.velocity_increment_collective,
        ))

        if gain > cfg.collective_memory_threshold:
            memories.append(MemoryRecord(
                entity_id=entity.id,
                user_id=entity.user_id,
                memory_type=MemoryType.COLLECTIVE_LEARNING.value,
                content=(
                    f"Absorbed collective intelligence from {transferred} domains, "
                    f"gaining {gain * 100:.0f}% knowledge boost through the shared network."
                ),
                importance_score=clamp(gain),
                context={"mode": "collective", "transferred": transferred, "intensity": intensity},
            ))
            events.append(LearningEvent(
                entity_id=entity.id,
                event_type="collective_absorption",
                event_data={"transferred": transferred, "knowledgeGain": gain, "intensity": intensity},
                impact_score=clamp(gain),
            ))

        outcome.results.append(EvolutionResult(
            entity_id=entity.id,
            entity_name=entity.name,
            previous_score=entity.success_rate,
            new_score=clamp(entity.success_rate + gain * 0.1),
            evolution_gain=gain,
            knowledge_transferred=transferred,
        ))
        outcome.knowledge_gained += gain

    await ctx.persist(outcome, updates, memories, events)
    await ctx.log.info(
        "collective.complete",
        entities=len(outcome.results),
        knowledge_gained=round(outcome.knowledge_gained, 2),
    )
    return outcome
