"""Hyper-parallel learning: every entity trains a random subset of skills at once."""

from __future__ import annotations

import math
from typing import Sequence

from hyperevo.evolution.modes.base import EvolutionResult, ModeContext, ModeOutcome, raise_skill
from hyperevo.evolution.scoring import clamp, select_random
from hyperevo.store.base import Entity, EntityUpdate, LearningEvent
from hyperevo.types import ALL_SKILL_TYPES


def skills_to_learn(base: int, per_intensity: int, intensity: float) -> int:
    return math.floor(base + intensity * per_intensity)


async def run(entities: Sequence[Entity], ctx: ModeContext) -> ModeOutcome:
    cfg = ctx.config
    intensity = ctx.intensity
    await ctx.log.info("hyper_parallel.start", entities=len(entities), intensity=intensity)

    count = skills_to_learn(cfg.base_skills_to_learn, cfg.skills_per_intensity, intensity)
    outcome = ModeOutcome()
    updates: list[EntityUpdate] = []
    events: list[LearningEvent] = []

    for entity in entities:
        specs = dict(entity.task_specializations)
        gain = 0.0
        for skill_type in select_random(ALL_SKILL_TYPES, count, ctx.rng):
            boost = intensity * (
                cfg.parallel_boost_base + ctx.rng.random() * cfg.parallel_boost_variance
            )
            if entity.skill(skill_type) < cfg.max_skill_score:
                raise_skill(specs, skill_type, boost)
                gain += boost

        updates.append(EntityUpdate(
            id=entity.id,
            task_specializations=specs,
            learning_velocity=entity.learning_velocity + intensity * cfg.velocity_increment_parallel,
        ))
        events.append(LearningEvent(
            entity_id=entity.id,
            event_type="hyper_parallel_learning",
            event_data={"skillsLearned": count, "knowledgeGain": gain, "intensity": intensity},
            impact_score=clamp(gain * 0.5),
        ))
        outcome.results.append(EvolutionResult(
            entity_id=entity.id,
            entity_name=entity.name,
            previous_score=entity.success_rate,
            new_score=clamp(entity.success_rate + gain * 0.05),
            evolution_gain=gain,
            knowledge_transferred=count,
        ))
        outcome.knowledge_gained += gain

    await ctx.persist(outcome, updates, events=events)
    await ctx.log.info(
        "hyper_parallel.complete",
        entities=len(outcome.results),
        knowledge_gained=round(outcome.knowledge_gained, 2),
    )
    return outcome
