"""Memory crystallization: distill the strongest memories and spread them.

Important memories of the best performers are copied as ``crystallized``
memories with boosted importance, then every entity in the slice receives a
random handful of crystals that did not originate from itself.
"""

from __future__ import annotations

import math
from typing import Sequence

from hyperevo.evolution.modes.base import ModeContext, ModeOutcome
from hyperevo.evolution.scoring import clamp, select_random
from hyperevo.evolution.tuning import EvolutionConfig
from hyperevo.exceptions import HyperEvoError
from hyperevo.retry import with_retry
from hyperevo.store.base import Entity, EntityUpdate, LearningEvent, MemoryRecord
from hyperevo.types import SENTINEL_ID, EntityId, MemoryType

CRYSTAL_TAG = "[CRYSTALLIZED]"
RECEIVED_TAG = "[RECEIVED]"


def source_ids(entities: Sequence[Entity], cfg: EvolutionConfig) -> list[EntityId]:
    """Best performers above the threshold, or the best few regardless of it."""
    ranked = sorted(entities, key=lambda e: e.success_rate, reverse=True)
    above = [e.id for e in ranked if e.success_rate > cfg.crystallization_threshold]
    if above:
        return above[: cfg.crystallization_max_sources]
    return [e.id for e in ranked[: cfg.crystallization_fallback_sources]]


def crystallize(memories: Sequence[MemoryRecord], intensity: float, cfg: EvolutionConfig) -> list[MemoryRecord]:
    """One crystal per distinct content prefix, in input order."""
    seen: set[str] = set()
    crystals: list[MemoryRecord] = []
    for memory in memories:
        prefix = memory.content[: cfg.crystal_dedupe_prefix]
        if prefix in seen:
            continue
        seen.add(prefix)
        crystals.append(MemoryRecord(
            entity_id=memory.entity_id,
            user_id=memory.user_id,
            memory_type=MemoryType.CRYSTALLIZED.value,
            content=f"{CRYSTAL_TAG} {memory.content}",
            importance_score=clamp(memory.importance_score + intensity * cfg.crystal_importance_boost),
            context={
                **memory.context,
                "crystallized": True,
                "original_importance": memory.importance_score,
                "crystallization_intensity": intensity,
            },
        ))
    return crystals


async def _load_memories(ids: list[EntityId], ctx: ModeContext) -> list[MemoryRecord]:
    cfg = ctx.config

    async def _retry(op):
        return await with_retry(
            op, cfg.db_max_retries, cfg.db_initial_retry_delay_s, rng=ctx.rng, sleep=ctx.sleep,
        )

    memories = await _retry(
        lambda: ctx.store.top_memories(ids, cfg.crystal_min_importance, cfg.crystal_memory_limit)
    )
    if memories:
        return memories

    recent = await _retry(lambda: ctx.store.recent_memories(ids, cfg.crystal_fallback_memory_limit))
    return [
        m.model_copy(update={
            "importance_score": max(m.importance_score, cfg.crystal_fallback_importance_floor),
        })
        for m in recent
    ]


async def run(entities: Sequence[Entity], ctx: ModeContext) -> ModeOutcome:
    cfg = ctx.config
    intensity = ctx.intensity
    outcome = ModeOutcome()
    await ctx.log.info("crystallization.start", entities=len(entities))

    ids = source_ids(entities, cfg)
    if not ids:
        await ctx.log.info("crystallization.no_sources")
        return outcome

    try:
        memories = await _load_memories(ids, ctx)
    except HyperEvoError as e:
        await ctx.log.error("crystallization.memory_fetch_failed", error=e)
        return outcome
    if not memories:
        await ctx.log.info("crystallization.no_memories")
        return outcome

    crystals = crystallize(memories, intensity, cfg)
    outcome.crystallizations = len(crystals)

    received: list[MemoryRecord] = []
    updates: list[EntityUpdate] = []
    per_entity = math.ceil(intensity * cfg.crystals_per_intensity)
    for entity in entities:
        for crystal in select_random(crystals, per_entity, ctx.rng):
            if crystal.entity_id == entity.id:
                continue
            received.append(MemoryRecord(
                entity_id=entity.id,
                user_id=entity.user_id,
                memory_type=MemoryType.RECEIVED_CRYSTAL.value,
                content=crystal.content.replace(CRYSTAL_TAG, RECEIVED_TAG, 1),
                importance_score=crystal.importance_score * cfg.crystal_propagation_factor,
                context={"source_entity": crystal.entity_id, "propagated": True},
            ))
            outcome.knowledge_gained += cfg.crystal_propagation_gain

        updates.append(EntityUpdate(
            id=entity.id,
            learning_velocity=entity.learning_velocity + intensity * cfg.velocity_increment_crystal,
        ))

    event = LearningEvent(
        entity_id=entities[0].id if entities else SENTINEL_ID,
        event_type="memory_crystallization_complete",
        event_data={
            "crystallized": len(crystals),
            "propagated": len(received),
            "entitiesAffected": len(entities),
            "intensity": intensity,
        },
        impact_score=clamp(len(crystals) * 0.02),
    )
    await ctx.persist(outcome, updates, [*crystals, *received], [event])
    await ctx.log.info(
        "crystallization.complete", crystallized=len(crystals), propagated=len(received),
    )
    return outcome
