"""Shared plumbing for the evolution mode executors.

Every executor is an ``async def run(entities, ctx) -> ModeOutcome``. It reads
the in-memory slice, builds updates, memories and learning events, and writes
them through ``ModeContext.persist``. Executors never mutate the entities
they are given; the engine folds applied updates back afterwards.
"""

from __future__ import annotations

import asyncio
import math
import random
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Sequence

from pydantic import BaseModel, Field

from hyperevo.evolution.scoring import clamp
from hyperevo.evolution.tuning import DEFAULT_CONFIG, EvolutionConfig
from hyperevo.llm.base import BaseKnowledgeProvider, KnowledgeResponse
from hyperevo.retry import with_retry
from hyperevo.service_log import ServiceLogger
from hyperevo.store.base import (
    Entity,
    EntityUpdate,
    EvolutionStore,
    LearningEvent,
    MemoryRecord,
    Record,
    Table,
)
from hyperevo.store.batch import batch_insert, batch_update, insert_one
from hyperevo.types import EntityId

Sleep = Callable[[float], Awaitable[Any]]


class EvolutionResult(BaseModel):
    """Per-entity effect of one mode pass, as reported in ``topEvolutions``."""

    entity_id: EntityId = Field(alias="entityId")
    entity_name: str = Field(default="", alias="entityName")
    previous_score: float = Field(default=0.0, alias="previousScore")
    new_score: float = Field(default=0.0, alias="newScore")
    evolution_gain: float = Field(default=0.0, alias="evolutionGain")
    knowledge_transferred: int = Field(default=0, alias="knowledgeTransferred")
    competitions_won: int = Field(default=0, alias="competitionsWon")
    memories_crystallized: int = Field(default=0, alias="memoriesCrystallized")

    model_config = {"populate_by_name": True}


class ModeOutcome(BaseModel):
    results: list[EvolutionResult] = Field(default_factory=list)
    knowledge_gained: float = 0.0
    competitions: int = 0
    crystallizations: int = 0
    tasks_discovered: int = 0
    tasks_seeded: int = 0
    applied: list[EntityUpdate] = Field(default_factory=list)
    skipped: int = 0
    memories_written: int = 0
    events_written: int = 0

    @property
    def touched_ids(self) -> set[EntityId]:
        return {u.id for u in self.applied}


@dataclass
class ModeContext:
    """Everything an executor needs besides the population slice."""

    store: EvolutionStore
    log: ServiceLogger
    intensity: float = 3.0
    config: EvolutionConfig = DEFAULT_CONFIG
    rng: random.Random = field(default_factory=random.Random)
    search: BaseKnowledgeProvider | None = None
    gateway: BaseKnowledgeProvider | None = None
    sleep: Sleep = asyncio.sleep

    async def persist(
        self,
        outcome: ModeOutcome,
        updates: Sequence[EntityUpdate] = (),
        memories: Sequence[MemoryRecord] = (),
        events: Sequence[LearningEvent] = (),
    ) -> ModeOutcome:
        """Write a mode's output and record what landed on ``outcome``."""
        cfg = self.config
        if updates:
            batch = await batch_update(
                self.store,
                updates,
                cfg.agent_update_batch_size,
                cfg.batch_delay_s,
                max_retries=cfg.db_max_retries,
                initial_delay=cfg.db_initial_retry_delay_s,
                rng=self.rng,
                sleep=self.sleep,
            )
            applied = batch.applied_ids
            outcome.applied.extend(u for u in updates if u.id in applied)
            outcome.skipped += len(batch.skipped)
        if memories:
            written = await batch_insert(
                self.store, Table.MEMORIES, memories, cfg.memory_batch_size,
                max_retries=cfg.db_max_retries, initial_delay=cfg.db_initial_retry_delay_s,
                rng=self.rng, sleep=self.sleep,
            )
            outcome.memories_written += written.inserted
        if events:
            written = await batch_insert(
                self.store, Table.LEARNING_EVENTS, events, cfg.db_batch_size,
                max_retries=cfg.db_max_retries, initial_delay=cfg.db_initial_retry_delay_s,
                rng=self.rng, sleep=self.sleep,
            )
            outcome.events_written += written.inserted
        return outcome

    async def insert_one(self, table: Table, record: Record) -> bool:
        """Insert one record with the configured database retry policy."""
        return await insert_one(
            self.store, table, record,
            max_retries=self.config.db_max_retries,
            initial_delay=self.config.db_initial_retry_delay_s,
            rng=self.rng,
            sleep=self.sleep,
        )

    async def ask(
        self,
        provider: BaseKnowledgeProvider,
        system: str,
        user: str,
        **params: Any,
    ) -> KnowledgeResponse:
        """One provider call through the external-API retry policy."""
        return await with_retry(
            lambda: provider.complete(system, user, **params),
            self.config.api_max_retries,
            self.config.api_initial_retry_delay_s,
            max_delay=self.config.max_retry_delay_s,
            rng=self.rng,
            sleep=self.sleep,
        )


def raise_skill(specs: dict[str, float], skill_type: str, boost: float) -> None:
    """Add ``boost`` to one skill in a specialization map, clamped to 1."""
    specs[skill_type] = clamp(specs.get(skill_type, 0.0) + boost)


def segments_to_query(groups: dict[str, list[Entity]], per_intensity: int, intensity: float) -> list[str]:
    """First ``ceil(intensity * per_intensity)`` segments, in grouping order."""
    return list(groups)[: math.ceil(intensity * per_intensity)]
