"""HyperEvolutionEngine: the multi-cycle driver.

One run:
  1. Validate the request (mode, batch size, intensity, cycles, filters)
  2. For each cycle, fetch the stalest slice of the population
  3. Run the selected mode (full acceleration runs every mode in order)
  4. Fold applied updates back into the slice so later modes build on them
  5. Accumulate per-entity results and totals
  6. Write the ``hyper_evolution_complete`` audit event
  7. Return the summary report

Concurrent runs are not coordinated: two runs started together can select
overlapping slices and race on the same entities. Staleness ordering spreads
work across the population but does not guard against that.
"""

from __future__ import annotations

import asyncio
import math
import random
from typing import Any, Awaitable, Callable, Sequence

from pydantic import BaseModel, Field

from hyperevo.events.bus import EventBus
from hyperevo.evolution.modes import (
    adversarial,
    collective,
    crystallization,
    discovery,
    knowledge,
    parallel,
    visual,
)
from hyperevo.evolution.modes.base import EvolutionResult, ModeContext, ModeOutcome
from hyperevo.evolution.scoring import clamp
from hyperevo.evolution.tuning import DEFAULT_CONFIG, EvolutionConfig
from hyperevo.llm.base import BaseKnowledgeProvider
from hyperevo.retry import with_retry
from hyperevo.service_log import ServiceLogger
from hyperevo.store.base import Entity, EvolutionStore, LearningEvent, Table
from hyperevo.store.batch import insert_one
from hyperevo.types import FULL_ACCELERATION_ORDER, SENTINEL_ID, EntityId, EvolutionMode, new_id

Executor = Callable[[Sequence[Entity], ModeContext], Awaitable[ModeOutcome]]

MODE_EXECUTORS: dict[EvolutionMode, Executor] = {
    EvolutionMode.COLLECTIVE: collective.run,
    EvolutionMode.HYPER_PARALLEL: parallel.run,
    EvolutionMode.ADVERSARIAL: adversarial.run,
    EvolutionMode.CRYSTALLIZATION: crystallization.run,
    EvolutionMode.WEB_KNOWLEDGE: knowledge.run,
    EvolutionMode.VISUAL_INTELLIGENCE: visual.run,
    EvolutionMode.TASK_DISCOVERY: discovery.run,
}

BATCH_SIZE_RANGE = (1, 1000)
INTENSITY_RANGE = (0.1, 10.0)
CYCLES_RANGE = (1, 20)

TOP_EVOLUTIONS = 10


# ── Request ───────────────────────────────────────────────────


class EvolutionRequest(BaseModel):
    mode: EvolutionMode = EvolutionMode.FULL_ACCELERATION
    batch_size: int = Field(default=500, alias="batchSize")
    intensity_multiplier: float = Field(default=3.0, alias="intensityMultiplier")
    evolution_cycles: int = Field(default=5, alias="evolutionCycles")
    target_sector: str | None = Field(default=None, alias="targetSector")
    user_id: str | None = Field(default=None, alias="userId")

    model_config = {"populate_by_name": True}


def _number(value: Any, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if math.isnan(value) or math.isinf(value):
        return default
    return value


def _bounded(value: Any, default: float, bounds: tuple[float, float]) -> float:
    lo, hi = bounds
    return min(max(lo, _number(value, default)), hi)


def validate_request(body: Any) -> EvolutionRequest:
    """Coerce a raw request body into a bounded ``EvolutionRequest``.

    Unknown modes fall back to full acceleration; missing or non-numeric
    numbers fall back to their defaults; out-of-range numbers are clamped.
    """
    if not isinstance(body, dict):
        body = {}

    try:
        mode = EvolutionMode(body.get("mode"))
    except ValueError:
        mode = EvolutionMode.FULL_ACCELERATION

    target_sector = body.get("targetSector")
    user_id = body.get("userId")
    return EvolutionRequest(
        mode=mode,
        batch_size=int(_bounded(body.get("batchSize"), 500, BATCH_SIZE_RANGE)),
        intensity_multiplier=float(_bounded(body.get("intensityMultiplier"), 3.0, INTENSITY_RANGE)),
        evolution_cycles=int(_bounded(body.get("evolutionCycles"), 5, CYCLES_RANGE)),
        target_sector=str(target_sector) if target_sector else None,
        user_id=str(user_id) if user_id else None,
    )


# ── Report ────────────────────────────────────────────────────


class EvolutionSummary(BaseModel):
    mode: EvolutionMode
    total_agents_evolved: int = Field(default=0, alias="totalAgentsEvolved")
    evolution_cycles: int = Field(default=0, alias="evolutionCycles")
    total_knowledge_gained: float = Field(default=0.0, alias="totalKnowledgeGained")
    total_competitions: int = Field(default=0, alias="totalCompetitions")
    total_crystallizations: int = Field(default=0, alias="totalCrystallizations")
    total_tasks_discovered: int = Field(default=0, alias="totalTasksDiscovered")
    total_tasks_seeded: int = Field(default=0, alias="totalTasksSeeded")
    average_evolution_gain: float = Field(default=0.0, alias="averageEvolutionGain")
    duration_ms: int = Field(default=0, alias="durationMs")
    evolution_rate: str = Field(default="0 agents/sec", alias="evolutionRate")

    model_config = {"populate_by_name": True}


class EvolutionReport(BaseModel):
    """Outcome of one run, serialized as the response body."""

    request_id: str
    summary: EvolutionSummary
    top_evolutions: list[EvolutionResult] = Field(default_factory=list)
    population_fetches: int = 0

    @property
    def message(self) -> str:
        return (
            f"Hyper-evolution complete: {self.summary.total_agents_evolved} entities "
            f"evolved in {self.summary.evolution_cycles} cycles"
        )

    def to_response(self) -> dict[str, Any]:
        return {
            "success": True,
            "message": self.message,
            "summary": self.summary.model_dump(mode="json", by_alias=True),
            "topEvolutions": [r.model_dump(by_alias=True) for r in self.top_evolutions],
        }

    def __repr__(self) -> str:
        return (
            f"EvolutionReport(mode={self.summary.mode.value}, "
            f"entities={self.summary.total_agents_evolved}, "
            f"knowledge={self.summary.total_knowledge_gained})"
        )


# ── Engine ────────────────────────────────────────────────────


class HyperEvolutionEngine:
    """Runs evolution requests against one store."""

    def __init__(
        self,
        store: EvolutionStore,
        config: EvolutionConfig | None = None,
        search: BaseKnowledgeProvider | None = None,
        gateway: BaseKnowledgeProvider | None = None,
        event_bus: EventBus | None = None,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        persist_logs: bool = True,
    ) -> None:
        self._store = store
        self._config = config or DEFAULT_CONFIG
        self._search = search
        self._gateway = gateway
        self._event_bus = event_bus
        self._rng = rng or random.Random()
        self._sleep = sleep
        self._persist_logs = persist_logs

    @staticmethod
    def modes_for(mode: EvolutionMode) -> tuple[EvolutionMode, ...]:
        if mode == EvolutionMode.FULL_ACCELERATION:
            return FULL_ACCELERATION_ORDER
        return (mode,)

    async def run(self, request: EvolutionRequest, request_id: str | None = None) -> EvolutionReport:
        request_id = request_id or new_id()
        cfg = self._config
        log = ServiceLogger(
            "hyper-evolution",
            request_id=request_id,
            user_id=request.user_id,
            store=self._store if self._persist_logs else None,
        )
        timer = log.timer()
        await log.info(
            "evolution.start",
            mode=request.mode.value,
            batch=request.batch_size,
            intensity=request.intensity_multiplier,
            cycles=request.evolution_cycles,
        )
        await self._emit("evolution.run_started", {
            "request_id": request_id,
            "mode": request.mode.value,
            "cycles": request.evolution_cycles,
        })

        results: list[EvolutionResult] = []
        touched: set[EntityId] = set()
        totals = ModeOutcome()
        fetches = 0

        for cycle in range(1, request.evolution_cycles + 1):
            await log.info("evolution.cycle", cycle=cycle, of=request.evolution_cycles)
            await self._emit("evolution.cycle_started", {"request_id": request_id, "cycle": cycle})

            population = await with_retry(
                lambda: self._store.fetch_population(
                    request.batch_size, request.target_sector, request.user_id,
                ),
                cfg.db_max_retries,
                cfg.db_initial_retry_delay_s,
                rng=self._rng,
                sleep=self._sleep,
            )
            fetches += 1
            if not population:
                await log.info("evolution.cycle_empty", cycle=cycle)
                await self._emit("evolution.cycle_skipped", {"request_id": request_id, "cycle": cycle})
                continue

            ctx = ModeContext(
                store=self._store,
                log=log,
                intensity=request.intensity_multiplier,
                config=cfg,
                rng=self._rng,
                search=self._search,
                gateway=self._gateway,
                sleep=self._sleep,
            )
            by_id = {e.id: e for e in population}

            for mode in self.modes_for(request.mode):
                outcome = await MODE_EXECUTORS[mode](population, ctx)
                for update in outcome.applied:
                    if update.id in by_id:
                        by_id[update.id].apply(update)

                results.extend(outcome.results)
                touched |= outcome.touched_ids
                totals.knowledge_gained += outcome.knowledge_gained
                totals.competitions += outcome.competitions
                totals.crystallizations += outcome.crystallizations
                totals.tasks_discovered += outcome.tasks_discovered
                totals.tasks_seeded += outcome.tasks_seeded
                totals.skipped += outcome.skipped

                await self._emit("evolution.mode_completed", {
                    "request_id": request_id,
                    "cycle": cycle,
                    "mode": mode.value,
                    "knowledge_gained": outcome.knowledge_gained,
                    "updates_applied": len(outcome.applied),
                    "updates_skipped": outcome.skipped,
                })

        duration_ms = timer.elapsed_ms
        await insert_one(
            self._store,
            Table.LEARNING_EVENTS,
            LearningEvent(
                entity_id=results[0].entity_id if results else SENTINEL_ID,
                event_type="hyper_evolution_complete",
                event_data={
                    "request_id": request_id,
                    "mode": request.mode.value,
                    "totalResults": len(results),
                    "totalCycles": request.evolution_cycles,
                    "totalKnowledgeGained": totals.knowledge_gained,
                    "totalCompetitions": totals.competitions,
                    "totalCrystallizations": totals.crystallizations,
                    "totalTasksDiscovered": totals.tasks_discovered,
                    "totalTasksSeeded": totals.tasks_seeded,
                    "updatesSkipped": totals.skipped,
                    "durationMs": duration_ms,
                    "intensityMultiplier": request.intensity_multiplier,
                },
                impact_score=clamp(totals.knowledge_gained / 100),
            ),
            max_retries=cfg.db_max_retries,
            initial_delay=cfg.db_initial_retry_delay_s,
            rng=self._rng,
            sleep=self._sleep,
        )

        average = sum(r.evolution_gain for r in results) / len(results) if results else 0.0
        rate = len(results) / (max(duration_ms, 1) / 1000)
        summary = EvolutionSummary(
            mode=request.mode,
            total_agents_evolved=len(touched | {r.entity_id for r in results}),
            evolution_cycles=request.evolution_cycles,
            total_knowledge_gained=round(totals.knowledge_gained, 2),
            total_competitions=totals.competitions,
            total_crystallizations=totals.crystallizations,
            total_tasks_discovered=totals.tasks_discovered,
            total_tasks_seeded=totals.tasks_seeded,
            average_evolution_gain=round(average, 2),
            duration_ms=duration_ms,
            evolution_rate=f"{round(rate, 1)} agents/sec",
        )
        report = EvolutionReport(
            request_id=request_id,
            summary=summary,
            top_evolutions=sorted(results, key=lambda r: r.evolution_gain, reverse=True)[:TOP_EVOLUTIONS],
            population_fetches=fetches,
        )

        await log.info("evolution.complete", **summary.model_dump(mode="json"))
        await self._emit("evolution.run_completed", {
            "request_id": request_id,
            **summary.model_dump(mode="json", by_alias=True),
        })
        return report

    async def _emit(self, topic: str, data: dict) -> None:
        if self._event_bus:
            await self._event_bus.emit(topic, data, source="hyper_evolution_engine")
