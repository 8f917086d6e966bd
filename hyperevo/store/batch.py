"""Batched, retried writes.

Inserts are chunked and each chunk is retried on its own; a chunk that still
fails is logged and skipped so the remaining chunks are attempted. Updates run
one row at a time with a pacing delay between chunks, and every row reports
whether it was applied.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Awaitable, Callable, Sequence

from pydantic import BaseModel, Field

from hyperevo.exceptions import HyperEvoError
from hyperevo.retry import with_retry
from hyperevo.store.base import EntityUpdate, EvolutionStore, Record, Table
from hyperevo.types import EntityId

_logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


class InsertResult(BaseModel):
    inserted: int = 0
    failed_chunks: int = 0
    chunks: int = 0


class UpdateOutcome(BaseModel):
    entity_id: EntityId
    applied: bool
    reason: str = ""


class UpdateBatchResult(BaseModel):
    outcomes: list[UpdateOutcome] = Field(default_factory=list)

    @property
    def applied(self) -> list[UpdateOutcome]:
        return [o for o in self.outcomes if o.applied]

    @property
    def skipped(self) -> list[UpdateOutcome]:
        return [o for o in self.outcomes if not o.applied]

    @property
    def applied_ids(self) -> set[EntityId]:
        return {o.entity_id for o in self.outcomes if o.applied}


def _chunks(items: Sequence[Any], size: int) -> list[Sequence[Any]]:
    size = max(1, size)
    return [items[i:i + size] for i in range(0, len(items), size)]


async def batch_insert(
    store: EvolutionStore,
    table: Table,
    records: Sequence[Record],
    batch_size: int = 25,
    *,
    max_retries: int = 3,
    initial_delay: float = 0.2,
    rng: random.Random | None = None,
    sleep: Sleep = asyncio.sleep,
) -> InsertResult:
    """Insert ``records`` in chunks of ``batch_size``."""
    result = InsertResult()
    if not records:
        return result

    for index, chunk in enumerate(_chunks(records, batch_size), start=1):
        result.chunks += 1
        try:
            await with_retry(
                lambda chunk=chunk: store.insert(table, list(chunk)),
                max_retries,
                initial_delay,
                rng=rng,
                sleep=sleep,
            )
        except HyperEvoError as e:
            result.failed_chunks += 1
            _logger.error(
                "Batch insert into %s failed for chunk %d (%d rows): %s",
                Table(table).value, index, len(chunk), e,
            )
            continue
        result.inserted += len(chunk)

    return result


async def insert_one(
    store: EvolutionStore,
    table: Table,
    record: Record,
    *,
    max_retries: int = 3,
    initial_delay: float = 0.2,
    rng: random.Random | None = None,
    sleep: Sleep = asyncio.sleep,
) -> bool:
    """Insert a single record through the retry layer. True on success."""
    try:
        await with_retry(
            lambda: store.insert(table, [record]),
            max_retries,
            initial_delay,
            rng=rng,
            sleep=sleep,
        )
    except HyperEvoError as e:
        _logger.error("Insert into %s failed: %s", Table(table).value, e)
        return False
    return True


async def batch_update(
    store: EvolutionStore,
    updates: Sequence[EntityUpdate],
    batch_size: int = 10,
    pacing_delay: float = 0.1,
    *,
    max_retries: int = 3,
    initial_delay: float = 0.2,
    rng: random.Random | None = None,
    sleep: Sleep = asyncio.sleep,
) -> UpdateBatchResult:
    """Apply ``updates`` sequentially, pausing ``pacing_delay`` between chunks.

    A row that fails after retries, or whose entity no longer exists, is
    recorded as skipped; the batch always runs to the end.
    """
    result = UpdateBatchResult()
    chunks = _chunks(updates, batch_size)

    for index, chunk in enumerate(chunks):
        for update in chunk:
            try:
                found = await with_retry(
                    lambda update=update: store.update_entity(update),
                    max_retries,
                    initial_delay,
                    rng=rng,
                    sleep=sleep,
                )
            except HyperEvoError as e:
                _logger.error("Update of entity %s failed: %s", update.id, e)
                result.outcomes.append(
                    UpdateOutcome(entity_id=update.id, applied=False, reason=str(e))
                )
                continue
            if found:
                result.outcomes.append(UpdateOutcome(entity_id=update.id, applied=True))
            else:
                result.outcomes.append(
                    UpdateOutcome(entity_id=update.id, applied=False, reason="not found")
                )

        if pacing_delay > 0 and index < len(chunks) - 1:
            await sleep(pacing_delay)

    return result
