"""Tests for the SQLite store."""

from datetime import datetime, timedelta, timezone

import aiosqlite
import pytest

from hyperevo.exceptions import ConfigurationError
from hyperevo.store.base import (
    Entity,
    EntityUpdate,
    LearningEvent,
    MemoryRecord,
    Relationship,
    Table,
    TaskQueueItem,
)
from hyperevo.store.sqlite import SQLiteStore


def _at(minutes: int) -> datetime:
    return datetime(2025, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=minutes)


def test_missing_path_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        SQLiteStore("")


def test_entity_scores_are_clamped_on_construction():
    e = Entity(
        id="x", learning_velocity=None, success_rate=1.7, avg_confidence=-0.2,
        task_specializations={"research": 3.0, "strategy": -1},
    )
    assert e.learning_velocity == 0.5
    assert e.success_rate == 1.0
    assert e.avg_confidence == 0.0
    assert e.task_specializations == {"research": 1.0, "strategy": 0.0}
    assert e.segment == "GENERAL"


def test_null_and_non_numeric_scores_fall_back_to_defaults():
    e = Entity(
        id="x", learning_velocity="fast", success_rate=float("nan"),
        task_specializations={"research": None, "strategy": "high", "analysis": "0.4"},
    )
    assert e.learning_velocity == 0.5
    assert e.success_rate == 0.0
    assert e.task_specializations == {"research": 0.0, "strategy": 0.0, "analysis": 0.4}


@pytest.mark.asyncio
async def test_row_with_null_specialization_loads(store):
    async with aiosqlite.connect(store.db_path) as db:
        await db.execute(
            "INSERT INTO entities (id, sector, task_specializations) VALUES (?, ?, ?)",
            ("raw", "FINANCE", '{"research": null, "strategy": 0.7}'),
        )
        await db.commit()

    (entity,) = await store.fetch_population(limit=5)
    assert entity.id == "raw"
    assert entity.task_specializations == {"research": 0.0, "strategy": 0.7}


@pytest.mark.asyncio
async def test_population_is_staleness_ordered_nulls_first(store):
    await store.register_entities([
        Entity(id="old", last_performance_update=_at(1)),
        Entity(id="never"),
        Entity(id="newer", last_performance_update=_at(5)),
        Entity(id="never2"),
    ])

    population = await store.fetch_population(limit=10)
    assert [e.id for e in population] == ["never", "never2", "old", "newer"]

    assert [e.id for e in await store.fetch_population(limit=2)] == ["never", "never2"]


@pytest.mark.asyncio
async def test_population_filters(store):
    await store.register_entities([
        Entity(id="a", sector="FINANCE", user_id="u1"),
        Entity(id="b", sector="FINANCE", user_id="u2"),
        Entity(id="c", sector="LEGAL", user_id="u1"),
    ])
    assert {e.id for e in await store.fetch_population(10, sector="FINANCE")} == {"a", "b"}
    assert {e.id for e in await store.fetch_population(10, user_id="u1")} == {"a", "c"}
    assert [e.id for e in await store.fetch_population(10, "FINANCE", "u1")] == ["a"]


@pytest.mark.asyncio
async def test_update_entity_partial(store):
    await store.register_entities([
        Entity(id="a", success_rate=0.4, learning_velocity=0.3, task_specializations={"research": 0.2}),
    ])
    ok = await store.update_entity(EntityUpdate(id="a", learning_velocity=0.9, last_performance_update=_at(3)))
    assert ok

    a = await store.get_entity("a")
    assert a.learning_velocity == 0.9
    assert a.success_rate == 0.4
    assert a.task_specializations == {"research": 0.2}
    assert a.last_performance_update == _at(3)


@pytest.mark.asyncio
async def test_update_missing_entity_returns_false(store):
    assert not await store.update_entity(EntityUpdate(id="ghost", success_rate=0.5))


@pytest.mark.asyncio
async def test_relationship_upsert_is_per_unordered_pair(store):
    await store.upsert_relationship(Relationship(entity_a_id="a", entity_b_id="b", synergy_score=0.6))
    await store.upsert_relationship(Relationship(entity_a_id="b", entity_b_id="a", synergy_score=0.9))
    await store.upsert_relationship(Relationship(entity_a_id="a", entity_b_id="c"))

    rels = await store.relationships()
    assert len(rels) == 2
    ab = [r for r in rels if r.pair_key == "a:b"][0]
    assert ab.entity_a_id == "b"
    assert ab.synergy_score == 0.9


@pytest.mark.asyncio
async def test_memory_queries(store):
    await store.insert(Table.MEMORIES, [
        MemoryRecord(entity_id="a", memory_type="experience", content="low", importance_score=0.2, created_at=_at(1)),
        MemoryRecord(entity_id="a", memory_type="experience", content="high", importance_score=0.9, created_at=_at(2)),
        MemoryRecord(entity_id="b", memory_type="insight", content="mid", importance_score=0.5, created_at=_at(3)),
        MemoryRecord(entity_id="z", memory_type="insight", content="other", importance_score=0.99, created_at=_at(4)),
    ])

    top = await store.top_memories(["a", "b"], min_importance=0.3, limit=10)
    assert [m.content for m in top] == ["high", "mid"]

    recent = await store.recent_memories(["a", "b"], limit=2)
    assert [m.content for m in recent] == ["mid", "high"]

    assert await store.top_memories([], 0.0, 10) == []


@pytest.mark.asyncio
async def test_json_columns_round_trip(store):
    await store.insert(Table.TASK_QUEUE, [
        TaskQueueItem(
            user_id="u1", title="t", task_type="research",
            assigned_entities=["a"], input_data={"complexity": 4},
            suggestions=[{"entity_id": "a", "confidence": 0.5}],
        ),
    ])
    await store.insert(Table.LEARNING_EVENTS, [
        LearningEvent(entity_id="a", event_type="x", event_data={"k": [1, 2]}, impact_score=2.0),
    ])

    [item] = await store.task_queue()
    assert item.assigned_entities == ["a"]
    assert item.input_data == {"complexity": 4}
    assert item.status == "pending"
    assert item.orchestration_mode == "training"

    [event] = await store.learning_events("x")
    assert event.event_data == {"k": [1, 2]}
    assert event.impact_score == 1.0

    counts = await store.counts()
    assert counts["task_queue"] == 1
    assert counts["learning_events"] == 1
