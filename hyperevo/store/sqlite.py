"""SQLite-backed store.

Opens a short-lived connection per operation. Driver errors are re-raised as
``StoreError`` carrying the driver message, so callers can classify them for
retry.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator

import aiosqlite
import orjson

from hyperevo.exceptions import ConfigurationError, StoreError
from hyperevo.migrations.runner import apply_migrations
from hyperevo.store.base import (
    Entity,
    EntityUpdate,
    EvolutionStore,
    LearningEvent,
    MemoryRecord,
    Record,
    Relationship,
    Table,
    TaskQueueItem,
    utcnow,
)
from hyperevo.types import EntityId, UserId

logger = logging.getLogger(__name__)

_ENTITY_COLUMNS = (
    "id, name, sector, status, user_id, learning_velocity, success_rate, "
    "avg_confidence, total_tasks_completed, task_specializations, "
    "last_performance_update"
)

# JSON-encoded columns per table
_JSON_FIELDS: dict[Table, set[str]] = {
    Table.MEMORIES: {"context"},
    Table.LEARNING_EVENTS: {"event_data"},
    Table.TASK_QUEUE: {"assigned_entities", "input_data", "suggestions"},
    Table.SERVICE_LOGS: {"metadata"},
}


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat(timespec="microseconds")
    return value


def _row_to_entity(row: aiosqlite.Row) -> Entity:
    return Entity(
        id=row["id"],
        name=row["name"],
        sector=row["sector"],
        status=row["status"],
        user_id=row["user_id"],
        learning_velocity=row["learning_velocity"],
        success_rate=row["success_rate"],
        avg_confidence=row["avg_confidence"],
        total_tasks_completed=row["total_tasks_completed"],
        task_specializations=orjson.loads(row["task_specializations"] or "{}"),
        last_performance_update=(
            datetime.fromisoformat(row["last_performance_update"])
            if row["last_performance_update"] else None
        ),
    )


def _row_to_memory(row: aiosqlite.Row) -> MemoryRecord:
    return MemoryRecord(
        id=row["id"],
        entity_id=row["entity_id"],
        user_id=row["user_id"],
        memory_type=row["memory_type"],
        content=row["content"],
        importance_score=row["importance_score"],
        context=orjson.loads(row["context"] or "{}"),
        created_at=datetime.fromisoformat(row["created_at"]),
    )


class SQLiteStore(EvolutionStore):
    """Evolution store on a single SQLite file."""

    def __init__(self, db_path: str) -> None:
        if not db_path:
            raise ConfigurationError("Missing required store configuration: db_path")
        self._db_path = db_path

    @property
    def db_path(self) -> str:
        return self._db_path

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        try:
            async with aiosqlite.connect(self._db_path) as db:
                db.row_factory = aiosqlite.Row
                yield db
        except aiosqlite.Error as e:
            raise StoreError(f"sqlite error: {e}") from e

    async def initialize(self) -> None:
        try:
            applied = await apply_migrations(self._db_path)
        except aiosqlite.Error as e:
            raise StoreError(f"sqlite error: {e}") from e
        if applied:
            logger.info("Applied schema migrations %s to %s", applied, self._db_path)

    # ── Entities ──────────────────────────────────────────────────

    async def register_entities(self, entities: list[Entity]) -> int:
        async with self._connect() as db:
            await db.executemany(
                f"INSERT OR REPLACE INTO entities ({_ENTITY_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                [
                    (
                        e.id, e.name, e.sector, e.status, e.user_id,
                        e.learning_velocity, e.success_rate, e.avg_confidence,
                        e.total_tasks_completed,
                        orjson.dumps(e.task_specializations).decode(),
                        _encode(e.last_performance_update),
                    )
                    for e in entities
                ],
            )
            await db.commit()
        return len(entities)

    async def fetch_population(
        self,
        limit: int,
        sector: str | None = None,
        user_id: UserId | None = None,
    ) -> list[Entity]:
        conditions = []
        params: list[Any] = []
        if sector:
            conditions.append("sector = ?")
            params.append(sector)
        if user_id:
            conditions.append("user_id = ?")
            params.append(user_id)

        where = " AND ".join(conditions) if conditions else "1=1"
        sql = (
            f"SELECT {_ENTITY_COLUMNS} FROM entities WHERE {where} "
            "ORDER BY last_performance_update IS NOT NULL, "
            "last_performance_update ASC, rowid ASC LIMIT ?"
        )
        params.append(limit)

        async with self._connect() as db:
            async with db.execute(sql, params) as cursor:
                return [_row_to_entity(row) async for row in cursor]

    async def get_entity(self, entity_id: EntityId) -> Entity | None:
        async with self._connect() as db:
            async with db.execute(
                f"SELECT {_ENTITY_COLUMNS} FROM entities WHERE id = ?", (entity_id,)
            ) as cursor:
                row = await cursor.fetchone()
        return _row_to_entity(row) if row else None

    async def update_entity(self, update: EntityUpdate) -> bool:
        assignments = ["last_performance_update = ?"]
        params: list[Any] = [_encode(update.last_performance_update)]
        if update.task_specializations is not None:
            assignments.append("task_specializations = ?")
            params.append(orjson.dumps(update.task_specializations).decode())
        if update.learning_velocity is not None:
            assignments.append("learning_velocity = ?")
            params.append(update.learning_velocity)
        if update.success_rate is not None:
            assignments.append("success_rate = ?")
            params.append(update.success_rate)
        params.append(update.id)

        async with self._connect() as db:
            cursor = await db.execute(
                f"UPDATE entities SET {', '.join(assignments)} WHERE id = ?", params
            )
            await db.commit()
            return cursor.rowcount > 0

    # ── Append-only records ───────────────────────────────────────

    async def insert(self, table: Table, records: list[Record]) -> int:
        if not records:
            return 0
        table = Table(table)
        json_fields = _JSON_FIELDS[table]
        rows = [r.model_dump() for r in records]
        columns = list(rows[0].keys())
        values = [
            tuple(
                orjson.dumps(row[c], default=str).decode() if c in json_fields else _encode(row[c])
                for c in columns
            )
            for row in rows
        ]
        placeholders = ", ".join("?" for _ in columns)
        async with self._connect() as db:
            await db.executemany(
                f"INSERT INTO {table.value} ({', '.join(columns)}) VALUES ({placeholders})",
                values,
            )
            await db.commit()
        return len(rows)

    async def upsert_relationship(self, relationship: Relationship) -> None:
        async with self._connect() as db:
            await db.execute(
                """INSERT INTO relationships
                   (pair_key, relationship_type, entity_a_id, entity_b_id,
                    synergy_score, metadata, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?)
                   ON CONFLICT(pair_key, relationship_type) DO UPDATE SET
                     entity_a_id = excluded.entity_a_id,
                     entity_b_id = excluded.entity_b_id,
                     synergy_score = excluded.synergy_score,
                     metadata = excluded.metadata,
                     updated_at = excluded.updated_at""",
                (
                    relationship.pair_key,
                    relationship.relationship_type,
                    relationship.entity_a_id,
                    relationship.entity_b_id,
                    relationship.synergy_score,
                    orjson.dumps(relationship.metadata, default=str).decode(),
                    _encode(utcnow()),
                ),
            )
            await db.commit()

    # ── Memory reads ──────────────────────────────────────────────

    async def top_memories(
        self, entity_ids: list[EntityId], min_importance: float, limit: int
    ) -> list[MemoryRecord]:
        if not entity_ids:
            return []
        marks = ", ".join("?" for _ in entity_ids)
        async with self._connect() as db:
            async with db.execute(
                f"SELECT * FROM entity_memory WHERE entity_id IN ({marks}) "
                "AND importance_score > ? ORDER BY importance_score DESC LIMIT ?",
                [*entity_ids, min_importance, limit],
            ) as cursor:
                return [_row_to_memory(row) async for row in cursor]

    async def recent_memories(
        self, entity_ids: list[EntityId], limit: int
    ) -> list[MemoryRecord]:
        if not entity_ids:
            return []
        marks = ", ".join("?" for _ in entity_ids)
        async with self._connect() as db:
            async with db.execute(
                f"SELECT * FROM entity_memory WHERE entity_id IN ({marks}) "
                "ORDER BY created_at DESC LIMIT ?",
                [*entity_ids, limit],
            ) as cursor:
                return [_row_to_memory(row) async for row in cursor]

    # ── Inspection (CLI status, tests) ────────────────────────────

    async def memories_for(self, entity_id: EntityId) -> list[MemoryRecord]:
        async with self._connect() as db:
            async with db.execute(
                "SELECT * FROM entity_memory WHERE entity_id = ? ORDER BY created_at",
                (entity_id,),
            ) as cursor:
                return [_row_to_memory(row) async for row in cursor]

    async def learning_events(self, event_type: str = "") -> list[LearningEvent]:
        sql = "SELECT * FROM learning_events"
        params: list[Any] = []
        if event_type:
            sql += " WHERE event_type = ?"
            params.append(event_type)
        sql += " ORDER BY created_at"
        async with self._connect() as db:
            async with db.execute(sql, params) as cursor:
                return [
                    LearningEvent(
                        id=row["id"],
                        entity_id=row["entity_id"],
                        event_type=row["event_type"],
                        event_data=orjson.loads(row["event_data"] or "{}"),
                        impact_score=row["impact_score"],
                        created_at=datetime.fromisoformat(row["created_at"]),
                    )
                    async for row in cursor
                ]

    async def relationships(self) -> list[Relationship]:
        async with self._connect() as db:
            async with db.execute("SELECT * FROM relationships") as cursor:
                return [
                    Relationship(
                        entity_a_id=row["entity_a_id"],
                        entity_b_id=row["entity_b_id"],
                        relationship_type=row["relationship_type"],
                        synergy_score=row["synergy_score"],
                        metadata=orjson.loads(row["metadata"] or "{}"),
                    )
                    async for row in cursor
                ]

    async def task_queue(self) -> list[TaskQueueItem]:
        async with self._connect() as db:
            async with db.execute("SELECT * FROM task_queue ORDER BY created_at") as cursor:
                return [
                    TaskQueueItem(
                        id=row["id"],
                        user_id=row["user_id"],
                        title=row["title"],
                        task_type=row["task_type"],
                        description=row["description"],
                        priority=row["priority"],
                        status=row["status"],
                        assigned_entities=orjson.loads(row["assigned_entities"] or "[]"),
                        input_data=orjson.loads(row["input_data"] or "{}"),
                        orchestration_mode=row["orchestration_mode"],
                        suggestions=orjson.loads(row["suggestions"] or "[]"),
                        created_at=datetime.fromisoformat(row["created_at"]),
                    )
                    async for row in cursor
                ]

    async def counts(self) -> dict[str, int]:
        result: dict[str, int] = {}
        async with self._connect() as db:
            for table in ("entities", "entity_memory", "learning_events",
                          "relationships", "task_queue", "service_logs"):
                cursor = await db.execute(f"SELECT COUNT(*) FROM {table}")
                row = await cursor.fetchone()
                result[table] = row[0]
        return result
