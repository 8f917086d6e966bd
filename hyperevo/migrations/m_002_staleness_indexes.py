"""Migration 002: indexes for staleness-ordered fetches and memory lookups."""

from __future__ import annotations

import aiosqlite


async def upgrade(db: aiosqlite.Connection) -> None:
    await db.execute(
        "CREATE INDEX IF NOT EXISTS idx_entities_staleness "
        "ON entities(last_performance_update)"
    )
    await db.execute(
        "CREATE INDEX IF NOT EXISTS idx_entities_sector_user "
        "ON entities(sector, user_id)"
    )
    await db.execute(
        "CREATE INDEX IF NOT EXISTS idx_memory_entity_importance "
        "ON entity_memory(entity_id, importance_score DESC)"
    )
    await db.execute(
        "CREATE INDEX IF NOT EXISTS idx_events_type "
        "ON learning_events(event_type)"
    )
