"""Migration 001: baseline schema for entities and their append-only records."""

from __future__ import annotations

import aiosqlite


async def upgrade(db: aiosqlite.Connection) -> None:
    await db.execute("""
        CREATE TABLE IF NOT EXISTS entities (
            id TEXT PRIMARY KEY,
            name TEXT DEFAULT '',
            sector TEXT DEFAULT '',
            status TEXT DEFAULT 'active',
            user_id TEXT,
            learning_velocity REAL DEFAULT 0.5,
            success_rate REAL DEFAULT 0.0,
            avg_confidence REAL DEFAULT 0.0,
            total_tasks_completed INTEGER DEFAULT 0,
            task_specializations TEXT DEFAULT '{}',
            last_performance_update TEXT
        )
    """)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS entity_memory (
            id TEXT PRIMARY KEY,
            entity_id TEXT NOT NULL,
            user_id TEXT,
            memory_type TEXT NOT NULL,
            content TEXT NOT NULL,
            importance_score REAL DEFAULT 0.5,
            context TEXT DEFAULT '{}',
            created_at TEXT NOT NULL
        )
    """)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS learning_events (
            id TEXT PRIMARY KEY,
            entity_id TEXT NOT NULL,
            event_type TEXT NOT NULL,
            event_data TEXT DEFAULT '{}',
            impact_score REAL DEFAULT 0.0,
            created_at TEXT NOT NULL
        )
    """)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS relationships (
            pair_key TEXT NOT NULL,
            relationship_type TEXT NOT NULL,
            entity_a_id TEXT NOT NULL,
            entity_b_id TEXT NOT NULL,
            synergy_score REAL DEFAULT 0.5,
            metadata TEXT DEFAULT '{}',
            updated_at TEXT NOT NULL,
            PRIMARY KEY (pair_key, relationship_type)
        )
    """)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS task_queue (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            title TEXT NOT NULL,
            task_type TEXT NOT NULL,
            description TEXT DEFAULT '',
            priority TEXT DEFAULT 'medium',
            status TEXT DEFAULT 'pending',
            assigned_entities TEXT DEFAULT '[]',
            input_data TEXT DEFAULT '{}',
            orchestration_mode TEXT DEFAULT 'training',
            suggestions TEXT DEFAULT '[]',
            created_at TEXT NOT NULL
        )
    """)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS service_logs (
            id TEXT PRIMARY KEY,
            level TEXT NOT NULL,
            message TEXT NOT NULL,
            service TEXT NOT NULL,
            request_id TEXT NOT NULL,
            user_id TEXT,
            metadata TEXT DEFAULT '{}',
            timestamp TEXT NOT NULL
        )
    """)
