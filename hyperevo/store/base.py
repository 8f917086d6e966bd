"""Store models and the abstract store interface.

The engine never creates entities of its own: they are registered by an
outside process. It reads them in staleness order, mutates their scoring
state, and appends memories, learning events, relationships and task-queue
items alongside.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from hyperevo.evolution.scoring import clamp
from hyperevo.types import DEFAULT_SEGMENT, EntityId, UserId, new_id


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Table(str, Enum):
    """Append-only tables written through the batch layer."""

    MEMORIES = "entity_memory"
    LEARNING_EVENTS = "learning_events"
    TASK_QUEUE = "task_queue"
    SERVICE_LOGS = "service_logs"


def _as_score(value: Any, default: float = 0.0) -> float:
    """Clamp a stored score into [0, 1]; null or non-numeric values become ``default``."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number):
        return default
    return clamp(number)


def _clamp_specializations(value: Any) -> dict[str, float]:
    if not value or not isinstance(value, dict):
        return {}
    return {str(k): _as_score(v) for k, v in value.items()}


class Entity(BaseModel):
    """A scored population member."""

    id: EntityId
    name: str = ""
    sector: str = ""
    status: str = "active"
    user_id: UserId | None = None
    learning_velocity: float = 0.5
    success_rate: float = 0.0
    avg_confidence: float = 0.0
    total_tasks_completed: int = 0
    task_specializations: dict[str, float] = Field(default_factory=dict)
    last_performance_update: datetime | None = None

    @field_validator("learning_velocity", mode="before")
    @classmethod
    def _velocity(cls, v: Any) -> float:
        return _as_score(v, 0.5)

    @field_validator("success_rate", "avg_confidence", mode="before")
    @classmethod
    def _score(cls, v: Any) -> float:
        return _as_score(v)

    @field_validator("total_tasks_completed", mode="before")
    @classmethod
    def _tasks(cls, v: Any) -> int:
        return max(0, int(v or 0))

    @field_validator("task_specializations", mode="before")
    @classmethod
    def _specs(cls, v: Any) -> dict[str, float]:
        return _clamp_specializations(v)

    @field_validator("sector", mode="before")
    @classmethod
    def _sector(cls, v: Any) -> str:
        return v or ""

    @property
    def segment(self) -> str:
        return self.sector or DEFAULT_SEGMENT

    def skill(self, skill_type: str) -> float:
        return self.task_specializations.get(skill_type, 0.0)

    def apply(self, update: EntityUpdate) -> None:
        """Fold a persisted update back into this in-memory entity."""
        if update.task_specializations is not None:
            self.task_specializations = dict(update.task_specializations)
        if update.learning_velocity is not None:
            self.learning_velocity = update.learning_velocity
        if update.success_rate is not None:
            self.success_rate = update.success_rate
        self.last_performance_update = update.last_performance_update


class EntityUpdate(BaseModel):
    """Partial update of one entity's scoring state."""

    id: EntityId
    last_performance_update: datetime = Field(default_factory=utcnow)
    task_specializations: dict[str, float] | None = None
    learning_velocity: float | None = None
    success_rate: float | None = None

    @field_validator("learning_velocity", "success_rate", mode="before")
    @classmethod
    def _score(cls, v: Any) -> float | None:
        return None if v is None else clamp(float(v))

    @field_validator("task_specializations", mode="before")
    @classmethod
    def _specs(cls, v: Any) -> dict[str, float] | None:
        return None if v is None else _clamp_specializations(v)


class MemoryRecord(BaseModel):
    """Append-only note attached to an entity."""

    id: str = Field(default_factory=new_id)
    entity_id: EntityId
    user_id: UserId | None = None
    memory_type: str
    content: str
    importance_score: float = 0.5
    context: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("importance_score", mode="before")
    @classmethod
    def _importance(cls, v: Any) -> float:
        return 0.0 if v is None else clamp(float(v))


class LearningEvent(BaseModel):
    """Write-once audit record of one algorithmic effect."""

    id: str = Field(default_factory=new_id)
    entity_id: EntityId
    event_type: str
    event_data: dict[str, Any] = Field(default_factory=dict)
    impact_score: float = 0.0
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("impact_score", mode="before")
    @classmethod
    def _impact(cls, v: Any) -> float:
        return 0.0 if v is None else clamp(float(v))


class Relationship(BaseModel):
    """Directed pair record; unique per unordered pair and type."""

    entity_a_id: EntityId
    entity_b_id: EntityId
    relationship_type: str = "competitive"
    synergy_score: float = 0.5
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def pair_key(self) -> str:
        a, b = sorted((self.entity_a_id, self.entity_b_id))
        return f"{a}:{b}"


class TaskQueueItem(BaseModel):
    """Work item seeded for consumption outside the engine."""

    id: str = Field(default_factory=new_id)
    user_id: UserId
    title: str
    task_type: str
    description: str = ""
    priority: str = "medium"
    status: str = "pending"
    assigned_entities: list[EntityId] = Field(default_factory=list)
    input_data: dict[str, Any] = Field(default_factory=dict)
    orchestration_mode: str = "training"
    suggestions: list[dict[str, Any]] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)


class ServiceLogRecord(BaseModel):
    """Persisted copy of a service log line."""

    id: str = Field(default_factory=new_id)
    level: str
    message: str
    service: str
    request_id: str
    user_id: UserId | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=utcnow)


Record = MemoryRecord | LearningEvent | TaskQueueItem | ServiceLogRecord


class EvolutionStore(ABC):
    """Abstract backing store for the engine.

    Implementations raise ``StoreError`` with the underlying cause in the
    message so the retry layer can classify it.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Prepare the schema."""
        ...

    @abstractmethod
    async def register_entities(self, entities: list[Entity]) -> int:
        """Insert or replace entities. Returns how many were written."""
        ...

    @abstractmethod
    async def fetch_population(
        self,
        limit: int,
        sector: str | None = None,
        user_id: UserId | None = None,
    ) -> list[Entity]:
        """Least recently touched entities first, never-touched before all."""
        ...

    @abstractmethod
    async def get_entity(self, entity_id: EntityId) -> Entity | None:
        ...

    @abstractmethod
    async def update_entity(self, update: EntityUpdate) -> bool:
        """Apply a partial update. Returns False if the entity does not exist."""
        ...

    @abstractmethod
    async def insert(self, table: Table, records: list[Record]) -> int:
        """Insert a homogeneous list of records into ``table``."""
        ...

    @abstractmethod
    async def upsert_relationship(self, relationship: Relationship) -> None:
        """Insert or overwrite the record for this unordered pair and type."""
        ...

    @abstractmethod
    async def top_memories(
        self, entity_ids: list[EntityId], min_importance: float, limit: int
    ) -> list[MemoryRecord]:
        """Memories above ``min_importance``, most important first."""
        ...

    @abstractmethod
    async def recent_memories(
        self, entity_ids: list[EntityId], limit: int
    ) -> list[MemoryRecord]:
        """Memories of any importance, newest first."""
        ...
