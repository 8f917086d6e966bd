"""Core types shared across all hyperevo subsystems."""

from __future__ import annotations

import uuid
from enum import Enum
from typing import TypeAlias

# ── ID Types ──────────────────────────────────────────────────────────────────

EntityId: TypeAlias = str
UserId: TypeAlias = str

# Used for population-level events and unowned queue items.
SENTINEL_ID: EntityId = "00000000-0000-0000-0000-000000000000"

DEFAULT_SEGMENT = "GENERAL"


def new_id() -> str:
    return str(uuid.uuid4())


# ── Modes ─────────────────────────────────────────────────────────────────────


class EvolutionMode(str, Enum):
    COLLECTIVE = "collective"
    HYPER_PARALLEL = "hyper_parallel"
    ADVERSARIAL = "adversarial"
    CRYSTALLIZATION = "crystallization"
    WEB_KNOWLEDGE = "web_knowledge"
    VISUAL_INTELLIGENCE = "visual_intelligence"
    TASK_DISCOVERY = "task_discovery"
    FULL_ACCELERATION = "full_acceleration"


# Order in which full acceleration runs the executors.
FULL_ACCELERATION_ORDER: tuple[EvolutionMode, ...] = (
    EvolutionMode.COLLECTIVE,
    EvolutionMode.HYPER_PARALLEL,
    EvolutionMode.ADVERSARIAL,
    EvolutionMode.CRYSTALLIZATION,
    EvolutionMode.WEB_KNOWLEDGE,
    EvolutionMode.VISUAL_INTELLIGENCE,
    EvolutionMode.TASK_DISCOVERY,
)


# ── Skills ────────────────────────────────────────────────────────────────────


class SkillType(str, Enum):
    """Core skill-type keys. Specialization maps may also carry ad hoc keys."""

    FINANCIAL_ANALYSIS = "financial_analysis"
    DATA_PROCESSING = "data_processing"
    CREATIVE_DESIGN = "creative_design"
    RESEARCH = "research"
    SECURITY_AUDIT = "security_audit"
    COMMUNICATION = "communication"
    OPERATIONS = "operations"
    STRATEGY = "strategy"
    TECHNICAL_SUPPORT = "technical_support"
    PROJECT_MANAGEMENT = "project_management"
    LEGAL_REVIEW = "legal_review"
    HR_OPERATIONS = "hr_operations"


ALL_SKILL_TYPES: tuple[str, ...] = tuple(s.value for s in SkillType)


class MemoryType(str, Enum):
    EXPERIENCE = "experience"
    SKILL = "skill"
    PREFERENCE = "preference"
    RELATIONSHIP = "relationship"
    INSIGHT = "insight"
    FEEDBACK = "feedback"
    COLLECTIVE_LEARNING = "collective_learning"
    CRYSTALLIZED = "crystallized"
    RECEIVED_CRYSTAL = "received_crystal"
    WEB_KNOWLEDGE = "web_knowledge"
    VISUAL_INTELLIGENCE = "visual_intelligence"
    TASK_PATTERN_DISCOVERY = "task_pattern_discovery"
