"""Tuning table for the evolution modes.

One immutable ``EvolutionConfig`` is built per run and handed to every
executor. Tests override individual thresholds with ``model_copy(update=...)``
or by constructing their own instance.
"""

from __future__ import annotations

from pydantic import BaseModel


class EvolutionConfig(BaseModel):
    model_config = {"frozen": True}

    # Persistence
    db_batch_size: int = 25
    memory_batch_size: int = 50
    agent_update_batch_size: int = 10
    batch_delay_s: float = 0.1

    max_skill_score: float = 1.0

    # Population selection
    min_top_performer_rate: float = 0.4
    top_performer_percentage: float = 0.15
    crystallization_threshold: float = 0.3
    crystallization_max_sources: int = 100
    crystallization_fallback_sources: int = 25
    crystal_min_importance: float = 0.3
    crystal_memory_limit: int = 150
    crystal_fallback_memory_limit: int = 50
    crystal_fallback_importance_floor: float = 0.4
    crystal_dedupe_prefix: int = 50

    # External call pacing
    api_call_delay_s: float = 0.75
    visual_api_delay_s: float = 0.5

    # Retry
    api_max_retries: int = 5
    api_initial_retry_delay_s: float = 0.5
    db_max_retries: int = 3
    db_initial_retry_delay_s: float = 0.2
    max_retry_delay_s: float = 8.0

    # Collective intelligence
    collective_boost_base: float = 0.05
    collective_boost_max: float = 0.3
    collective_memory_threshold: float = 0.1
    velocity_increment_collective: float = 0.01

    # Hyper-parallel learning
    parallel_boost_base: float = 0.05
    parallel_boost_variance: float = 0.1
    skills_per_intensity: int = 2
    base_skills_to_learn: int = 3
    velocity_increment_parallel: float = 0.02

    # Adversarial evolution
    adversarial_winner_boost_base: float = 0.1
    adversarial_loser_learning: float = 0.15

    # Crystallization
    crystal_importance_boost: float = 0.1
    crystal_propagation_factor: float = 0.8
    crystal_propagation_gain: float = 0.05
    crystals_per_intensity: int = 3
    velocity_increment_crystal: float = 0.015

    # Web knowledge absorption
    web_knowledge_base: float = 0.3
    web_knowledge_per_intensity: float = 0.1
    web_segments_per_intensity: int = 3
    research_boost_base: float = 0.02
    velocity_increment_web: float = 0.01
    web_content_limit: int = 500
    max_citations: int = 3

    # Visual intelligence
    visual_knowledge_base: float = 0.35
    visual_knowledge_per_intensity: float = 0.12
    visual_segments_per_intensity: int = 2
    visual_boost_base: float = 0.025
    velocity_increment_visual: float = 0.012
    visual_content_limit: int = 600

    # Task discovery and benchmark enhancement
    discovery_segments_per_intensity: int = 2
    discovery_knowledge_base: float = 0.4
    discovery_knowledge_per_intensity: float = 0.15
    discovery_boost_base: float = 0.025
    velocity_increment_discovery: float = 0.012
    benchmark_impact_base: float = 0.5
    benchmark_impact_per_intensity: float = 0.2
    benchmark_template_gain: float = 0.15
    benchmark_synthetic_gain: float = 0.05
    synthetic_tasks_per_intensity: int = 3
    max_synthetic_tasks_per_type: int = 3


DEFAULT_CONFIG = EvolutionConfig()
