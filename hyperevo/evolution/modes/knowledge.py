"""External-knowledge absorption: one web-search topic per segment.

Segments are queried in grouping order, one randomly chosen catalog topic
each. Every entity in a segment that got an answer receives the insight as a
memory plus a research boost. Without a search provider the mode is a no-op.
"""

from __future__ import annotations

from typing import Sequence

from hyperevo.evolution.catalog import knowledge_topics
from hyperevo.evolution.modes.base import ModeContext, ModeOutcome, raise_skill, segments_to_query
from hyperevo.evolution.scoring import clamp, group_by_segment
from hyperevo.exceptions import HyperEvoError
from hyperevo.store.base import Entity, EntityUpdate, LearningEvent, MemoryRecord
from hyperevo.types import MemoryType, SkillType

SYSTEM_PROMPT = (
    "You are a knowledge synthesizer. Provide concise, actionable insights that "
    "can be used to enhance automated workers' capabilities. Focus on practical "
    "applications, emerging patterns, and strategic implications. Be specific and "
    "data-driven."
)


def topic_prompt(topic: str, segment: str) -> str:
    return (
        f"Provide the latest insights on: {topic}. Focus on actionable intelligence, "
        "emerging trends, key statistics, and practical applications for AI systems "
        f"operating in the {segment.lower()} domain."
    )


async def run(entities: Sequence[Entity], ctx: ModeContext) -> ModeOutcome:
    cfg = ctx.config
    intensity = ctx.intensity
    outcome = ModeOutcome()
    await ctx.log.info("web_knowledge.start", entities=len(entities))

    if ctx.search is None:
        await ctx.log.warn("web_knowledge.skipped", reason="search provider not configured")
        return outcome

    groups = group_by_segment(entities)
    value = clamp(cfg.web_knowledge_base + intensity * cfg.web_knowledge_per_intensity)
    memories: list[MemoryRecord] = []
    events: list[LearningEvent] = []
    updates: list[EntityUpdate] = []
    absorbed = 0

    for segment in segments_to_query(groups, cfg.web_segments_per_intensity, intensity):
        topic = ctx.rng.choice(knowledge_topics(segment))
        try:
            await ctx.log.debug("web_knowledge.query", topic=topic, segment=segment)
            answer = await ctx.ask(
                ctx.search,
                SYSTEM_PROMPT,
                topic_prompt(topic, segment),
                max_tokens=500,
                temperature=0.3,
                search_recency_filter="week",
            )
            if answer.content:
                absorbed += 1
                members = groups[segment]
                citations = answer.citations[: cfg.max_citations]
                boost = intensity * cfg.research_boost_base
                for entity in members:
                    memories.append(MemoryRecord(
                        entity_id=entity.id,
                        user_id=entity.user_id,
                        memory_type=MemoryType.WEB_KNOWLEDGE.value,
                        content=f"[WEB INSIGHT - {topic}] {answer.content[: cfg.web_content_limit]}",
                        importance_score=value,
                        context={
                            "source": "web_search",
                            "topic": topic,
                            "sector": segment,
                            "citations": citations,
                        },
                    ))
                    specs = dict(entity.task_specializations)
                    raise_skill(specs, SkillType.RESEARCH.value, boost)
                    raise_skill(specs, SkillType.DATA_PROCESSING.value, boost * 0.5)
                    updates.append(EntityUpdate(
                        id=entity.id,
                        task_specializations=specs,
                        learning_velocity=entity.learning_velocity + intensity * cfg.velocity_increment_web,
                    ))
                    outcome.knowledge_gained += value / len(members)

                events.append(LearningEvent(
                    entity_id=members[0].id,
                    event_type="web_knowledge_absorption",
                    event_data={
                        "topic": topic,
                        "sector": segment,
                        "entitiesEnriched": len(members),
                        "knowledgeValue": value,
                        "citationCount": len(answer.citations),
                        "contentLength": len(answer.content),
                    },
                    impact_score=value,
                ))
        except HyperEvoError as e:
            await ctx.log.error("web_knowledge.segment_failed", error=e, segment=segment)

        await ctx.sleep(cfg.api_call_delay_s)

    await ctx.persist(outcome, updates, memories, events)
    await ctx.log.info(
        "web_knowledge.complete",
        topics=absorbed,
        knowledge_gained=round(outcome.knowledge_gained, 2),
    )
    return outcome
