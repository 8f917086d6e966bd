"""Visual intelligence: teach each segment to read one chart type and one video scene."""

from __future__ import annotations

from typing import Sequence

from hyperevo.evolution.catalog import visual_context
from hyperevo.evolution.modes.base import ModeContext, ModeOutcome, raise_skill, segments_to_query
from hyperevo.evolution.scoring import clamp, group_by_segment
from hyperevo.exceptions import HyperEvoError
from hyperevo.store.base import Entity, EntityUpdate, LearningEvent, MemoryRecord
from hyperevo.types import MemoryType

# Skill key -> share of the visual boost it receives
VISUAL_SKILLS: dict[str, float] = {
    "visual_analysis": 1.0,
    "pattern_recognition": 0.8,
    "data_visualization": 0.6,
    "video_analysis": 0.7,
}


def system_prompt(segment: str) -> str:
    return (
        f"You are a visual intelligence trainer for automated workers in the {segment.lower()} domain.\n"
        "Your job is to teach them how to recognize and analyze visual patterns, diagrams, "
        "charts, and video content.\n"
        "Provide detailed pattern recognition insights, visual analysis techniques, and "
        "interpretation frameworks.\n"
        "Be specific about shapes, layouts, color meanings, motion patterns, and visual hierarchies."
    )


def user_prompt(image_prompt: str, video_scenario: str) -> str:
    return (
        f'Teach an AI agent how to visually analyze and interpret: "{image_prompt}"\n\n'
        f'Additionally, explain how to analyze video content showing: "{video_scenario}"\n\n'
        "Provide:\n"
        "1. Key visual elements to identify\n"
        "2. Pattern recognition techniques\n"
        "3. Color and shape interpretation\n"
        "4. Motion analysis (for video)\n"
        "5. Context interpretation strategies\n"
        "6. Common visual indicators and their meanings\n"
        "7. Decision-making based on visual data"
    )


async def run(entities: Sequence[Entity], ctx: ModeContext) -> ModeOutcome:
    cfg = ctx.config
    intensity = ctx.intensity
    outcome = ModeOutcome()
    await ctx.log.info("visual_intelligence.start", entities=len(entities))

    if ctx.gateway is None:
        await ctx.log.warn("visual_intelligence.skipped", reason="gateway provider not configured")
        return outcome

    groups = group_by_segment(entities)
    value = clamp(cfg.visual_knowledge_base + intensity * cfg.visual_knowledge_per_intensity)
    boost = intensity * cfg.visual_boost_base
    memories: list[MemoryRecord] = []
    events: list[LearningEvent] = []
    updates: list[EntityUpdate] = []
    learned = 0

    for segment in segments_to_query(groups, cfg.visual_segments_per_intensity, intensity):
        context = visual_context(segment)
        image_prompt = ctx.rng.choice(context["image_prompts"])
        video_scenario = ctx.rng.choice(context["video_scenarios"])
        try:
            answer = await ctx.ask(
                ctx.gateway,
                system_prompt(segment),
                user_prompt(image_prompt, video_scenario),
                max_tokens=800,
                temperature=0.4,
            )
            if answer.content:
                learned += 1
                members = groups[segment]
                for entity in members:
                    memories.append(MemoryRecord(
                        entity_id=entity.id,
                        user_id=entity.user_id,
                        memory_type=MemoryType.VISUAL_INTELLIGENCE.value,
                        content=(
                            f"[VISUAL PATTERN LEARNING - {image_prompt}] "
                            f"{answer.content[: cfg.visual_content_limit]}"
                        ),
                        importance_score=value,
                        context={
                            "source": "llm_gateway",
                            "imagePrompt": image_prompt,
                            "videoScenario": video_scenario,
                            "sector": segment,
                            "learningType": "visual_pattern_recognition",
                        },
                    ))
                    specs = dict(entity.task_specializations)
                    for skill_type, share in VISUAL_SKILLS.items():
                        raise_skill(specs, skill_type, boost * share)
                    updates.append(EntityUpdate(
                        id=entity.id,
                        task_specializations=specs,
                        learning_velocity=entity.learning_velocity + intensity * cfg.velocity_increment_visual,
                    ))
                    outcome.knowledge_gained += value / len(members)

                events.append(LearningEvent(
                    entity_id=members[0].id,
                    event_type="visual_intelligence_learning",
                    event_data={
                        "imagePrompt": image_prompt,
                        "videoScenario": video_scenario,
                        "sector": segment,
                        "entitiesEnriched": len(members),
                        "knowledgeValue": value,
                        "contentLength": len(answer.content),
                        "skillsEnhanced": list(VISUAL_SKILLS),
                    },
                    impact_score=value,
                ))
        except HyperEvoError as e:
            await ctx.log.error("visual_intelligence.segment_failed", error=e, segment=segment)

        await ctx.sleep(cfg.visual_api_delay_s)

    await ctx.persist(outcome, updates, memories, events)
    await ctx.log.info(
        "visual_intelligence.complete",
        patterns=learned,
        knowledge_gained=round(outcome.knowledge_gained, 2),
    )
    return outcome
