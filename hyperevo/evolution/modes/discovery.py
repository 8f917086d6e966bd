"""Task-pattern discovery: ask the search endpoint what work exists out there.

Each queried segment returns a JSON array of task patterns. Every pattern is
queued for the segment member best at its task type, the segment learns the
patterns as a memory, and the combined set feeds benchmark enhancement.
"""

from __future__ import annotations

import re
from typing import Any, Sequence

import orjson
from pydantic import ValidationError

from hyperevo.evolution.catalog import discovery_prompt
from hyperevo.evolution.modes import benchmark
from hyperevo.evolution.modes.base import ModeContext, ModeOutcome, raise_skill, segments_to_query
from hyperevo.evolution.modes.benchmark import DiscoveredTask
from hyperevo.evolution.scoring import clamp, group_by_segment
from hyperevo.exceptions import HyperEvoError
from hyperevo.store.base import Entity, EntityUpdate, LearningEvent, MemoryRecord, Table, TaskQueueItem
from hyperevo.types import SENTINEL_ID, MemoryType

_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")

SYSTEM_PROMPT = """You are a task discovery agent. Analyze real-world automation tasks and return them as a JSON array. Each task should have:
- title: Short task name (max 60 chars)
- description: Clear description of what the task involves (max 200 chars)
- task_type: Category (one of: financial_analysis, data_processing, communication, operations, research, security_audit, technical_support, project_management, legal_review, hr_operations, creative_design, strategy)
- priority: Importance level (low, medium, high, critical)
- complexity: Difficulty score 1-10
- automation_potential: How automatable 0-1

Return ONLY valid JSON array, no markdown or explanation."""


def parse_tasks(content: str | None) -> list[DiscoveredTask]:
    """Decode a JSON array of tasks, unwrapping a markdown code fence if present.

    Anything that is not a JSON array decodes to an empty list; array items
    that are not valid tasks are dropped.
    """
    text = content or "[]"
    if "```" in text:
        match = _FENCE.search(text)
        if match:
            text = match.group(1)
    try:
        data = orjson.loads(text.strip())
    except orjson.JSONDecodeError:
        return []
    if not isinstance(data, list):
        return []

    tasks = []
    for item in data:
        if not isinstance(item, dict):
            continue
        try:
            tasks.append(DiscoveredTask.model_validate(item))
        except ValidationError:
            continue
    return tasks


def best_assignee(members: Sequence[Entity], task_type: str) -> Entity | None:
    if not members:
        return None
    return max(members, key=lambda e: e.skill(task_type))


def pattern_summary(segment: str, tasks: Sequence[DiscoveredTask]) -> str:
    lines = [f"• {t.title} ({t.task_type}, complexity: {t.complexity:g}/10)" for t in tasks]
    return f"[TASK PATTERNS - {segment}]\n" + "\n".join(lines)


def _queue_item(task: DiscoveredTask, assignee: Entity, segment: str, citations: list[str]) -> TaskQueueItem:
    return TaskQueueItem(
        user_id=assignee.user_id or SENTINEL_ID,
        title=f"[DISCOVERED] {task.title}",
        task_type=task.task_type,
        description=task.description,
        priority=task.priority,
        assigned_entities=[assignee.id],
        input_data={
            "source": "web_search_discovery",
            "sector": segment,
            "complexity": task.complexity,
            "automation_potential": task.automation_potential,
            "citations": citations,
        },
        suggestions=[{
            "entity_id": assignee.id,
            "entity_name": assignee.name,
            "reason": f"Best {task.task_type} specialist in {segment} sector",
            "confidence": assignee.task_specializations.get(task.task_type, 0.5),
        }],
    )


async def run(entities: Sequence[Entity], ctx: ModeContext) -> ModeOutcome:
    cfg = ctx.config
    intensity = ctx.intensity
    outcome = ModeOutcome()
    await ctx.log.info("task_discovery.start", entities=len(entities))

    if ctx.search is None:
        await ctx.log.warn("task_discovery.skipped", reason="search provider not configured")
        return outcome

    groups = group_by_segment(entities)
    value = clamp(cfg.discovery_knowledge_base + intensity * cfg.discovery_knowledge_per_intensity)
    boost = intensity * cfg.discovery_boost_base
    memories: list[MemoryRecord] = []
    events: list[LearningEvent] = []
    updates: list[EntityUpdate] = []
    discovered: list[DiscoveredTask] = []
    discovered_segments: list[str] = []

    for segment in segments_to_query(groups, cfg.discovery_segments_per_intensity, intensity):
        try:
            answer = await ctx.ask(
                ctx.search,
                SYSTEM_PROMPT,
                f"{discovery_prompt(segment)} Return 5-8 specific, actionable tasks as JSON.",
                max_tokens=1500,
                temperature=0.4,
                search_recency_filter="month",
            )
            tasks = parse_tasks(answer.content)
            if answer.content and not tasks:
                await ctx.log.warn("task_discovery.unparsed", segment=segment)

            if tasks:
                members = groups[segment]
                citations = answer.citations[: cfg.max_citations]
                outcome.tasks_discovered += len(tasks)
                discovered.extend(tasks)
                if segment not in discovered_segments:
                    discovered_segments.append(segment)

                seeded = 0
                for task in tasks:
                    assignee = best_assignee(members, task.task_type)
                    if assignee is None:
                        continue
                    item = _queue_item(task, assignee, segment, citations)
                    if await ctx.insert_one(Table.TASK_QUEUE, item):
                        seeded += 1
                    else:
                        await ctx.log.warn("task_discovery.seed_failed", title=task.title)
                outcome.tasks_seeded += seeded

                task_types = list(dict.fromkeys(t.task_type for t in tasks))
                context: dict[str, Any] = {
                    "source": "web_search_task_discovery",
                    "sector": segment,
                    "tasksDiscovered": len(tasks),
                    "taskTypes": task_types,
                    "avgComplexity": sum(t.complexity for t in tasks) / len(tasks),
                }
                summary = pattern_summary(segment, tasks)
                for entity in members:
                    memories.append(MemoryRecord(
                        entity_id=entity.id,
                        user_id=entity.user_id,
                        memory_type=MemoryType.TASK_PATTERN_DISCOVERY.value,
                        content=summary,
                        importance_score=value,
                        context=context,
                    ))
                    specs = dict(entity.task_specializations)
                    for task in tasks:
                        raise_skill(specs, task.task_type, boost)
                    updates.append(EntityUpdate(
                        id=entity.id,
                        task_specializations=specs,
                        learning_velocity=entity.learning_velocity + intensity * cfg.velocity_increment_discovery,
                    ))
                    outcome.knowledge_gained += value / len(members)

                events.append(LearningEvent(
                    entity_id=members[0].id,
                    event_type="real_world_task_discovery",
                    event_data={
                        "sector": segment,
                        "tasksDiscovered": len(tasks),
                        "tasksSeeded": seeded,
                        "taskTypes": task_types,
                        "entitiesEnriched": len(members),
                        "citationCount": len(answer.citations),
                    },
                    impact_score=value,
                ))
        except HyperEvoError as e:
            await ctx.log.error("task_discovery.segment_failed", error=e, segment=segment)

        await ctx.sleep(cfg.api_call_delay_s)

    await ctx.persist(outcome, updates, memories, events)
    await ctx.log.info(
        "task_discovery.complete",
        discovered=outcome.tasks_discovered,
        seeded=outcome.tasks_seeded,
        knowledge_gained=round(outcome.knowledge_gained, 2),
    )

    if discovered:
        enhanced = await benchmark.enhance(discovered, ",".join(discovered_segments), ctx)
        outcome.knowledge_gained += enhanced.knowledge_added

    return outcome
