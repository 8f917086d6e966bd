"""Tests for task-pattern discovery."""

import orjson
import pytest

from hyperevo.evolution.modes import discovery
from hyperevo.llm.base import KnowledgeResponse
from hyperevo.types import SENTINEL_ID, MemoryType

TASKS = [
    {
        "title": "Monthly bank reconciliation",
        "description": "Match ledger entries against bank statements.",
        "task_type": "financial_analysis",
        "priority": "high",
        "complexity": 6,
        "automation_potential": 0.8,
    },
    {
        "title": "Clean vendor records",
        "description": "Remove duplicate vendors and validate tax ids before import.",
        "task_type": "data_processing",
        "complexity": 4,
    },
]


# ── Parsing ───────────────────────────────────────────────────


def test_parse_plain_array():
    tasks = discovery.parse_tasks(orjson.dumps(TASKS).decode())
    assert [t.title for t in tasks] == ["Monthly bank reconciliation", "Clean vendor records"]
    assert tasks[1].priority == "medium"
    assert tasks[1].automation_potential == 0.0


def test_parse_fenced_array():
    content = "Here you go:\n```json\n" + orjson.dumps(TASKS).decode() + "\n```\nEnjoy."
    assert len(discovery.parse_tasks(content)) == 2


@pytest.mark.parametrize("content", [None, "", "not json at all", '{"title": "x"}', "42", "```\n{bad\n```"])
def test_parse_unusable_content(content):
    assert discovery.parse_tasks(content) == []


def test_parse_drops_invalid_items():
    content = orjson.dumps([{"title": "ok"}, "stray", {"description": "no title"}, None]).decode()
    tasks = discovery.parse_tasks(content)
    assert [t.title for t in tasks] == ["ok"]
    assert tasks[0].task_type == "general"
    assert tasks[0].complexity == 5


def test_best_assignee_prefers_skill_then_order(make_entity):
    a = make_entity(task_specializations={"research": 0.4})
    b = make_entity(task_specializations={"research": 0.9})
    c = make_entity()
    assert discovery.best_assignee([a, b, c], "research") is b
    assert discovery.best_assignee([a, b, c], "strategy") is a
    assert discovery.best_assignee([], "strategy") is None


def test_pattern_summary_lists_tasks():
    text = discovery.pattern_summary("FINANCE", discovery.parse_tasks(orjson.dumps(TASKS).decode()))
    assert text.startswith("[TASK PATTERNS - FINANCE]\n")
    assert "• Monthly bank reconciliation (financial_analysis, complexity: 6/10)" in text


# ── Run ───────────────────────────────────────────────────────


@pytest.fixture
def population(make_entity):
    return [
        make_entity(sector="FINANCE", task_specializations={"financial_analysis": 0.8}),
        make_entity(sector="FINANCE", task_specializations={"financial_analysis": 0.2}),
        make_entity(),
    ]


@pytest.mark.asyncio
async def test_discovery_seeds_queue_and_feeds_benchmarks(store, make_ctx, mock_provider, population):
    await store.register_entities(population)
    search = mock_provider(KnowledgeResponse(content=orjson.dumps(TASKS).decode(), citations=["src"]))

    outcome = await discovery.run(population, make_ctx(intensity=1.0, search=search))

    assert len(search.calls) == 2
    assert search.calls[0]["params"] == {"search_recency_filter": "month"}
    assert search.calls[0]["max_tokens"] == 1500
    assert outcome.tasks_discovered == 4
    assert outcome.tasks_seeded == 4

    queue = await store.task_queue()
    discovered = [q for q in queue if q.title.startswith("[DISCOVERED] ")]
    synthetic = [q for q in queue if q.title.startswith("[SYNTHETIC-ENHANCED] ")]
    assert len(discovered) == 4
    assert len(synthetic) == 6

    finance_recon = next(
        q for q in discovered
        if q.input_data["sector"] == "FINANCE" and q.task_type == "financial_analysis"
    )
    assert finance_recon.assigned_entities == [population[0].id]
    assert finance_recon.user_id == SENTINEL_ID
    assert finance_recon.input_data["source"] == "web_search_discovery"
    assert finance_recon.suggestions[0]["confidence"] == 0.8

    found = await store.learning_events("real_world_task_discovery")
    assert [e.event_data["tasksSeeded"] for e in found] == [2, 2]
    assert len(await store.learning_events("benchmark_enhancement")) == 2

    note = (await store.memories_for(population[1].id))[0]
    assert note.memory_type == MemoryType.TASK_PATTERN_DISCOVERY.value
    stored = await store.get_entity(population[1].id)
    assert stored.task_specializations["financial_analysis"] == pytest.approx(0.225)
    assert stored.task_specializations["data_processing"] == pytest.approx(0.025)

    # 2 segments x 0.55 + 2 templates x 0.15 + 6 synthetic x 0.05
    assert outcome.knowledge_gained == pytest.approx(1.7)


@pytest.mark.asyncio
async def test_unparseable_answer_discovers_nothing(store, make_ctx, mock_provider, population):
    await store.register_entities(population)
    search = mock_provider(KnowledgeResponse(content="Sorry, I cannot help with that."))

    outcome = await discovery.run(population, make_ctx(intensity=1.0, search=search))

    assert outcome.tasks_discovered == 0
    assert outcome.knowledge_gained == 0
    assert await store.task_queue() == []


@pytest.mark.asyncio
async def test_discovery_without_search_is_a_no_op(store, make_ctx, population):
    outcome = await discovery.run(population, make_ctx())
    assert outcome.tasks_discovered == 0
