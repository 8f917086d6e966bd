"""Tests for benchmark enhancement."""

from datetime import datetime, timezone

import pytest

from hyperevo.evolution.modes import benchmark
from hyperevo.evolution.modes.benchmark import DiscoveredTask
from hyperevo.types import SENTINEL_ID


@pytest.mark.parametrize("title,expected", [
    ("Q4 2024 close for March 15", "Q{N} {YEAR} close for {MONTH} {N}"),
    ("Process 300 invoices", "Process {N} invoices"),
    ("Weekly review", "Weekly review"),
])
def test_abstract_title(title, expected):
    assert benchmark.abstract_title(title) == expected


def test_success_criteria_from_modal_phrases():
    criteria = benchmark.extract_success_criteria(
        "Statements must match the ledger to the cent. Ensure every vendor is verified"
    )
    assert "match the ledger to the cent" in criteria
    assert "every vendor is verified" in criteria


def test_success_criteria_fallback():
    assert benchmark.extract_success_criteria("Tidy up the shared drive folders") == [
        "Successfully tidy up the shared drive folders"
    ]
    assert benchmark.extract_success_criteria("short") == []


def test_edge_cases_scale_with_complexity():
    simple = benchmark.generate_edge_cases(DiscoveredTask(title="T", task_type="research", complexity=2))
    hard = benchmark.generate_edge_cases(DiscoveredTask(title="T", task_type="research", complexity=9))
    unknown = benchmark.generate_edge_cases(DiscoveredTask(title="T", task_type="alchemy", complexity=5))
    assert simple == ["T: Contradictory source data"]
    assert len(hard) == 4
    assert unknown == ["T: Invalid input handling", "T: Timeout scenarios"]


@pytest.mark.parametrize("complexity", [-5, -12.5])
def test_negative_complexity_has_no_edge_cases(complexity):
    task = DiscoveredTask(title="T", task_type="research", complexity=complexity)
    assert benchmark.generate_edge_cases(task) == []


def test_build_templates_groups_by_type():
    tasks = [
        DiscoveredTask(title="Audit 2023 logs", task_type="security_audit", priority="high", complexity=8),
        DiscoveredTask(title="Audit 2024 logs", task_type="security_audit", priority="low", complexity=4),
        DiscoveredTask(title="Summarize papers", task_type="research", complexity=3),
    ]
    templates = benchmark.build_templates(tasks, "SECURITY")

    audit = templates["security_audit"]
    assert audit.title_patterns == ["Audit {YEAR} logs"]
    assert audit.complexity_distribution.min == 4
    assert audit.complexity_distribution.max == 8
    assert audit.complexity_distribution.avg == 6
    assert audit.priority_weights == {"low": 0.5, "medium": 0, "high": 0.5, "critical": 0}
    assert audit.real_world_context == "SECURITY"
    assert len(audit.edge_cases) <= benchmark.MAX_EDGE_CASES
    assert sum(templates["research"].priority_weights.values()) == pytest.approx(1.0)


@pytest.mark.asyncio
async def test_synthesized_tasks_fill_placeholders(make_ctx):
    templates = benchmark.build_templates(
        [DiscoveredTask(title="Close books for March 2024", task_type="financial_analysis", complexity=6)],
        "FINANCE",
    )
    tasks = benchmark.synthesize_tasks(templates, "FINANCE", make_ctx(intensity=1.0))

    assert len(tasks) == 3
    year = str(datetime.now(timezone.utc).year)
    for task in tasks:
        assert task.title.startswith("[FINANCE] Close books for ")
        assert task.title.endswith(year)
        assert "{" not in task.title
        assert task.complexity == 6
        assert task.priority == "medium"


@pytest.mark.asyncio
async def test_enhance_records_templates_and_synthetic_tasks(store, make_ctx):
    tasks = [
        DiscoveredTask(title="Triage 40 tickets", task_type="technical_support", complexity=3),
        DiscoveredTask(title="Draft NDA", task_type="legal_review", complexity=7),
    ]

    outcome = await benchmark.enhance(tasks, "OPERATIONS", make_ctx(intensity=0.5))

    # ceil(0.5 * 3) = 2 synthetic tasks per type
    assert outcome.synthetic_seeded == 4
    assert outcome.benchmarks_enhanced == 6
    assert outcome.knowledge_added == pytest.approx(2 * 0.15 + 4 * 0.05)

    events = await store.learning_events("benchmark_enhancement")
    assert {e.event_data["task_type"] for e in events} == {"technical_support", "legal_review"}
    assert all(e.entity_id == SENTINEL_ID for e in events)
    assert events[0].impact_score == pytest.approx(0.6)

    queue = await store.task_queue()
    assert all(q.title.startswith("[SYNTHETIC-ENHANCED] [OPERATIONS] ") for q in queue)
    assert all(q.input_data["based_on_real_patterns"] for q in queue)


@pytest.mark.asyncio
async def test_enhance_nothing_to_do(store, make_ctx):
    outcome = await benchmark.enhance([], "FINANCE", make_ctx())
    assert outcome.benchmarks_enhanced == 0
    assert await store.learning_events() == []
