"""Tests for the event bus."""

import pytest

from hyperevo.events.bus import Event, EventBus


@pytest.mark.asyncio
async def test_emit_and_subscribe():
    bus = EventBus()
    received = []

    async def handler(event: Event):
        received.append(event)

    bus.subscribe("evolution.run_started", handler)
    await bus.emit("evolution.run_started", {"request_id": "r1"}, source="test")

    assert len(received) == 1
    assert received[0].topic == "evolution.run_started"
    assert received[0].data["request_id"] == "r1"
    assert received[0].source == "test"


@pytest.mark.asyncio
async def test_wildcard_subscribe():
    bus = EventBus()
    received = []

    async def handler(event: Event):
        received.append(event)

    bus.subscribe("evolution.*", handler)
    await bus.emit("evolution.cycle_started", {"cycle": 1})
    await bus.emit("evolution.mode_completed", {"mode": "collective"})
    await bus.emit("store.write")  # should NOT match

    assert len(received) == 2


@pytest.mark.asyncio
async def test_star_matches_all():
    bus = EventBus()
    received = []

    async def handler(event: Event):
        received.append(event)

    bus.subscribe("*", handler)
    await bus.emit("evolution.run_started")
    await bus.emit("evolution.run_completed")
    await bus.emit("store.write")

    assert len(received) == 3


@pytest.mark.asyncio
async def test_unsubscribe():
    bus = EventBus()
    received = []

    async def handler(event: Event):
        received.append(event)

    bus.subscribe("evolution.*", handler)
    assert bus.subscriber_count == 1
    bus.unsubscribe("evolution.*", handler)
    assert bus.subscriber_count == 0

    await bus.emit("evolution.run_started")
    assert received == []


@pytest.mark.asyncio
async def test_failing_subscriber_does_not_reach_emitter():
    bus = EventBus()
    received = []

    async def broken(event: Event):
        raise RuntimeError("subscriber bug")

    async def handler(event: Event):
        received.append(event)

    bus.subscribe("*", broken)
    bus.subscribe("*", handler)
    event = await bus.emit("evolution.cycle_skipped")

    assert event.topic == "evolution.cycle_skipped"
    assert len(received) == 1


@pytest.mark.asyncio
async def test_history_newest_first_and_bounded():
    bus = EventBus(history_limit=3)
    for i in range(5):
        await bus.emit("evolution.cycle_started", {"cycle": i})
    await bus.emit("store.write")

    recent = bus.history()
    assert len(recent) == 3
    assert recent[0].topic == "store.write"

    cycles = bus.history("evolution.*")
    assert [e.data["cycle"] for e in cycles] == [4, 3]
    assert len(bus.history(limit=1)) == 1
