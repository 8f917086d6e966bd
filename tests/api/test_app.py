"""Tests for the HTTP surface."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from hyperevo.api.app import app, configure
from hyperevo.config import HyperEvoSettings
from hyperevo.events.bus import EventBus
from hyperevo.evolution.tuning import EvolutionConfig
from hyperevo.store.base import Entity
from hyperevo.store.sqlite import SQLiteStore


@pytest.fixture
def client(db_path):
    store = SQLiteStore(db_path)
    asyncio.run(store.initialize())
    asyncio.run(store.register_entities([
        Entity(id=f"api-{i}", name=f"entity-{i}", success_rate=0.1 * i) for i in range(1, 5)
    ]))
    configure(
        store=store,
        settings=HyperEvoSettings(
            db_path=db_path, search_api_key="", gateway_api_key="", anthropic_api_key="",
        ),
        tuning=EvolutionConfig(
            batch_delay_s=0, api_call_delay_s=0, visual_api_delay_s=0,
            api_initial_retry_delay_s=0, db_initial_retry_delay_s=0,
        ),
        event_bus=EventBus(),
    )
    yield TestClient(app)
    configure()


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert "version" in body


def test_evolve(client):
    resp = client.post("/api/evolve", json={"mode": "collective", "evolutionCycles": 2, "batchSize": 2})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["summary"]["evolutionCycles"] == 2
    assert body["summary"]["totalAgentsEvolved"] == 4


def test_evolve_with_unparseable_body_uses_defaults(client):
    resp = client.post(
        "/api/evolve", content=b"{not json", headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 200
    assert resp.json()["summary"]["mode"] == "full_acceleration"


def test_events_after_run(client):
    client.post("/api/evolve", json={"mode": "adversarial", "evolutionCycles": 1})

    resp = client.get("/api/events", params={"topic": "evolution.run_*"})
    assert resp.status_code == 200
    topics = [e["topic"] for e in resp.json()]
    assert topics == ["evolution.run_completed", "evolution.run_started"]

    resp = client.get("/api/events", params={"limit": 1})
    assert len(resp.json()) == 1
