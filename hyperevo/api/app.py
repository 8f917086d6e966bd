"""HTTP surface: FastAPI app exposing evolution runs and the event history.

`hyperevo serve` launches this app with uvicorn.
"""

from __future__ import annotations

import time
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from hyperevo import __version__
from hyperevo.config import HyperEvoSettings
from hyperevo.events.bus import EventBus
from hyperevo.evolution.tuning import EvolutionConfig
from hyperevo.handler import handle_request
from hyperevo.store.base import EvolutionStore

app = FastAPI(title="hyperevo", version=__version__)

_store: EvolutionStore | None = None
_settings: HyperEvoSettings | None = None
_tuning: EvolutionConfig | None = None
_event_bus = EventBus()
_start_time = time.time()


def configure(
    store: EvolutionStore | None = None,
    settings: HyperEvoSettings | None = None,
    tuning: EvolutionConfig | None = None,
    event_bus: EventBus | None = None,
) -> None:
    global _store, _settings, _tuning, _event_bus
    _store = store
    _settings = settings
    _tuning = tuning
    _event_bus = event_bus or EventBus()


@app.post("/api/evolve")
async def evolve(request: Request) -> JSONResponse:
    try:
        body: Any = await request.json()
    except ValueError:
        body = {}
    status, payload = await handle_request(
        body, store=_store, config=_settings, tuning=_tuning, event_bus=_event_bus,
    )
    return JSONResponse(payload, status_code=status)


@app.get("/api/health")
async def health() -> dict:
    return {
        "status": "ok",
        "version": __version__,
        "uptime_s": round(time.time() - _start_time, 1),
    }


@app.get("/api/events")
async def list_events(topic: str = "*", limit: int = 50) -> list[dict]:
    events = _event_bus.history(topic_filter=topic, limit=limit)
    return [e.model_dump(mode="json") for e in events]
