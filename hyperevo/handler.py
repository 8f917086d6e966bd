"""Request entry point shared by the HTTP API and the CLI.

Turns a raw request body into a run and the run into a response body. Any
error that escapes the engine becomes ``{success: false, error, requestId}``
with status 500.
"""

from __future__ import annotations

import asyncio
import random
from pathlib import Path
from typing import Any, Awaitable, Callable

import structlog

from hyperevo.config import HyperEvoSettings, settings
from hyperevo.events.bus import EventBus
from hyperevo.evolution.engine import HyperEvolutionEngine, validate_request
from hyperevo.evolution.tuning import EvolutionConfig
from hyperevo.exceptions import ConfigurationError
from hyperevo.llm.factory import build_gateway_provider, build_search_provider
from hyperevo.store.base import EvolutionStore
from hyperevo.store.sqlite import SQLiteStore
from hyperevo.types import new_id

logger = structlog.get_logger()


async def open_store(config: HyperEvoSettings | None = None) -> SQLiteStore:
    """Open the configured SQLite store, creating its directory and schema."""
    config = config or settings
    if not config.db_path:
        raise ConfigurationError("Missing required store configuration: HYPEREVO_DB_PATH")
    Path(config.db_path).parent.mkdir(parents=True, exist_ok=True)
    store = SQLiteStore(config.db_path)
    await store.initialize()
    return store


async def handle_request(
    body: Any,
    *,
    store: EvolutionStore | None = None,
    config: HyperEvoSettings | None = None,
    tuning: EvolutionConfig | None = None,
    event_bus: EventBus | None = None,
    rng: random.Random | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> tuple[int, dict[str, Any]]:
    """Run one evolution request. Returns ``(status_code, response_body)``."""
    config = config or settings
    request_id = new_id()
    try:
        if store is None:
            store = await open_store(config)
        request = validate_request(body)
        engine = HyperEvolutionEngine(
            store,
            config=tuning,
            search=build_search_provider(config),
            gateway=build_gateway_provider(config),
            event_bus=event_bus,
            rng=rng,
            sleep=sleep,
            persist_logs=config.persist_service_logs,
        )
        report = await engine.run(request, request_id=request_id)
    except Exception as e:
        logger.error(
            "hyper_evolution_failed",
            request_id=request_id,
            error=str(e),
            error_type=type(e).__name__,
        )
        return 500, {
            "success": False,
            "error": str(e) or type(e).__name__,
            "requestId": request_id,
        }
    return 200, report.to_response()
