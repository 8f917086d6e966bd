"""Shared fixtures: temp SQLite stores and canned knowledge providers."""

from __future__ import annotations

import os
import random
import tempfile

import pytest
import pytest_asyncio

from hyperevo.evolution.modes.base import ModeContext
from hyperevo.evolution.tuning import EvolutionConfig
from hyperevo.exceptions import KnowledgeAPIError
from hyperevo.llm.base import BaseKnowledgeProvider, KnowledgeResponse
from hyperevo.service_log import ServiceLogger
from hyperevo.store.base import Entity
from hyperevo.store.sqlite import SQLiteStore


class MockKnowledgeProvider(BaseKnowledgeProvider):
    """Provider that returns canned responses. No API calls.

    Responses are consumed in order; once exhausted the last one repeats.
    An exception instance in the list is raised instead of returned.
    """

    def __init__(self, responses: list | None = None):
        self._responses = responses or [KnowledgeResponse(content="Insight.")]
        self._call_count = 0
        self.calls: list[dict] = []

    async def complete(self, system, user, max_tokens=500, temperature=0.3, **params):
        self.calls.append({
            "system": system,
            "user": user,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "params": params,
        })
        index = min(self._call_count, len(self._responses) - 1)
        self._call_count += 1
        resp = self._responses[index]
        if isinstance(resp, BaseException):
            raise resp
        return resp


async def no_sleep(_seconds: float) -> None:
    return None


@pytest.fixture
def db_path():
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    yield path
    os.unlink(path)


@pytest_asyncio.fixture
async def store(db_path):
    the_store = SQLiteStore(db_path)
    await the_store.initialize()
    return the_store


@pytest.fixture
def fast_config():
    return EvolutionConfig(
        batch_delay_s=0,
        api_call_delay_s=0,
        visual_api_delay_s=0,
        api_initial_retry_delay_s=0,
        db_initial_retry_delay_s=0,
    )


@pytest.fixture
def make_entity():
    counter = {"n": 0}

    def _factory(**fields) -> Entity:
        counter["n"] += 1
        fields.setdefault("id", f"e{counter['n']:03d}")
        fields.setdefault("name", f"entity-{counter['n']}")
        return Entity(**fields)

    return _factory


@pytest.fixture
def mock_provider():
    def _factory(*responses) -> MockKnowledgeProvider:
        return MockKnowledgeProvider(list(responses) or None)
    return _factory


@pytest.fixture
def failing_provider():
    return MockKnowledgeProvider([KnowledgeAPIError("Search API error: 400", status_code=400)])


@pytest.fixture
def make_ctx(store, fast_config):
    def _factory(intensity: float = 1.0, search=None, gateway=None, seed: int = 7, **overrides) -> ModeContext:
        config = fast_config.model_copy(update=overrides) if overrides else fast_config
        return ModeContext(
            store=store,
            log=ServiceLogger("test"),
            intensity=intensity,
            config=config,
            rng=random.Random(seed),
            search=search,
            gateway=gateway,
            sleep=no_sleep,
        )
    return _factory


@pytest.fixture
def sleepless():
    return no_sleep
