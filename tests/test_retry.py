"""Tests for retry classification and backoff."""

import random

import pytest

from hyperevo.exceptions import KnowledgeAPIError, StoreError
from hyperevo.retry import backoff_delay, is_retryable, with_retry


# ── classification ──────────────────────────────────────────────

@pytest.mark.parametrize("exc", [
    KnowledgeAPIError("Search API error: 503", status_code=503),
    KnowledgeAPIError("Search API error: 429", status_code=429),
    StoreError("sqlite error: SSL handshake failed"),
    ConnectionError("ECONNRESET by peer"),
    TimeoutError("read timeout"),
    RuntimeError("cloudflare challenge page"),
])
def test_transient_errors_are_retryable(exc):
    assert is_retryable(exc)


@pytest.mark.parametrize("exc", [
    ValueError("invalid literal"),
    KnowledgeAPIError("Search API error: 401", status_code=401),
    StoreError("sqlite error: UNIQUE constraint failed: entity_memory.id"),
])
def test_application_errors_are_not_retryable(exc):
    assert not is_retryable(exc)


def test_exception_type_name_counts():
    class GatewayTimeout(Exception):
        pass

    assert is_retryable(GatewayTimeout("upstream"))


# ── backoff ─────────────────────────────────────────────────────

def test_backoff_doubles_with_bounded_jitter():
    rng = random.Random(1)
    for attempt in range(3):
        delay = backoff_delay(attempt, 0.5, rng=rng)
        base = 0.5 * 2 ** attempt
        assert base <= delay <= base + 0.5


def test_backoff_is_capped():
    assert backoff_delay(10, 0.5, max_delay=8.0) == 8.0


# ── with_retry ──────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_retries_transient_failure_then_succeeds():
    calls = []
    sleeps = []

    async def op():
        calls.append(1)
        if len(calls) < 3:
            raise KnowledgeAPIError("Search API error: 503", status_code=503)
        return "ok"

    async def fake_sleep(seconds):
        sleeps.append(seconds)

    result = await with_retry(op, 5, 0.5, rng=random.Random(0), sleep=fake_sleep)

    assert result == "ok"
    assert len(calls) == 3
    assert len(sleeps) == 2
    assert sleeps[1] >= 1.0


@pytest.mark.asyncio
async def test_non_retryable_error_raised_on_first_attempt():
    calls = []

    async def op():
        calls.append(1)
        raise ValueError("bad payload")

    async def fake_sleep(seconds):
        raise AssertionError("must not sleep")

    with pytest.raises(ValueError, match="bad payload"):
        await with_retry(op, 5, 0.5, sleep=fake_sleep)
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_exhausted_retries_reraise_last_error():
    calls = []

    async def op():
        calls.append(1)
        raise StoreError(f"sqlite error: 502 attempt {len(calls)}")

    async def fake_sleep(seconds):
        pass

    with pytest.raises(StoreError, match="attempt 4"):
        await with_retry(op, 3, 0.2, sleep=fake_sleep)
    assert len(calls) == 4


@pytest.mark.asyncio
async def test_lambda_returning_coroutine_is_awaited_and_retried():
    calls = []

    async def op(value):
        calls.append(value)
        if len(calls) == 1:
            raise StoreError("sqlite error: 503")
        return value

    async def fake_sleep(seconds):
        pass

    result = await with_retry(lambda: op("ok"), 3, 0, sleep=fake_sleep)

    assert result == "ok"
    assert calls == ["ok", "ok"]
