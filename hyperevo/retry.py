"""Retry with exponential backoff and jitter for transient failures.

Every call to the store or to an external knowledge endpoint goes through
``with_retry``. Errors are classified by their text: anything that looks like
a 5xx, a TLS handshake failure, a 429 or a timeout/reset/rate-limit signature
is retried; everything else propagates on the first failure.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Awaitable, Callable, TypeVar

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, stop_after_attempt

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_MARKERS: tuple[str, ...] = (
    "500",
    "502",
    "503",
    "504",
    "ssl",
    "handshake",
    "429",
    "rate",
    "timeout",
    "econnreset",
    "reset",
    "cloudflare",
)

MAX_JITTER_SECONDS = 0.5
MAX_RETRY_DELAY_SECONDS = 8.0


def is_retryable(exc: BaseException) -> bool:
    """True when the error text carries one of the transience markers."""
    text = f"{type(exc).__name__}: {exc}".lower()
    return any(marker in text for marker in TRANSIENT_MARKERS)


def backoff_delay(
    attempt: int,
    initial_delay: float,
    max_delay: float = MAX_RETRY_DELAY_SECONDS,
    rng: random.Random | None = None,
) -> float:
    """Delay before retry number ``attempt`` (0-based), in seconds."""
    jitter = (rng or random).uniform(0, MAX_JITTER_SECONDS)
    return min(initial_delay * (2 ** attempt) + jitter, max_delay)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = 5,
    initial_delay: float = 0.5,
    *,
    max_delay: float = MAX_RETRY_DELAY_SECONDS,
    rng: random.Random | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """Run ``operation``, retrying transient failures up to ``max_retries`` times.

    Non-retryable errors are raised immediately. Once retries are exhausted
    the last error is re-raised unchanged.
    """

    def _wait(state: RetryCallState) -> float:
        return backoff_delay(state.attempt_number - 1, initial_delay, max_delay, rng)

    def _log_retry(state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        logger.info(
            "Attempt %d failed (%s), retrying in %.2fs",
            state.attempt_number,
            exc,
            state.next_action.sleep if state.next_action else 0.0,
        )

    async for attempt in AsyncRetrying(
        retry=retry_if_exception(is_retryable),
        stop=stop_after_attempt(max_retries + 1),
        wait=_wait,
        sleep=sleep,
        before_sleep=_log_retry,
        reraise=True,
    ):
        with attempt:
            return await operation()
    raise RuntimeError("retry loop ended without a result")
