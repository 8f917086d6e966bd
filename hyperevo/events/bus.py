"""Event Bus: pub/sub with wildcard matching.

The engine emits lifecycle events ("evolution.run_started",
"evolution.cycle_started", "evolution.mode_completed", ...). Subscribers
register a topic pattern: "evolution.*" matches every engine event, "*"
matches everything.
"""

from __future__ import annotations

import asyncio
import fnmatch
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Callable, Awaitable

from pydantic import BaseModel, Field

from hyperevo.types import new_id

EventHandler = Callable[["Event"], Awaitable[None]]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Event(BaseModel):
    id: str = Field(default_factory=new_id)
    topic: str
    data: dict[str, Any] = Field(default_factory=dict)
    source: str = ""
    timestamp: datetime = Field(default_factory=_now)


class EventBus:
    """Async pub/sub event bus with a bounded history."""

    def __init__(self, history_limit: int = 500) -> None:
        self._subscribers: dict[str, list[EventHandler]] = defaultdict(list)
        self._history: list[Event] = []
        self._history_limit = history_limit
        self._lock = asyncio.Lock()

    def subscribe(self, pattern: str, handler: EventHandler) -> None:
        self._subscribers[pattern].append(handler)

    def unsubscribe(self, pattern: str, handler: EventHandler) -> None:
        handlers = self._subscribers.get(pattern, [])
        if handler in handlers:
            handlers.remove(handler)

    async def emit(self, topic: str, data: dict | None = None, source: str = "") -> Event:
        """Record the event and deliver it to every matching subscriber.

        Subscriber failures are collected by ``gather`` and do not reach the
        emitter.
        """
        event = Event(topic=topic, data=data or {}, source=source)

        async with self._lock:
            self._history.append(event)
            if len(self._history) > self._history_limit:
                self._history = self._history[-self._history_limit:]

        tasks = [
            handler(event)
            for pattern, handlers in self._subscribers.items()
            if fnmatch.fnmatch(topic, pattern)
            for handler in handlers
        ]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        return event

    def history(self, topic_filter: str = "*", limit: int = 50) -> list[Event]:
        """Most recent events first, optionally filtered by topic pattern."""
        if topic_filter == "*":
            events = self._history
        else:
            events = [e for e in self._history if fnmatch.fnmatch(e.topic, topic_filter)]
        return list(reversed(events[-limit:]))

    @property
    def subscriber_count(self) -> int:
        return sum(len(h) for h in self._subscribers.values())
