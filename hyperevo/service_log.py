"""Request-scoped service logger.

Wraps a structlog logger bound to the service name, request id and owner, and
mirrors every line into the ``service_logs`` table when a store is attached.
Persistence is best-effort: a failed write is reported on the module logger
and never interrupts the caller.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import structlog

from hyperevo.exceptions import HyperEvoError
from hyperevo.store.base import EvolutionStore, ServiceLogRecord, Table
from hyperevo.types import UserId, new_id

_logger = logging.getLogger(__name__)


class ServiceLogger:
    def __init__(
        self,
        service: str,
        request_id: str | None = None,
        user_id: UserId | None = None,
        store: EvolutionStore | None = None,
    ) -> None:
        self.service = service
        self.request_id = request_id or new_id()
        self.user_id = user_id
        self._store = store
        self._log = structlog.get_logger().bind(
            service=service, request_id=self.request_id, user_id=user_id,
        )

    async def debug(self, message: str, **metadata: Any) -> None:
        self._log.debug(message, **metadata)
        await self._persist("debug", message, metadata)

    async def info(self, message: str, **metadata: Any) -> None:
        self._log.info(message, **metadata)
        await self._persist("info", message, metadata)

    async def warn(self, message: str, **metadata: Any) -> None:
        self._log.warning(message, **metadata)
        await self._persist("warn", message, metadata)

    async def error(self, message: str, error: BaseException | None = None, **metadata: Any) -> None:
        if error is not None:
            metadata["error"] = str(error)
            metadata["error_type"] = type(error).__name__
        self._log.error(message, **metadata)
        await self._persist("error", message, metadata)

    def timer(self) -> "_Timer":
        return _Timer()

    async def _persist(self, level: str, message: str, metadata: dict[str, Any]) -> None:
        if self._store is None:
            return
        record = ServiceLogRecord(
            level=level,
            message=message,
            service=self.service,
            request_id=self.request_id,
            user_id=self.user_id,
            metadata=metadata,
        )
        try:
            await self._store.insert(Table.SERVICE_LOGS, [record])
        except HyperEvoError as e:
            _logger.warning("Could not persist service log line: %s", e)


class _Timer:
    def __init__(self) -> None:
        self._start = time.monotonic()

    @property
    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self._start) * 1000)
