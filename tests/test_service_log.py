"""Tests for the request-scoped service logger."""

import pytest

from hyperevo.exceptions import StoreError
from hyperevo.service_log import ServiceLogger
from hyperevo.store.base import ServiceLogRecord, Table


class RecordingStore:
    def __init__(self, fail=False):
        self.rows: list[ServiceLogRecord] = []
        self.fail = fail

    async def insert(self, table, records):
        if self.fail:
            raise StoreError("sqlite error: database is locked")
        assert table == Table.SERVICE_LOGS
        self.rows.extend(records)
        return len(records)


@pytest.mark.asyncio
async def test_lines_are_persisted_with_request_scope():
    store = RecordingStore()
    log = ServiceLogger("hyper-evolution", request_id="req-9", user_id="u-1", store=store)

    await log.info("evolution.start", cycles=3)
    await log.error("mode.failed", error=ValueError("bad input"), mode="collective")
    await log.warn("batch.skipped", skipped=2)

    assert [r.level for r in store.rows] == ["info", "error", "warn"]
    first = store.rows[0]
    assert first.service == "hyper-evolution"
    assert first.request_id == "req-9"
    assert first.user_id == "u-1"
    assert first.metadata == {"cycles": 3}
    assert store.rows[1].metadata["error"] == "bad input"
    assert store.rows[1].metadata["error_type"] == "ValueError"
    assert store.rows[2].message == "batch.skipped"
    assert store.rows[2].metadata == {"skipped": 2}


@pytest.mark.asyncio
async def test_persist_failure_does_not_raise():
    log = ServiceLogger("hyper-evolution", store=RecordingStore(fail=True))
    await log.warn("still running")
    await log.debug("and still running")


@pytest.mark.asyncio
async def test_without_store_nothing_is_written():
    log = ServiceLogger("test")
    assert log.request_id
    await log.info("hello")


@pytest.mark.asyncio
async def test_persisted_to_sqlite(store):
    log = ServiceLogger("hyper-evolution", store=store)
    await log.info("evolution.cycle", cycle=1)
    assert (await store.counts())["service_logs"] == 1


def test_timer_counts_up():
    timer = ServiceLogger("test").timer()
    assert timer.elapsed_ms >= 0
