"""Tests for WorkerPool lifecycle and isolation between jobs."""
from __future__ import annotations

import asyncio
import time

import pytest

from link_worker.app.application.processing_service import ProcessingService
from link_worker.app.application.worker_pool import WorkerPool
from link_worker.app.constants import DEFAULT_WORKER_COUNT
from link_worker.app.domain.models import LinkMetadata
from link_worker.app.infrastructure.queue.inmemory.in_memory_queue import InMemoryJobQueue
from link_worker.app.infrastructure.queue.redis.redis_queue import RedisJobQueue
from link_worker.app.ports.job_queue import QueueTransportError
from tests.conftest import CapturingRepository, StubFetcher, make_job


async def _wait_until(predicate, timeout: float = 2.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)


def _pool(queue, fetcher, repository, publisher, **kwargs) -> WorkerPool:
    fetch_timeout = kwargs.pop("fetch_timeout_seconds", 2.0)
    service = ProcessingService(queue, fetcher, repository, publisher, fetch_timeout_seconds=fetch_timeout)
    kwargs.setdefault("poll_timeout_seconds", 0.05)
    return WorkerPool(queue, service, **kwargs)


class FlakyQueue(InMemoryJobQueue):
    """Fails the first few dequeue calls with a transport error."""

    def __init__(self, failures: int) -> None:
        super().__init__()
        self.failures = failures

    async def dequeue(self, timeout: float):
        if self.failures > 0:
            self.failures -= 1
            raise QueueTransportError("redis unavailable")
        return await super().dequeue(timeout)


@pytest.mark.asyncio
async def test_pool_processes_job_from_redis_queue_end_to_end(fake_redis, repository, publisher):
    queue = RedisJobQueue(fake_redis, queue_key="q", processing_key="q:processing")
    fetcher = StubFetcher({"https://example.com/a": LinkMetadata(title="A")})
    pool = _pool(queue, fetcher, repository, publisher, worker_count=2)
    await queue.enqueue(make_job(link_id="L1", url="https://example.com/a"))

    pool.start()
    await _wait_until(lambda: "L1" in repository.records)
    await pool.stop()

    assert repository.records == {"L1": {"title": "A"}}
    assert len(publisher.events) == 1
    assert await queue.pending_depth() == 0
    assert await queue.in_flight_depth() == 0


@pytest.mark.asyncio
async def test_failing_job_does_not_stop_other_jobs(repository, publisher):
    queue = InMemoryJobQueue()
    fetcher = StubFetcher(failing={"https://example.com/bad"})
    pool = _pool(queue, fetcher, repository, publisher, worker_count=1)
    await queue.enqueue(make_job(link_id="bad", url="https://example.com/bad"))
    await queue.enqueue(make_job(link_id="good", url="https://example.com/good"))

    pool.start()
    await _wait_until(lambda: "good" in repository.records)
    await pool.stop()

    assert set(repository.records) == {"good"}
    assert fetcher.calls == ["https://example.com/bad", "https://example.com/good"]
    assert await queue.in_flight_depth() == 0


@pytest.mark.asyncio
async def test_stop_returns_within_poll_interval_when_idle(repository, publisher):
    pool = _pool(InMemoryJobQueue(), StubFetcher(), repository, publisher, worker_count=3, poll_timeout_seconds=0.1)
    pool.start()
    await asyncio.sleep(0.05)

    started = time.monotonic()
    await pool.stop()

    assert time.monotonic() - started < 1.0
    assert pool.running is False


@pytest.mark.asyncio
async def test_stop_waits_for_in_progress_job(repository, publisher):
    queue = InMemoryJobQueue()
    fetcher = StubFetcher(delay=0.2)
    pool = _pool(queue, fetcher, repository, publisher, worker_count=1)
    await queue.enqueue(make_job(link_id="slow"))

    pool.start()
    await _wait_until(lambda: fetcher.calls)
    await pool.stop()

    assert "slow" in repository.records
    assert await queue.in_flight_depth() == 0


@pytest.mark.asyncio
async def test_stop_is_idempotent_and_safe_before_start(repository, publisher):
    pool = _pool(InMemoryJobQueue(), StubFetcher(), repository, publisher, worker_count=1)
    await pool.stop()

    pool.start()
    await pool.stop()
    await pool.stop()
    assert pool.running is False


@pytest.mark.asyncio
async def test_non_positive_worker_count_uses_default(repository, publisher):
    assert _pool(InMemoryJobQueue(), StubFetcher(), repository, publisher, worker_count=0).worker_count == DEFAULT_WORKER_COUNT
    assert _pool(InMemoryJobQueue(), StubFetcher(), repository, publisher, worker_count=-2).worker_count == DEFAULT_WORKER_COUNT


@pytest.mark.asyncio
async def test_start_twice_raises(repository, publisher):
    pool = _pool(InMemoryJobQueue(), StubFetcher(), repository, publisher, worker_count=1)
    pool.start()
    try:
        with pytest.raises(RuntimeError):
            pool.start()
    finally:
        await pool.stop()


@pytest.mark.asyncio
async def test_worker_survives_dequeue_errors(repository, publisher):
    queue = FlakyQueue(failures=2)
    pool = _pool(
        queue,
        StubFetcher(),
        repository,
        publisher,
        worker_count=1,
        dequeue_error_backoff_seconds=0.01,
    )
    await queue.enqueue(make_job(link_id="after-outage"))

    pool.start()
    await _wait_until(lambda: "after-outage" in repository.records)
    await pool.stop()
    assert queue.failures == 0


@pytest.mark.asyncio
async def test_malformed_entry_is_skipped(repository, publisher):
    queue = InMemoryJobQueue()
    pool = _pool(queue, StubFetcher(), repository, publisher, worker_count=1)
    await queue.enqueue_raw(b"not json")
    await queue.enqueue(make_job(link_id="valid"))

    pool.start()
    await _wait_until(lambda: "valid" in repository.records)
    await pool.stop()

    assert await queue.in_flight_depth() == 0
    assert await queue.pending_depth() == 0


class HangingRepository(CapturingRepository):
    async def save(self, link_id, metadata) -> None:
        self.save_calls.append((link_id, metadata))
        await asyncio.Event().wait()


@pytest.mark.asyncio
async def test_stop_returns_when_save_never_completes(publisher):
    queue = InMemoryJobQueue()
    repository = HangingRepository()
    service = ProcessingService(
        queue,
        StubFetcher(),
        repository,
        publisher,
        fetch_timeout_seconds=1.0,
        persist_timeout_seconds=0.1,
    )
    pool = WorkerPool(queue, service, worker_count=1, poll_timeout_seconds=0.05)
    await queue.enqueue(make_job(link_id="stuck"))

    pool.start()
    await _wait_until(lambda: repository.save_calls)
    await asyncio.wait_for(pool.stop(), timeout=2.0)

    assert repository.records == {}
    assert publisher.events == []
    assert await queue.in_flight_depth() == 0
