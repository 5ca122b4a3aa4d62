"""
Worker pool: a fixed number of asyncio tasks pulling jobs from one JobQueue.

Lifecycle:
  start() spawns N worker loops. Each loop: check the shutdown event -> dequeue with
  the poll timeout -> process the job (if any) -> repeat.
  stop() sets the shutdown event and waits for every loop to return. Workers are
  never cancelled; an idle worker notices the event when its dequeue times out, a
  busy one when its current job finishes (bounded by the fetch timeout).

The queue is the only state the workers share.
"""
from __future__ import annotations

import asyncio
from typing import Any

from loguru import logger

from link_worker.app.application.processing_service import ProcessingService
from link_worker.app.constants import DEFAULT_POLL_TIMEOUT_SECONDS, DEFAULT_WORKER_COUNT
from link_worker.app.core import SERVICE_NAME
from link_worker.app.domain.models import MalformedJobError
from link_worker.app.ports.job_queue import JobQueue


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


class WorkerPool:
    def __init__(
        self,
        queue: JobQueue,
        processing_service: ProcessingService,
        *,
        worker_count: int = DEFAULT_WORKER_COUNT,
        poll_timeout_seconds: float = DEFAULT_POLL_TIMEOUT_SECONDS,
        dequeue_error_backoff_seconds: float = 1.0,
    ) -> None:
        self._queue = queue
        self._processing_service = processing_service
        self._worker_count = worker_count if worker_count > 0 else DEFAULT_WORKER_COUNT
        # A zero BLMOVE timeout blocks forever, which would make stop() unbounded.
        self._poll_timeout_seconds = (
            poll_timeout_seconds if poll_timeout_seconds > 0 else DEFAULT_POLL_TIMEOUT_SECONDS
        )
        self._dequeue_error_backoff_seconds = max(0.0, dequeue_error_backoff_seconds)
        self._shutdown = asyncio.Event()
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def worker_count(self) -> int:
        return self._worker_count

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def start(self) -> None:
        if self._tasks:
            raise RuntimeError("worker pool already started")
        _log("workers_starting", count=self._worker_count)
        for worker_id in range(self._worker_count):
            task = asyncio.create_task(self._run_worker(worker_id), name=f"link-worker-{worker_id}")
            self._tasks.append(task)

    async def stop(self) -> None:
        """Signal shutdown and wait for every worker to exit. Safe to call more than once."""
        if not self._shutdown.is_set():
            _log("workers_stopping")
            self._shutdown.set()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        _log("workers_stopped")

    async def _run_worker(self, worker_id: int) -> None:
        _log("worker_started", worker_id=worker_id)
        while not self._shutdown.is_set():
            try:
                entry = await self._queue.dequeue(self._poll_timeout_seconds)
            except MalformedJobError as exc:
                logger.bind(service_name=SERVICE_NAME, event="malformed_job", worker_id=worker_id).warning("{}", exc)
                continue
            except Exception as exc:
                logger.bind(service_name=SERVICE_NAME, event="job_dequeue_failed", worker_id=worker_id).warning("{}", exc)
                await self._wait_for_shutdown(self._dequeue_error_backoff_seconds)
                continue

            if entry is None:
                continue

            try:
                await self._processing_service.process(entry, worker_id=worker_id)
            except Exception as exc:
                logger.exception("worker {} failed processing link {}: {}", worker_id, entry.job.link_id, exc)
        _log("worker_stopping", worker_id=worker_id)

    async def _wait_for_shutdown(self, seconds: float) -> None:
        try:
            await asyncio.wait_for(self._shutdown.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass
