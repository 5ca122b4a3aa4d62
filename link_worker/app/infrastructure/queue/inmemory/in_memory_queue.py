"""In-memory JobQueue for local mode and tests.

Same pending/in-flight contract as the Redis queue but nothing survives the process.
"""
from __future__ import annotations

import asyncio
from collections import deque

from link_worker.app.domain.models import MalformedJobError, MetadataJob
from link_worker.app.ports.job_queue import AckTarget, QueueEntry


class InMemoryJobQueue:
    def __init__(self) -> None:
        self._pending: deque[bytes] = deque()
        self._in_flight: list[bytes] = []
        self._available = asyncio.Condition()

    async def enqueue(self, job: MetadataJob) -> None:
        await self.enqueue_raw(job.to_payload())

    async def enqueue_raw(self, payload: bytes) -> None:
        async with self._available:
            self._pending.append(payload)
            self._available.notify()

    async def dequeue(self, timeout: float) -> QueueEntry | None:
        async with self._available:
            try:
                await asyncio.wait_for(
                    self._available.wait_for(lambda: bool(self._pending)),
                    timeout=max(timeout, 0.0),
                )
            except asyncio.TimeoutError:
                return None
            payload = self._pending.popleft()
            self._in_flight.insert(0, payload)

        try:
            job = MetadataJob.from_payload(payload)
        except MalformedJobError:
            self._remove_in_flight(payload)
            raise
        return QueueEntry(job=job, payload=payload)

    async def acknowledge(self, target: AckTarget) -> None:
        payload = target.payload if isinstance(target, QueueEntry) else target.to_payload()
        self._remove_in_flight(payload)

    async def pending_depth(self) -> int:
        return len(self._pending)

    async def in_flight_depth(self) -> int:
        return len(self._in_flight)

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return

    def _remove_in_flight(self, payload: bytes) -> None:
        try:
            self._in_flight.remove(payload)
        except ValueError:
            pass
