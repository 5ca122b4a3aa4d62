"""Redis implementation of JobQueue.

Pending jobs live in one list and in-flight jobs in another. Producers LPUSH onto
pending; workers BLMOVE from the right of pending to the left of in-flight, which
is a single atomic server-side step, so a job is never in both lists or neither.
Acknowledge is LREM of one matching payload from in-flight.
"""
from __future__ import annotations

from typing import Any

import redis.asyncio as redis
from loguru import logger

from link_worker.app.core import SERVICE_NAME
from link_worker.app.domain.models import MalformedJobError, MetadataJob
from link_worker.app.ports.job_queue import AckTarget, QueueEntry, QueueTransportError


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


class RedisJobQueue:
    """JobQueue backed by two Redis lists."""

    def __init__(
        self,
        client: redis.Redis,
        *,
        queue_key: str,
        processing_key: str,
        owns_client: bool = False,
    ) -> None:
        self._client = client
        self._queue_key = queue_key
        self._processing_key = processing_key
        self._owns_client = owns_client

    @property
    def queue_key(self) -> str:
        return self._queue_key

    @property
    def processing_key(self) -> str:
        return self._processing_key

    async def enqueue(self, job: MetadataJob) -> None:
        try:
            await self._client.lpush(self._queue_key, job.to_payload())
        except redis.RedisError as exc:
            raise QueueTransportError(f"enqueue failed for link {job.link_id}: {exc}") from exc

    async def dequeue(self, timeout: float) -> QueueEntry | None:
        try:
            raw = await self._client.blmove(
                self._queue_key,
                self._processing_key,
                timeout,
                src="RIGHT",
                dest="LEFT",
            )
        except redis.RedisError as exc:
            raise QueueTransportError(f"dequeue failed: {exc}") from exc

        if raw is None:
            return None

        payload = raw if isinstance(raw, bytes) else str(raw).encode()
        try:
            job = MetadataJob.from_payload(payload)
        except MalformedJobError:
            await self._discard(payload)
            raise
        return QueueEntry(job=job, payload=payload)

    async def acknowledge(self, target: AckTarget) -> None:
        payload = target.payload if isinstance(target, QueueEntry) else target.to_payload()
        try:
            await self._client.lrem(self._processing_key, 1, payload)
        except redis.RedisError as exc:
            raise QueueTransportError(f"acknowledge failed: {exc}") from exc

    async def pending_depth(self) -> int:
        return await self._llen(self._queue_key)

    async def in_flight_depth(self) -> int:
        return await self._llen(self._processing_key)

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except redis.RedisError:
            return False

    async def close(self) -> None:
        """Close the underlying client when owned by this adapter."""
        if self._owns_client:
            await self._client.aclose()

    async def _llen(self, key: str) -> int:
        try:
            return int(await self._client.llen(key))
        except redis.RedisError as exc:
            raise QueueTransportError(f"llen failed for {key}: {exc}") from exc

    async def _discard(self, payload: bytes) -> None:
        _log("malformed_job_discarded", size=len(payload))
        try:
            await self._client.lrem(self._processing_key, 1, payload)
        except redis.RedisError as exc:
            logger.warning("failed to discard malformed job: {}", exc)
