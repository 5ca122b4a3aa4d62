"""Job queue factory: selects the queue backend from config."""
from __future__ import annotations

import redis.asyncio as redis

from link_worker.app.config.settings import Settings
from link_worker.app.infrastructure.queue.inmemory.in_memory_queue import InMemoryJobQueue
from link_worker.app.infrastructure.queue.redis.redis_queue import RedisJobQueue
from link_worker.app.ports.job_queue import JobQueue


def create_job_queue(settings: Settings, redis_client: redis.Redis | None = None) -> JobQueue:
    backend = settings.queue_backend.strip().lower()

    if backend == "redis":
        if redis_client is None:
            raise ValueError("redis queue backend requires a redis client")
        return RedisJobQueue(
            redis_client,
            queue_key=settings.queue_key,
            processing_key=settings.processing_key,
        )

    if backend == "inmemory":
        return InMemoryJobQueue()

    raise ValueError(f"Unsupported queue backend: {backend}")
