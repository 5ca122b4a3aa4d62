"""Event publisher factory: selects implementation from config. Only place that imports concrete publishers."""
from __future__ import annotations

import redis.asyncio as redis

from link_worker.app.config.settings import Settings
from link_worker.app.infrastructure.messaging.inmemory.in_memory_publisher import InMemoryEventPublisher
from link_worker.app.infrastructure.messaging.redis.redis_event_publisher import RedisEventPublisher
from link_worker.app.ports.event_publisher import EventPublisher


def create_event_publisher(settings: Settings, redis_client: redis.Redis | None = None) -> EventPublisher:
    backend = settings.publisher_backend.strip().lower()

    if backend == "redis":
        if redis_client is None:
            raise ValueError("redis publisher backend requires a redis client")
        return RedisEventPublisher(
            redis_client,
            channel_prefix=settings.event_channel_prefix,
            timeout_seconds=settings.publish_timeout_seconds,
            attempts=settings.publish_attempts,
        )

    if backend == "inmemory":
        return InMemoryEventPublisher()

    raise ValueError(f"Unsupported publisher backend: {backend}")
