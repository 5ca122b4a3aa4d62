"""Redis pub/sub implementation of EventPublisher.

Each event is wrapped in the realtime envelope ({"type", "data", "timestamp"}) and
published to the owning content item's channel. Publishing is retried a few times
with a short linear backoff, all within one overall timeout.
"""
from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from typing import Any

import redis.asyncio as redis
from loguru import logger

from link_worker.app.constants import LINK_METADATA_UPDATED_EVENT
from link_worker.app.core import SERVICE_NAME
from link_worker.app.domain.models import MetadataUpdatedEvent

RETRY_STEP_SECONDS = 0.05


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


class RedisEventPublisher:
    def __init__(
        self,
        client: redis.Redis,
        *,
        channel_prefix: str,
        timeout_seconds: float,
        attempts: int = 3,
    ) -> None:
        self._client = client
        self._channel_prefix = channel_prefix
        self._timeout_seconds = timeout_seconds
        self._attempts = max(1, int(attempts))

    def channel_for(self, content_id: str) -> str:
        return f"{self._channel_prefix}{content_id}"

    @staticmethod
    def build_envelope(event: MetadataUpdatedEvent) -> bytes:
        return json.dumps(
            {
                "type": LINK_METADATA_UPDATED_EVENT,
                "data": event.to_dict(),
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
            separators=(",", ":"),
        ).encode()

    async def publish(self, event: MetadataUpdatedEvent) -> None:
        channel = self.channel_for(event.content_id)
        payload = self.build_envelope(event)
        await asyncio.wait_for(self._publish_with_retry(channel, payload), timeout=self._timeout_seconds)
        _log("event_published", channel=channel, link_id=event.link_id)

    async def _publish_with_retry(self, channel: str, payload: bytes) -> None:
        for attempt in range(self._attempts):
            try:
                await self._client.publish(channel, payload)
                return
            except redis.RedisError as exc:
                if attempt + 1 >= self._attempts:
                    raise
                logger.warning("publish to {} failed (attempt {}): {}", channel, attempt + 1, exc)
                await asyncio.sleep((attempt + 1) * RETRY_STEP_SECONDS)

    async def close(self) -> None:
        return
