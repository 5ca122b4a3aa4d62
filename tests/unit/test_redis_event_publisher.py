"""Unit tests for RedisEventPublisher using the fake Redis client."""
from __future__ import annotations

import asyncio
import json

import pytest
import redis.asyncio as redis

from link_worker.app.domain.models import LinkMetadata, MetadataUpdatedEvent
from link_worker.app.infrastructure.messaging.redis import redis_event_publisher
from link_worker.app.infrastructure.messaging.redis.redis_event_publisher import RedisEventPublisher


def _event() -> MetadataUpdatedEvent:
    return MetadataUpdatedEvent(
        content_id="C1",
        link_id="L1",
        url="https://example.com/a",
        metadata=LinkMetadata(title="A", provider="example.com"),
    )


def _publisher(fake_redis, **kwargs) -> RedisEventPublisher:
    kwargs.setdefault("timeout_seconds", 2.0)
    return RedisEventPublisher(fake_redis, channel_prefix="post:", **kwargs)


@pytest.fixture(autouse=True)
def fast_retries(monkeypatch):
    monkeypatch.setattr(redis_event_publisher, "RETRY_STEP_SECONDS", 0.0)


@pytest.mark.asyncio
async def test_publishes_envelope_to_content_channel(fake_redis):
    await _publisher(fake_redis).publish(_event())

    assert len(fake_redis.published) == 1
    channel, raw = fake_redis.published[0]
    assert channel == "post:C1"
    envelope = json.loads(raw)
    assert envelope["type"] == "link_metadata_updated"
    assert envelope["data"] == {
        "content_id": "C1",
        "link_id": "L1",
        "url": "https://example.com/a",
        "metadata": {"title": "A", "provider": "example.com"},
    }
    assert envelope["timestamp"]


@pytest.mark.asyncio
async def test_transient_publish_failures_are_retried(fake_redis):
    fake_redis.publish_failures = 2

    await _publisher(fake_redis, attempts=3).publish(_event())

    assert len(fake_redis.published) == 1


@pytest.mark.asyncio
async def test_publish_gives_up_after_attempts(fake_redis):
    fake_redis.publish_failures = 5

    with pytest.raises(redis.ConnectionError):
        await _publisher(fake_redis, attempts=3).publish(_event())

    assert fake_redis.published == []
    assert fake_redis.publish_failures == 2


@pytest.mark.asyncio
async def test_publish_is_bounded_by_timeout():
    class HangingRedis:
        async def publish(self, channel, message):
            await asyncio.sleep(10)

    publisher = RedisEventPublisher(HangingRedis(), channel_prefix="post:", timeout_seconds=0.05)

    with pytest.raises(asyncio.TimeoutError):
        await publisher.publish(_event())
