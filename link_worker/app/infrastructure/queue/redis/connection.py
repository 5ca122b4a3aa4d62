"""Redis client connection helper (provider-specific infrastructure)."""
from __future__ import annotations

import redis.asyncio as redis

from link_worker.app.config.settings import Settings
from link_worker.app.constants import DEFAULT_POLL_TIMEOUT_SECONDS
from link_worker.app.core.backoff import connect_with_backoff


def socket_timeout_seconds(settings: Settings) -> float:
    """Read timeout for every command: longer than the BLMOVE block, so only a dead socket trips it."""
    poll = settings.poll_timeout_seconds if settings.poll_timeout_seconds > 0 else DEFAULT_POLL_TIMEOUT_SECONDS
    return poll + max(settings.redis_socket_timeout_margin_seconds, 1.0)


async def _open_client(settings: Settings) -> redis.Redis:
    client = redis.from_url(
        settings.redis_url,
        socket_connect_timeout=settings.redis_connect_timeout_seconds,
        socket_timeout=socket_timeout_seconds(settings),
        socket_keepalive=True,
        health_check_interval=settings.redis_health_check_interval_seconds,
    )
    try:
        await client.ping()
    except Exception:
        await client.aclose()
        raise
    return client


async def create_redis_client(settings: Settings) -> redis.Redis:
    """Return a client that has answered PING, retrying with backoff."""
    return await connect_with_backoff(
        "redis",
        lambda: _open_client(settings),
        initial_delay=settings.initial_backoff_seconds,
        max_delay=settings.max_backoff_seconds,
        multiplier=settings.backoff_multiplier,
        max_attempts=settings.max_connection_attempts,
    )
