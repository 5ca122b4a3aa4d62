"""Mongo client connection helper (provider-specific infrastructure)."""
from __future__ import annotations

import inspect
from urllib.parse import quote_plus

from motor.motor_asyncio import AsyncIOMotorClient

from link_worker.app.config.settings import Settings
from link_worker.app.core.backoff import connect_with_backoff


def build_mongo_uri(settings: Settings) -> str:
    host = f"{settings.database_host}:{settings.database_port}"
    if settings.database_user and settings.database_password:
        credentials = f"{quote_plus(settings.database_user)}:{quote_plus(settings.database_password)}"
        return f"mongodb://{credentials}@{host}"
    return f"mongodb://{host}"


async def close_mongo_client(client: AsyncIOMotorClient) -> None:
    # motor's close() is sync; newer async drivers return an awaitable.
    result = client.close()
    if inspect.isawaitable(result):
        await result


async def _open_client(settings: Settings) -> AsyncIOMotorClient:
    client = AsyncIOMotorClient(
        build_mongo_uri(settings),
        serverSelectionTimeoutMS=settings.database_connection_timeout_ms,
        socketTimeoutMS=settings.database_socket_timeout_ms,
    )
    try:
        await client.admin.command("ping")
    except Exception:
        await close_mongo_client(client)
        raise
    return client


async def create_mongo_client(settings: Settings) -> AsyncIOMotorClient:
    """Return a client whose server answered ping, retrying with backoff."""
    return await connect_with_backoff(
        "mongo",
        lambda: _open_client(settings),
        initial_delay=settings.initial_backoff_seconds,
        max_delay=settings.max_backoff_seconds,
        multiplier=settings.backoff_multiplier,
        max_attempts=settings.max_connection_attempts,
    )
