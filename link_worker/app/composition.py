"""Worker composition root: build and lifecycle-manage concrete dependencies.

Composition may: import concrete classes, call factories, store interface types,
manage high-level lifecycle.
"""
from __future__ import annotations

from typing import Any

import redis.asyncio as redis
from loguru import logger

from link_worker.app.application.processing_service import ProcessingService
from link_worker.app.application.worker_pool import WorkerPool
from link_worker.app.config.settings import Settings
from link_worker.app.core import SERVICE_NAME
from link_worker.app.domain.metadata_fetcher import HtmlMetadataFetcher
from link_worker.app.domain.url_guard import UrlGuard
from link_worker.app.infrastructure.http.factory import create_http_client
from link_worker.app.infrastructure.messaging.factory import create_event_publisher
from link_worker.app.infrastructure.persistence.factory import create_metadata_repository
from link_worker.app.infrastructure.queue.factory import create_job_queue
from link_worker.app.infrastructure.queue.redis.connection import create_redis_client
from link_worker.app.ports.event_publisher import EventPublisher
from link_worker.app.ports.http_client import AbstractHttpClient
from link_worker.app.ports.job_queue import JobQueue
from link_worker.app.ports.link_fetcher import LinkMetadataFetcher
from link_worker.app.ports.metadata_repository import MetadataRepository


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


def _uses_redis(settings: Settings) -> bool:
    backends = (settings.queue_backend, settings.publisher_backend)
    return any(backend.strip().lower() == "redis" for backend in backends)


class WorkerDependencies:
    """Holds wired worker dependencies and their lifecycle."""

    def __init__(self, *, settings: Settings, fetcher: LinkMetadataFetcher | None = None) -> None:
        self._settings = settings
        self._fetcher_override = fetcher
        self._redis: redis.Redis | None = None
        self._queue: JobQueue | None = None
        self._repository: MetadataRepository | None = None
        self._publisher: EventPublisher | None = None
        self._http_client: AbstractHttpClient | None = None
        self._pool: WorkerPool | None = None

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def queue(self) -> JobQueue:
        if self._queue is None:
            raise RuntimeError("queue is not initialized")
        return self._queue

    @property
    def repository(self) -> MetadataRepository:
        if self._repository is None:
            raise RuntimeError("repository is not initialized")
        return self._repository

    @property
    def publisher(self) -> EventPublisher:
        if self._publisher is None:
            raise RuntimeError("publisher is not initialized")
        return self._publisher

    @property
    def pool(self) -> WorkerPool:
        if self._pool is None:
            raise RuntimeError("pool is not initialized")
        return self._pool

    async def connect(self) -> None:
        settings = self._settings
        if _uses_redis(settings):
            self._redis = await create_redis_client(settings)

        self._queue = create_job_queue(settings, self._redis)
        self._publisher = create_event_publisher(settings, self._redis)
        self._repository = await create_metadata_repository(settings)

        fetcher = self._fetcher_override
        if fetcher is None:
            url_guard = UrlGuard()
            self._http_client = create_http_client(settings, request_guard=url_guard)
            fetcher = HtmlMetadataFetcher(
                self._http_client,
                url_guard=url_guard,
                connect_timeout_seconds=settings.fetch_connect_timeout_seconds,
                read_timeout_seconds=settings.fetch_read_timeout_seconds,
                user_agent=settings.fetch_user_agent,
                max_body_bytes=settings.fetch_max_body_bytes,
                max_retries=settings.fetch_max_retries,
            )

        processing_service = ProcessingService(
            self._queue,
            fetcher,
            self._repository,
            self._publisher,
            fetch_timeout_seconds=settings.fetch_timeout_seconds,
            persist_timeout_seconds=settings.persist_timeout_seconds,
        )
        self._pool = WorkerPool(
            self._queue,
            processing_service,
            worker_count=settings.worker_count,
            poll_timeout_seconds=settings.poll_timeout_seconds,
            dequeue_error_backoff_seconds=settings.dequeue_error_backoff_seconds,
        )
        _log("dependencies_connected", queue_backend=settings.queue_backend)

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.stop()
            self._pool = None

        for name in ("_publisher", "_queue", "_repository", "_http_client"):
            component = getattr(self, name)
            if component is None:
                continue
            try:
                await component.close()
            except Exception as exc:
                logger.warning("{} close failed: {}", name.lstrip("_"), exc)
            setattr(self, name, None)

        if self._redis is not None:
            try:
                await self._redis.aclose()
            except Exception as exc:
                logger.warning("redis close failed: {}", exc)
            self._redis = None


def create_worker_dependencies(
    settings: Settings | None = None,
    *,
    fetcher: LinkMetadataFetcher | None = None,
) -> WorkerDependencies:
    return WorkerDependencies(settings=settings or Settings(), fetcher=fetcher)
