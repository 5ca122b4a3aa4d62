from __future__ import annotations

import asyncio
from typing import Any

from loguru import logger

from link_worker.app.constants import DEFAULT_FETCH_TIMEOUT_SECONDS, DEFAULT_PERSIST_TIMEOUT_SECONDS
from link_worker.app.core import SERVICE_NAME
from link_worker.app.domain.fetch_errors import MetadataFetchTimeoutError, classify_fetch_error
from link_worker.app.domain.link_urls import extract_domain
from link_worker.app.domain.models import LinkMetadata, MetadataJob, MetadataUpdatedEvent
from link_worker.app.ports.event_publisher import EventPublisher
from link_worker.app.ports.job_queue import JobQueue, QueueEntry
from link_worker.app.ports.link_fetcher import LinkMetadataFetcher
from link_worker.app.ports.metadata_repository import MetadataRepository


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


def _log_failure(event: str, exc: BaseException, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).warning("{}", exc)


class ProcessingService:
    """
    Processes one dequeued job: fetch, persist, publish, acknowledge.

    Every outcome ends with the job acknowledged. A failed fetch or a failed save
    drops the job (there is no retry or dead-letter store); a failed publish is only
    logged because the metadata is already stored. Nothing raised by a collaborator
    escapes process().
    """

    def __init__(
        self,
        queue: JobQueue,
        fetcher: LinkMetadataFetcher,
        repository: MetadataRepository,
        publisher: EventPublisher,
        *,
        fetch_timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
        persist_timeout_seconds: float = DEFAULT_PERSIST_TIMEOUT_SECONDS,
    ) -> None:
        self._queue = queue
        self._fetcher = fetcher
        self._repository = repository
        self._publisher = publisher
        self._fetch_timeout_seconds = (
            fetch_timeout_seconds if fetch_timeout_seconds > 0 else DEFAULT_FETCH_TIMEOUT_SECONDS
        )
        self._persist_timeout_seconds = (
            persist_timeout_seconds if persist_timeout_seconds > 0 else DEFAULT_PERSIST_TIMEOUT_SECONDS
        )

    async def process(self, entry: QueueEntry, *, worker_id: int = 0) -> bool:
        """Run the pipeline for entry. Returns True when metadata was stored."""
        job = entry.job
        context = {
            "worker_id": worker_id,
            "content_id": job.content_id,
            "link_id": job.link_id,
            "url": job.url,
        }
        logger.bind(service_name=SERVICE_NAME, event="job_processing", **context).debug("")

        try:
            metadata = await self._fetch(job)
        except Exception as exc:
            _log_failure(
                "metadata_fetch_failed",
                exc,
                error_type=classify_fetch_error(exc),
                link_domain=extract_domain(job.url),
                **context,
            )
            await self._acknowledge(entry, after="fetch_failure")
            return False

        try:
            await asyncio.wait_for(
                self._repository.save(job.link_id, metadata),
                timeout=self._persist_timeout_seconds,
            )
        except Exception as exc:
            _log_failure("metadata_save_failed", exc, **context)
            await self._acknowledge(entry, after="save_failure")
            return False

        _log("metadata_stored", **context)

        try:
            await self._publisher.publish(
                MetadataUpdatedEvent(
                    content_id=job.content_id,
                    link_id=job.link_id,
                    url=job.url,
                    metadata=metadata,
                )
            )
        except Exception as exc:
            _log_failure("metadata_publish_failed", exc, **context)

        await self._acknowledge(entry, after="completed")
        return True

    async def _fetch(self, job: MetadataJob) -> LinkMetadata:
        try:
            return await asyncio.wait_for(
                self._fetcher.fetch(job.url),
                timeout=self._fetch_timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise MetadataFetchTimeoutError(
                f"fetch exceeded {self._fetch_timeout_seconds}s for {job.url}"
            ) from exc

    async def _acknowledge(self, entry: QueueEntry, *, after: str) -> None:
        try:
            await self._queue.acknowledge(entry)
        except Exception as exc:
            _log_failure("job_ack_failed", exc, after=after, link_id=entry.job.link_id)
