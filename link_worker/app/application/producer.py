"""
Producer side of the queue: called by whatever accepted new links into user content.

Accepts plain Python types and the JobQueue abstraction; returns the jobs it queued.
Enqueue failures propagate so the caller can decide whether to drop the jobs.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable

from loguru import logger

from link_worker.app.constants import INTERNAL_UPLOAD_PATH_PREFIX
from link_worker.app.core import SERVICE_NAME
from link_worker.app.domain.link_urls import is_internal_upload_url
from link_worker.app.domain.models import MetadataJob
from link_worker.app.ports.job_queue import JobQueue


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


async def enqueue_link_jobs(
    queue: JobQueue,
    content_id: str,
    links: Iterable[tuple[str, str]],
    *,
    enabled: bool = True,
    internal_upload_prefix: str = INTERNAL_UPLOAD_PATH_PREFIX,
) -> list[MetadataJob]:
    """Queue a metadata job for every (link_id, url) pair worth fetching."""
    if not enabled:
        return []

    jobs: list[MetadataJob] = []
    for link_id, url in links:
        if not url or not url.strip():
            continue
        if is_internal_upload_url(url, internal_upload_prefix):
            continue
        jobs.append(
            MetadataJob(
                content_id=content_id,
                link_id=link_id,
                url=url.strip(),
                created_at=datetime.now(timezone.utc),
            )
        )

    for job in jobs:
        await queue.enqueue(job)
        _log("job_enqueued", content_id=job.content_id, link_id=job.link_id, url=job.url)
    return jobs
