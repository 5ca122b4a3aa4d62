from __future__ import annotations

import pytest

from link_worker.app.application.producer import enqueue_link_jobs
from link_worker.app.infrastructure.queue.inmemory.in_memory_queue import InMemoryJobQueue


@pytest.mark.asyncio
async def test_enqueues_one_job_per_external_link():
    queue = InMemoryJobQueue()
    links = [
        ("L1", " https://example.com/a "),
        ("L2", "/api/v1/uploads/photo.png"),
        ("L3", "https://app.example.com/api/v1/uploads/doc.pdf"),
        ("L4", "   "),
        ("L5", "https://example.com/b"),
    ]

    jobs = await enqueue_link_jobs(queue, "C9", links)

    assert [(job.link_id, job.url, job.content_id) for job in jobs] == [
        ("L1", "https://example.com/a", "C9"),
        ("L5", "https://example.com/b", "C9"),
    ]
    assert await queue.pending_depth() == 2
    first = await queue.dequeue(0.1)
    assert first is not None and first.job.link_id == "L1"


@pytest.mark.asyncio
async def test_disabled_feature_enqueues_nothing():
    queue = InMemoryJobQueue()

    jobs = await enqueue_link_jobs(queue, "C1", [("L1", "https://example.com")], enabled=False)

    assert jobs == []
    assert await queue.pending_depth() == 0
