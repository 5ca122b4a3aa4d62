"""Port: durable job queue with pending and in-flight lists. Implementations live in infrastructure."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Union

from link_worker.app.domain.models import MetadataJob


class QueueTransportError(Exception):
    """Raised when the queue's backing store cannot be reached or rejects a command."""


@dataclass(frozen=True)
class QueueEntry:
    """A dequeued job together with the exact payload held in the in-flight list."""

    job: MetadataJob
    payload: bytes


AckTarget = Union[MetadataJob, QueueEntry]


class JobQueue(Protocol):
    """Contract shared by every queue backend.

    A job is in at most one of {pending, in-flight} at any instant. Pending admission
    is FIFO. Acknowledging something that is not in-flight is a no-op.
    """

    async def enqueue(self, job: MetadataJob) -> None: ...

    async def dequeue(self, timeout: float) -> QueueEntry | None:
        """Move the oldest pending job to in-flight; None when nothing arrives within timeout.

        Raises MalformedJobError after discarding a payload that cannot be decoded.
        """
        ...

    async def acknowledge(self, target: AckTarget) -> None: ...

    async def pending_depth(self) -> int: ...

    async def in_flight_depth(self) -> int: ...

    async def ping(self) -> bool: ...

    async def close(self) -> None: ...
