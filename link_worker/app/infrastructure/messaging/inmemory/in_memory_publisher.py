"""In-memory publisher for tests and local mode. Events are kept in `.events`; nobody is notified."""
from __future__ import annotations

from link_worker.app.domain.models import MetadataUpdatedEvent


class InMemoryEventPublisher:
    def __init__(self) -> None:
        self.events: list[MetadataUpdatedEvent] = []

    async def publish(self, event: MetadataUpdatedEvent) -> None:
        self.events.append(event)

    async def close(self) -> None:
        return
