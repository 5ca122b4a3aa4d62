"""Port: best-effort notification of live sessions. Implementations live in infrastructure."""
from __future__ import annotations

from typing import Protocol

from link_worker.app.domain.models import MetadataUpdatedEvent


class EventPublisher(Protocol):
    async def publish(self, event: MetadataUpdatedEvent) -> None: ...

    async def close(self) -> None: ...
