"""Abstract interface for metadata persistence (port)."""
from __future__ import annotations

from typing import Protocol

from link_worker.app.domain.models import LinkMetadata


class MetadataRepository(Protocol):
    """Port: link metadata persistence, keyed by link id. Last write wins."""

    async def save(self, link_id: str, metadata: LinkMetadata) -> None: ...

    async def close(self) -> None:
        """Release resources (e.g. DB client). No-op allowed if nothing to close."""
        ...
