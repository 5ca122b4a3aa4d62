"""In-memory MetadataRepository for tests and local mode."""
from __future__ import annotations

from typing import Any

from link_worker.app.domain.models import LinkMetadata


class InMemoryMetadataRepository:
    def __init__(self) -> None:
        self.records: dict[str, dict[str, Any]] = {}

    async def save(self, link_id: str, metadata: LinkMetadata) -> None:
        self.records[link_id] = metadata.to_dict()

    async def close(self) -> None:
        return
