"""Port: turn a URL into link metadata."""
from __future__ import annotations

from typing import Protocol

from link_worker.app.domain.models import LinkMetadata


class LinkMetadataFetcher(Protocol):
    """One-shot fetch. Raises MetadataFetchError (or a subclass) on failure.

    Callers bound the call with their own timeout.
    """

    async def fetch(self, url: str) -> LinkMetadata: ...
