"""Fetch failure types and their classification for logs."""
from __future__ import annotations

import asyncio

from link_worker.app.constants import FETCH_ERROR_TYPE


class MetadataFetchError(Exception):
    """Base error for metadata fetching failures. `error_type` is a short label for logs."""

    error_type: str = FETCH_ERROR_TYPE.FETCH_ERROR

    def __init__(self, message: str, *, error_type: str | None = None) -> None:
        super().__init__(message)
        if error_type is not None:
            self.error_type = error_type


class MetadataFetchTimeoutError(MetadataFetchError):
    """Raised when fetching a URL takes longer than allowed."""

    error_type = FETCH_ERROR_TYPE.TIMEOUT


class UrlValidationError(MetadataFetchError):
    """Raised for URLs the fetcher refuses to request (bad scheme, internal hosts, DNS failure)."""

    error_type = FETCH_ERROR_TYPE.INVALID_URL


def classify_fetch_error(exc: BaseException | None) -> str:
    if exc is None:
        return ""
    if isinstance(exc, MetadataFetchError):
        return exc.error_type
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return FETCH_ERROR_TYPE.TIMEOUT
    return FETCH_ERROR_TYPE.FETCH_ERROR
