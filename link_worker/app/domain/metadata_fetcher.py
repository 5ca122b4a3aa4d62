"""Default LinkMetadataFetcher: GET the page and read its OpenGraph/Twitter/HTML metadata.

Uses the HTTP port (AbstractHttpClient); the client is built in the composition root.
Transient failures (timeouts, 408/429/5xx gateway statuses) are retried a couple of
times with a short capped backoff before giving up.
"""
from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable
from urllib.parse import urlparse

from loguru import logger

from link_worker.app.constants import FETCH_ERROR_TYPE
from link_worker.app.domain.fetch_errors import MetadataFetchError, MetadataFetchTimeoutError
from link_worker.app.domain.html_meta import extract_html_meta, first_non_empty
from link_worker.app.domain.link_urls import detect_provider, looks_like_image_url, resolve_url
from link_worker.app.domain.models import LinkMetadata
from link_worker.app.ports.http_client import (
    AbstractHttpClient,
    FetchedPage,
    HttpClientError,
    HttpClientRedirectError,
    HttpClientTimeoutError,
    RequestTimeout,
)

RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})
RETRY_BACKOFF_BASE_SECONDS = 0.075
RETRY_BACKOFF_MAX_SECONDS = 0.3


def retry_backoff(attempt: int) -> float:
    return min(RETRY_BACKOFF_BASE_SECONDS * (2 ** max(attempt, 0)), RETRY_BACKOFF_MAX_SECONDS)


class HtmlMetadataFetcher:
    """Fetches link metadata using an injectable AbstractHttpClient and URL guard."""

    def __init__(
        self,
        client: AbstractHttpClient,
        *,
        url_guard: Callable[[str], Awaitable[None]],
        connect_timeout_seconds: float,
        read_timeout_seconds: float,
        user_agent: str = "",
        max_body_bytes: int = 2 * 1024 * 1024,
        max_retries: int = 2,
    ) -> None:
        self._client = client
        self._url_guard = url_guard
        self._timeout = RequestTimeout(
            connect_seconds=connect_timeout_seconds,
            read_seconds=read_timeout_seconds,
        )
        self._headers = {"User-Agent": user_agent} if user_agent else {}
        self._max_body_bytes = int(max_body_bytes)
        self._max_retries = max(0, int(max_retries))

    async def fetch(self, url: str) -> LinkMetadata:
        url = url.strip()
        await self._url_guard(url)

        response = await self._get_with_retry(url)
        if not 200 <= response.status_code < 400:
            raise MetadataFetchError(
                f"unexpected status: {response.status_code}",
                error_type=FETCH_ERROR_TYPE.HTTP_STATUS,
            )

        final_url = response.url or url
        content_type = response.content_type.lower()
        is_html = "text/html" in content_type
        fields: dict[str, Any] = {}

        # SVGs are treated as images too; clients render them via <img>.
        if content_type.startswith("image/"):
            fields["image"] = url
            fields["type"] = "image"

        site_name = ""
        if is_html:
            fields.update(self._fields_from_html(response.text, final_url))
            site_name = fields.get("site_name", "")

        if "image" not in fields and not is_html and looks_like_image_url(url):
            fields["image"] = url
            fields["type"] = "image"

        host = urlparse(url).hostname or ""
        provider = detect_provider(host) or site_name or host
        if provider:
            fields["provider"] = provider

        return LinkMetadata(**fields)

    def _fields_from_html(self, body: str, base_url: str) -> dict[str, str]:
        meta, html_title = extract_html_meta(body)
        image = first_non_empty(
            meta.get("og:image:secure_url"),
            meta.get("og:image"),
            meta.get("twitter:image"),
            meta.get("twitter:image:src"),
        )
        candidates = {
            "title": first_non_empty(meta.get("og:title"), meta.get("twitter:title"), html_title),
            "description": first_non_empty(
                meta.get("og:description"),
                meta.get("twitter:description"),
                meta.get("description"),
            ),
            "image": resolve_url(base_url, image) if image else "",
            "site_name": first_non_empty(meta.get("og:site_name"), meta.get("application-name")),
            "author": first_non_empty(meta.get("author"), meta.get("twitter:creator")),
            "type": meta.get("og:type", ""),
        }
        return {key: value for key, value in candidates.items() if value}

    async def _get_with_retry(self, url: str) -> FetchedPage:
        attempt = 0
        while True:
            try:
                response = await self._client.get(
                    url,
                    timeout=self._timeout,
                    headers=self._headers or None,
                    max_bytes=self._max_body_bytes,
                )
            except HttpClientTimeoutError as exc:
                if attempt >= self._max_retries:
                    raise MetadataFetchTimeoutError(str(exc)) from exc
            except HttpClientRedirectError as exc:
                raise MetadataFetchError(str(exc), error_type=FETCH_ERROR_TYPE.REDIRECT) from exc
            except HttpClientError as exc:
                raise MetadataFetchError(str(exc)) from exc
            else:
                if response.status_code not in RETRYABLE_STATUS_CODES or attempt >= self._max_retries:
                    return response

            logger.debug("retrying fetch of {} (attempt {})", url, attempt + 1)
            await asyncio.sleep(retry_backoff(attempt))
            attempt += 1
