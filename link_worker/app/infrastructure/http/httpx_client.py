"""httpx implementation of the HTTP client port."""
from __future__ import annotations

import httpx

from link_worker.app.ports.http_client import (
    FetchedPage,
    HttpClientError,
    HttpClientRedirectError,
    HttpClientTimeoutError,
    RequestTimeout,
)


async def read_capped(response: httpx.Response, max_bytes: int) -> bytes:
    """Read the streamed body, stopping once max_bytes have arrived."""
    buffer = bytearray()
    async for chunk in response.aiter_bytes():
        buffer.extend(chunk)
        if 0 < max_bytes <= len(buffer):
            return bytes(buffer[:max_bytes])
    return bytes(buffer)


class HttpxHttpClient:
    """Streams the response so oversized pages are never fully downloaded."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def get(
        self,
        url: str,
        *,
        timeout: RequestTimeout,
        headers: dict[str, str] | None = None,
        max_bytes: int = 0,
    ) -> FetchedPage:
        request_timeout = httpx.Timeout(timeout.read_seconds, connect=timeout.connect_seconds)
        try:
            async with self._client.stream(
                "GET",
                url,
                headers=headers,
                timeout=request_timeout,
                follow_redirects=True,
            ) as response:
                body = await read_capped(response, max_bytes)
                return FetchedPage(
                    status_code=response.status_code,
                    url=str(response.url),
                    content_type=response.headers.get("content-type", ""),
                    body=body,
                    encoding=response.charset_encoding,
                )
        except httpx.TimeoutException as exc:
            raise HttpClientTimeoutError(f"timed out fetching {url}") from exc
        except httpx.TooManyRedirects as exc:
            raise HttpClientRedirectError(f"too many redirects fetching {url}") from exc
        except httpx.HTTPError as exc:
            raise HttpClientError(f"fetching {url} failed: {exc}") from exc

    async def close(self) -> None:
        await self._client.aclose()
