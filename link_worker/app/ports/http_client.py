"""Port for the single HTTP call the fetcher makes: a GET with a capped body.

The httpx adapter in infrastructure implements it; tests pass fakes.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


class HttpClientError(Exception):
    """Transport-level failure: connection reset, TLS, protocol errors."""


class HttpClientTimeoutError(HttpClientError):
    pass


class HttpClientRedirectError(HttpClientError):
    """More redirects than the client allows."""


@dataclass(frozen=True)
class RequestTimeout:
    connect_seconds: float
    read_seconds: float


@dataclass(frozen=True)
class FetchedPage:
    """What came back from a GET. `url` is the final URL after redirects."""

    status_code: int
    url: str
    content_type: str = ""
    body: bytes = b""
    encoding: str | None = None

    @property
    def text(self) -> str:
        return self.body.decode(self.encoding or "utf-8", errors="replace")


class AbstractHttpClient(Protocol):
    async def get(
        self,
        url: str,
        *,
        timeout: RequestTimeout,
        headers: dict[str, str] | None = None,
        max_bytes: int = 0,
    ) -> FetchedPage:
        """GET url following redirects, reading at most max_bytes of body (0 = no cap).

        Any status code is returned as a FetchedPage; only transport failures raise.
        """
        ...

    async def close(self) -> None: ...
