"""Builds the fetcher's HTTP client from settings."""
from __future__ import annotations

from typing import Awaitable, Callable

import httpx

from link_worker.app.config.settings import Settings
from link_worker.app.infrastructure.http.httpx_client import HttpxHttpClient
from link_worker.app.ports.http_client import AbstractHttpClient

RequestGuard = Callable[[str], Awaitable[None]]


def build_request_hook(guard: RequestGuard) -> Callable[[httpx.Request], Awaitable[None]]:
    """httpx fires request hooks for every hop, so redirects are checked too."""

    async def _hook(request: httpx.Request) -> None:
        await guard(str(request.url))

    return _hook


def create_http_client(settings: Settings, *, request_guard: RequestGuard | None = None) -> AbstractHttpClient:
    hooks = {"request": [build_request_hook(request_guard)]} if request_guard is not None else {}
    return HttpxHttpClient(
        httpx.AsyncClient(max_redirects=settings.fetch_max_redirects, event_hooks=hooks)
    )
