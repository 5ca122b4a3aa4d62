"""Refuse URLs that would make the fetcher talk to internal hosts."""
from __future__ import annotations

import asyncio
import ipaddress
import socket
from typing import Awaitable, Callable
from urllib.parse import urlparse

from link_worker.app.constants import FETCH_ERROR_TYPE
from link_worker.app.domain.fetch_errors import UrlValidationError

Resolver = Callable[[str], Awaitable[list[str]]]

BLOCKED_HOSTNAMES = frozenset({"localhost", "metadata.google.internal"})


async def resolve_host(host: str) -> list[str]:
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    return [info[4][0] for info in infos]


def is_blocked_hostname(host: str) -> bool:
    return host in BLOCKED_HOSTNAMES or host.endswith(".localhost")


def is_blocked_ip(address: str) -> bool:
    try:
        ip = ipaddress.ip_address(address.split("%", 1)[0])
    except ValueError:
        return True
    return ip.is_loopback or ip.is_link_local or ip.is_private or ip.is_unspecified


class UrlGuard:
    """Async callable: `await guard(url)` raises UrlValidationError or returns None."""

    def __init__(self, resolver: Resolver | None = None) -> None:
        self._resolver = resolver or resolve_host

    async def __call__(self, raw_url: str) -> None:
        try:
            parsed = urlparse(raw_url)
            host = (parsed.hostname or "").rstrip(".").lower()
        except ValueError as exc:
            raise UrlValidationError(f"parse url: {exc}") from exc

        if not parsed.scheme:
            raise UrlValidationError("missing url scheme")
        if parsed.scheme not in ("http", "https"):
            raise UrlValidationError(f"unsupported url scheme: {parsed.scheme}")
        if not host:
            raise UrlValidationError("missing url host")
        if is_blocked_hostname(host):
            raise UrlValidationError(f"blocked host: {host}", error_type=FETCH_ERROR_TYPE.BLOCKED)

        try:
            ipaddress.ip_address(host)
        except ValueError:
            pass
        else:
            if is_blocked_ip(host):
                raise UrlValidationError(f"blocked ip: {host}", error_type=FETCH_ERROR_TYPE.BLOCKED)
            return

        try:
            addresses = await self._resolver(host)
        except OSError as exc:
            raise UrlValidationError(f"resolve host: {exc}", error_type=FETCH_ERROR_TYPE.DNS) from exc
        if not addresses:
            raise UrlValidationError("resolve host: no addresses", error_type=FETCH_ERROR_TYPE.DNS)
        for address in addresses:
            if is_blocked_ip(address):
                raise UrlValidationError(f"blocked ip: {address}", error_type=FETCH_ERROR_TYPE.BLOCKED)
