from __future__ import annotations

import asyncio
import time
from typing import Any

import pytest
import redis.asyncio as redis

from link_worker.app.domain.fetch_errors import MetadataFetchError
from link_worker.app.domain.models import LinkMetadata, MetadataJob, MetadataUpdatedEvent


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, bytes):
        return value
    return str(value).encode()


class FakeRedis:
    """Implements the slice of redis.asyncio.Redis the worker uses: lists, publish, ping.

    Set `fail_with` to make list commands raise; `publish_failures` counts down
    failing publish calls before they start succeeding.
    """

    def __init__(self) -> None:
        self.lists: dict[str, list[bytes]] = {}
        self.published: list[tuple[str, bytes]] = []
        self.fail_with: Exception | None = None
        self.publish_failures = 0
        self.closed = False
        self._changed = asyncio.Condition()

    def _check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    async def lpush(self, name: str, *values: Any) -> int:
        self._check()
        items = self.lists.setdefault(name, [])
        for value in values:
            items.insert(0, _to_bytes(value))
        async with self._changed:
            self._changed.notify_all()
        return len(items)

    def _move(self, first_list: str, second_list: str, src: str, dest: str) -> bytes | None:
        source = self.lists.get(first_list) or []
        if not source:
            return None
        value = source.pop() if src == "RIGHT" else source.pop(0)
        target = self.lists.setdefault(second_list, [])
        if dest == "LEFT":
            target.insert(0, value)
        else:
            target.append(value)
        return value

    async def blmove(
        self,
        first_list: str,
        second_list: str,
        timeout: float,
        src: str = "LEFT",
        dest: str = "RIGHT",
    ) -> bytes | None:
        self._check()
        deadline = time.monotonic() + timeout
        async with self._changed:
            while True:
                value = self._move(first_list, second_list, src, dest)
                if value is not None:
                    return value
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return None
                try:
                    await asyncio.wait_for(self._changed.wait(), timeout=remaining)
                except asyncio.TimeoutError:
                    return None

    async def lrem(self, name: str, count: int, value: Any) -> int:
        self._check()
        items = self.lists.get(name, [])
        target = _to_bytes(value)
        removed = 0
        while target in items and (count == 0 or removed < abs(count)):
            items.remove(target)
            removed += 1
        return removed

    async def llen(self, name: str) -> int:
        self._check()
        return len(self.lists.get(name, []))

    async def publish(self, channel: str, message: Any) -> int:
        if self.publish_failures > 0:
            self.publish_failures -= 1
            raise redis.ConnectionError("publish failed")
        self.published.append((channel, _to_bytes(message)))
        return 1

    async def ping(self) -> bool:
        self._check()
        return True

    async def aclose(self) -> None:
        self.closed = True


class StubFetcher:
    """Returns canned metadata per URL; URLs in `failing` raise MetadataFetchError."""

    def __init__(
        self,
        results: dict[str, LinkMetadata] | None = None,
        *,
        default: LinkMetadata | None = None,
        failing: set[str] | None = None,
        delay: float = 0.0,
    ) -> None:
        self._results = results or {}
        self._default = default or LinkMetadata(title="default")
        self._failing = failing or set()
        self._delay = delay
        self.calls: list[str] = []

    async def fetch(self, url: str) -> LinkMetadata:
        self.calls.append(url)
        if self._delay:
            await asyncio.sleep(self._delay)
        if url in self._failing:
            raise MetadataFetchError(f"unexpected status: 500 for {url}")
        return self._results.get(url, self._default)


class CapturingRepository:
    def __init__(self, *, raise_on_save: Exception | None = None) -> None:
        self.records: dict[str, dict[str, Any]] = {}
        self.save_calls: list[tuple[str, LinkMetadata]] = []
        self._raise_on_save = raise_on_save

    async def save(self, link_id: str, metadata: LinkMetadata) -> None:
        self.save_calls.append((link_id, metadata))
        if self._raise_on_save is not None:
            raise self._raise_on_save
        self.records[link_id] = metadata.to_dict()

    async def close(self) -> None:
        return


class CapturingPublisher:
    def __init__(self, *, raise_on_publish: Exception | None = None) -> None:
        self.events: list[MetadataUpdatedEvent] = []
        self._raise_on_publish = raise_on_publish

    async def publish(self, event: MetadataUpdatedEvent) -> None:
        if self._raise_on_publish is not None:
            raise self._raise_on_publish
        self.events.append(event)

    async def close(self) -> None:
        return


def make_job(link_id: str = "L1", url: str = "https://example.com/a", content_id: str = "C1") -> MetadataJob:
    return MetadataJob(content_id=content_id, link_id=link_id, url=url)


@pytest.fixture()
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture()
def repository() -> CapturingRepository:
    return CapturingRepository()


@pytest.fixture()
def publisher() -> CapturingPublisher:
    return CapturingPublisher()
