"""Domain models."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


class MalformedJobError(ValueError):
    """Raised when a queue payload cannot be decoded into a MetadataJob."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class MetadataJob:
    """One metadata-fetch request for a link inside a content item."""

    content_id: str
    link_id: str
    url: str
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if not isinstance(self.url, str) or not self.url.strip():
            raise MalformedJobError("job missing required field: url")
        if not self.link_id:
            raise MalformedJobError("job missing required field: link_id")
        if not self.content_id:
            raise MalformedJobError("job missing required field: content_id")
        # Stored trimmed so a decoded payload equals the job that produced it.
        object.__setattr__(self, "url", self.url.strip())
        if self.created_at.tzinfo is None:
            object.__setattr__(self, "created_at", self.created_at.replace(tzinfo=timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "content_id": self.content_id,
            "link_id": self.link_id,
            "url": self.url,
            "created_at": self.created_at.isoformat(),
        }

    def to_payload(self) -> bytes:
        """Field-named JSON, byte-stable for a given job (acknowledge matches on it)."""
        return json.dumps(self.to_dict(), separators=(",", ":")).encode()

    @staticmethod
    def from_payload(raw: bytes | str) -> "MetadataJob":
        try:
            body = json.loads(raw)
        except (TypeError, ValueError) as exc:
            raise MalformedJobError(f"job payload is not valid json: {exc}") from exc
        if not isinstance(body, dict):
            raise MalformedJobError("job payload must be a json object")

        for key in ("content_id", "link_id", "url", "created_at"):
            if body.get(key) in (None, ""):
                raise MalformedJobError(f"job missing required field: {key}")
        try:
            created_at = datetime.fromisoformat(str(body["created_at"]).replace("Z", "+00:00"))
        except ValueError as exc:
            raise MalformedJobError(f"job has invalid created_at: {body['created_at']!r}") from exc

        return MetadataJob(
            content_id=str(body["content_id"]),
            link_id=str(body["link_id"]),
            url=str(body["url"]),
            created_at=created_at,
        )


_METADATA_FIELDS = ("title", "description", "image", "site_name", "author", "type", "provider")


@dataclass(frozen=True)
class LinkMetadata:
    """Descriptive fields fetched for a link. Every field is optional."""

    title: str | None = None
    description: str | None = None
    image: str | None = None
    site_name: str | None = None
    author: str | None = None
    type: str | None = None
    provider: str | None = None
    embed: dict[str, Any] | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.embed is not None and not isinstance(self.embed, dict):
            raise TypeError("metadata.embed must be a dict or None")
        if not isinstance(self.extra, dict):
            raise TypeError("metadata.extra must be a dict")

    @property
    def is_empty(self) -> bool:
        return not self.to_dict()

    def to_dict(self) -> dict[str, Any]:
        """Serialisable dict; unset fields are omitted and `extra` keys are merged in."""
        payload: dict[str, Any] = dict(self.extra)
        for name in _METADATA_FIELDS:
            value = getattr(self, name)
            if value is not None:
                payload[name] = value
        if self.embed is not None:
            payload["embed"] = dict(self.embed)
        return payload

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "LinkMetadata":
        known = {name: data[name] for name in _METADATA_FIELDS if data.get(name) is not None}
        extra = {
            key: value
            for key, value in data.items()
            if key not in _METADATA_FIELDS and key != "embed"
        }
        embed = data.get("embed")
        return LinkMetadata(**known, embed=dict(embed) if embed is not None else None, extra=extra)


@dataclass(frozen=True)
class MetadataUpdatedEvent:
    """Notification that a link's metadata was persisted."""

    content_id: str
    link_id: str
    url: str
    metadata: LinkMetadata

    def to_dict(self) -> dict[str, Any]:
        return {
            "content_id": self.content_id,
            "link_id": self.link_id,
            "url": self.url,
            "metadata": self.metadata.to_dict(),
        }
