"""Helpers for reasoning about link URLs without fetching them."""
from __future__ import annotations

from urllib.parse import parse_qsl, urljoin, urlparse

IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "gif", "webp", "bmp", "svg", "avif", "tif", "tiff")
_IMAGE_FORMAT_VALUES = frozenset(IMAGE_EXTENSIONS) | {"image"}
_IMAGE_FORMAT_KEYS = ("format", "fm", "ext", "type")

_PROVIDERS = (
    (("spotify.com",), "spotify"),
    (("youtube.com", "youtu.be"), "youtube"),
    (("imdb.com",), "imdb"),
    (("soundcloud.com",), "soundcloud"),
    (("bandcamp.com",), "bandcamp"),
    (("vimeo.com",), "vimeo"),
)


def extract_domain(raw_url: str) -> str:
    """Lowercased hostname of raw_url, or "" when there is none."""
    if not raw_url or not raw_url.strip():
        return ""
    try:
        host = urlparse(raw_url.strip()).hostname
    except ValueError:
        return ""
    return (host or "").strip().lower()


def detect_provider(host: str) -> str:
    host = host.lower()
    for needles, provider in _PROVIDERS:
        if any(needle in host for needle in needles):
            return provider
    return ""


def resolve_url(base: str, ref: str) -> str:
    if urlparse(ref).scheme:
        return ref
    return urljoin(base, ref)


def _has_image_extension(value: str) -> bool:
    lower = value.lower()
    for ext in IMAGE_EXTENSIONS:
        needle = "." + ext
        idx = lower.rfind(needle)
        if idx == -1:
            continue
        end = idx + len(needle)
        if end == len(lower) or lower[end] in "?#&":
            return True
    return False


def looks_like_image_url(raw_url: str) -> bool:
    parsed = urlparse(raw_url)
    if _has_image_extension(parsed.path):
        return True
    if not parsed.query:
        return False

    query = parse_qsl(parsed.query, keep_blank_values=True)
    for key, value in query:
        if key in _IMAGE_FORMAT_KEYS and value.lower() in _IMAGE_FORMAT_VALUES:
            return True
    return any(_has_image_extension(value) for _, value in query)


def is_internal_upload_url(raw_url: str, prefix: str) -> bool:
    """True for links that point at our own uploads endpoint (relative or absolute)."""
    trimmed = (raw_url or "").strip()
    if not trimmed:
        return False
    prefix = prefix.rstrip("/")
    try:
        path = urlparse(trimmed).path.strip()
    except ValueError:
        return False
    return path == prefix or path.startswith(prefix + "/")
