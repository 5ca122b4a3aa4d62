"""Extract <meta> tags and <title> from an HTML document."""
from __future__ import annotations

from bs4 import BeautifulSoup


def extract_html_meta(html: str) -> tuple[dict[str, str], str]:
    """Return ({lowercased meta name/property: content}, title). The first occurrence of a key wins."""
    meta_tags: dict[str, str] = {}
    if not html:
        return meta_tags, ""

    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.find_all("meta"):
        key = tag.get("property") or tag.get("name") or ""
        content = tag.get("content") or ""
        key = key.strip().lower()
        content = content.strip()
        if key and content and key not in meta_tags:
            meta_tags[key] = content

    title = ""
    if soup.title is not None and soup.title.string:
        title = soup.title.string.strip()
    return meta_tags, title


def first_non_empty(*values: str | None) -> str:
    for value in values:
        if value and value.strip():
            return value.strip()
    return ""
