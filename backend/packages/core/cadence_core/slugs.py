"""
Slug generation and title matching.

The same rules are used when snapshots are generated and when an incoming
identifier is resolved, so every function here must stay deterministic.
"""

from __future__ import annotations

import hashlib
import json
import re
import unicodedata
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from urllib.parse import urlparse

from cadence_core import get_logger
from cadence_core.slug_overrides import SLUG_OVERRIDES_DEFAULTS

logger = get_logger(__name__)

FEED_ID_MAX_LENGTH = 200

_NON_ALNUM_RUN = re.compile(r"[^a-zA-Z0-9]+")
_HYPHEN_RUN = re.compile(r"-+")
_WHITESPACE_RUN = re.compile(r"\s+")
_SIMPLE_STRIP = re.compile(r"[^\w\s-]", re.ASCII)
_RICH_STRIP = re.compile(r"[^a-z0-9\s-]")
_FEED_EXTENSION = re.compile(r"\.(xml|rss)$", re.IGNORECASE)
_WORD_START = re.compile(r"\b\w", re.ASCII)
# Only spaced separators split a title, so "Lo-Fi Beats" keeps its hyphen.
_SUBTITLE_SEPARATOR = re.compile(r"\s+[-–]\s+")


class MatchRule(str, Enum):
    """Which title rule matched an identifier."""

    EXACT = "exact"
    RICH_SLUG = "rich-slug"
    SIMPLE_SLUG = "simple-slug"
    BASE_TITLE = "base-title"


def _short_hash(text: str, length: int = 8) -> str:
    return hashlib.sha1(text.encode("utf-8")).hexdigest()[:length]


def derive_feed_id(url: str) -> str:
    """
    Derive a stable feed id from a URL.

    Args:
        url: Feed URL.

    Returns:
        Lower-case id made of ``[a-z0-9-]``, at most 200 characters.
    """
    feed_id = _NON_ALNUM_RUN.sub("-", url).lower().strip("-")
    if len(feed_id) > FEED_ID_MAX_LENGTH:
        feed_id = feed_id[:FEED_ID_MAX_LENGTH].rstrip("-")
    if not feed_id:
        feed_id = f"feed-{_short_hash(url, 12)}"
    return feed_id


def title_from_url(url: str) -> str:
    """
    Build a readable title from a feed URL.

    ``https://host/feeds/my-album.xml`` becomes ``My Album``; a URL without a
    path falls back to ``Feed from host``.
    """
    parsed = urlparse(url)
    host = parsed.hostname or url
    parts = [part for part in parsed.path.split("/") if part]
    if parts:
        name = _FEED_EXTENSION.sub("", parts[-1])
        if name:
            return _WORD_START.sub(lambda m: m.group().upper(), name.replace("-", " "))
    return f"Feed from {host}"


def hostname_title(url: str) -> str:
    """Title used for feeds discovered without a title of their own."""
    return f"Feed from {urlparse(url).hostname or url}"


def generate_slug(text: str) -> str:
    """Simple slug: lower-case, punctuation dropped, whitespace to hyphens."""
    if not text:
        return ""
    slug = _SIMPLE_STRIP.sub("", text.lower())
    slug = _WHITESPACE_RUN.sub("-", slug)
    slug = _HYPHEN_RUN.sub("-", slug)
    return slug.strip("-")


def _strip_diacritics(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def generate_album_slug(title: str, overrides: Mapping[str, str] | None = None) -> str:
    """
    Rich album slug.

    Known problem titles are looked up in ``overrides`` first. Otherwise
    diacritics are folded, ``&``/``+``/``@`` become words and anything outside
    ``[a-z0-9]`` is dropped. A title with no usable characters gets a
    hash-based slug so the result is never empty.
    """
    table = SLUG_OVERRIDES_DEFAULTS if overrides is None else overrides
    lowered = (title or "").lower().strip()
    if lowered in table:
        return table[lowered]

    slug = _strip_diacritics(lowered)
    slug = slug.replace("&", "and").replace("+", "plus").replace("@", "at")
    slug = _RICH_STRIP.sub("", slug)
    slug = _WHITESPACE_RUN.sub("-", slug)
    slug = _HYPHEN_RUN.sub("-", slug).strip("-")

    if not slug:
        slug = f"album-{_short_hash(title or '')}"
    return slug


def base_title(title: str) -> str:
    """Portion of a "Title - Subtitle" release before the first separator."""
    return _SUBTITLE_SEPARATOR.split(title.lower().strip(), maxsplit=1)[0]


def base_title_slug(title: str, overrides: Mapping[str, str] | None = None) -> str:
    return generate_album_slug(base_title(title), overrides)


def match_title(
    title: str | None,
    identifier: str,
    overrides: Mapping[str, str] | None = None,
) -> MatchRule | None:
    """
    Check an album title against a user-facing identifier.

    Rules are tried in order: exact (case-insensitive), rich slug, simple
    slug, and base title before a `` - `` separator.

    Returns:
        The first rule that matched, or None.
    """
    if not title:
        return None

    wanted = identifier.lower()
    if title.lower() == wanted:
        return MatchRule.EXACT
    if generate_album_slug(title, overrides) == wanted:
        return MatchRule.RICH_SLUG
    if generate_slug(title) == wanted:
        return MatchRule.SIMPLE_SLUG
    if base_title_slug(title, overrides) == wanted:
        return MatchRule.BASE_TITLE
    return None


def generate_publisher_slug(
    title: str | None = None,
    artist: str | None = None,
    feed_guid: str | None = None,
    overrides: Mapping[str, str] | None = None,
) -> str:
    """Publisher slug from its name, else the first block of its GUID."""
    name = title or artist
    if name:
        return generate_album_slug(name, overrides)
    if feed_guid:
        return feed_guid.split("-")[0]
    return "unknown"


def load_slug_overrides(path: Path | None) -> dict[str, str]:
    """
    Load the override table, merging a JSON file over the builtin defaults.

    A missing or malformed file leaves the defaults in place.
    """
    table = dict(SLUG_OVERRIDES_DEFAULTS)
    if path is None:
        return table

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        logger.warning("Could not read slug overrides file", extra={"path": str(path)})
        return table

    if not isinstance(raw, dict):
        logger.warning("Slug overrides file is not an object", extra={"path": str(path)})
        return table

    for key, value in raw.items():
        if isinstance(key, str) and isinstance(value, str):
            table[key.lower().strip()] = value
    return table
