"""
Album resolution outcomes.

``AlbumResolver.resolve`` returns exactly one of these.
"""

from typing import Literal

from pydantic import BaseModel

from cadence_core.slugs import MatchRule

from .album import ParsedAlbum
from .feed import FeedRecord

STATIC_FEED_URL = "static-data"


class FeedReference(BaseModel):
    """Feed an album was resolved from: a registry record or a snapshot stand-in."""

    feed_id: str
    feed_url: str
    title: str | None = None

    @classmethod
    def from_record(cls, record: FeedRecord) -> "FeedReference":
        return cls(feed_id=record.id, feed_url=record.original_url, title=record.title)

    @classmethod
    def static(cls, identifier: str) -> "FeedReference":
        return cls(feed_id=f"static-{identifier}", feed_url=STATIC_FEED_URL)


class AlbumMatch(BaseModel):
    """Identifier resolved to one album."""

    kind: Literal["album"] = "album"
    feed: FeedReference
    album: ParsedAlbum
    matched_by: Literal["id"] | MatchRule
    from_snapshot: bool = False


class PublisherMatch(BaseModel):
    """
    Identifier names a publisher feed.

    Publisher feeds are manifests, never albums; callers must redirect to
    ``redirect_slug`` instead of parsing.
    """

    kind: Literal["publisher"] = "publisher"
    feed: FeedRecord
    redirect_slug: str
    parse_as_album: Literal[False] = False


class NotFound(BaseModel):
    """No strategy matched the identifier."""

    kind: Literal["not_found"] = "not_found"
    identifier: str
    reason: str | None = None


Resolution = AlbumMatch | PublisherMatch | NotFound
