"""
Album schemas.

Normalized album data produced by the feed parser and served by the
aggregation, resolution and publisher directory services.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import ConfigDict, Field

from .base import CamelModel
from .feed import PublisherManifestItem, utc_now


class Track(CamelModel):
    """One audio item of an album feed."""

    model_config = ConfigDict(extra="allow")

    title: str = ""
    duration: str | None = None
    url: str | None = None
    track_number: int | None = None
    image: str | None = None
    guid: str | None = None
    podcast_guid: str | None = None
    feed_guid: str | None = None
    feed_url: str | None = None


class PublisherInfo(CamelModel):
    """``podcast:remoteItem`` reference from an album to its publisher feed."""

    model_config = ConfigDict(extra="allow")

    feed_guid: str | None = None
    feed_url: str | None = None
    medium: str | None = None


class ParsedAlbum(CamelModel):
    """
    Normalized output of parsing one album feed.

    Keys that are not modeled here are kept, so snapshot files survive a
    read/write cycle unchanged.
    """

    model_config = ConfigDict(extra="allow")

    title: str = ""
    artist: str = ""
    description: str | None = None
    cover_art: str | None = None
    release_date: str | None = None
    tracks: list[Track] = Field(default_factory=list)
    feed_guid: str | None = None
    publisher: PublisherInfo | None = None
    funding: list[dict[str, Any]] | None = None
    value: dict[str, Any] | None = None
    image_url: str | None = None
    publisher_guid: str | None = None
    publisher_url: str | None = None

    # Set by the core once the album is tied to a registry feed
    feed_id: str | None = None
    feed_url: str | None = None
    last_updated: datetime | None = None


class FeedErrorKind(str, Enum):
    """Why one feed contributed no album."""

    PARSE = "parse"
    TIMEOUT = "timeout"
    NO_DATA = "no-data"
    SYSTEM = "system"


class FeedError(CamelModel):
    """Per-feed failure recorded during a batch."""

    feed_id: str
    error: str
    kind: FeedErrorKind = FeedErrorKind.PARSE


class AlbumsDataSource(str, Enum):
    """Where an aggregation pass reads its albums from."""

    STATIC = "static"
    STATIC_CACHED = "static-cached"
    DYNAMIC = "dynamic"
    DATABASE = "database"
    AUTO = "auto"


class AlbumsResult(CamelModel):
    """Result of an aggregation pass. Always well-formed, even on failure."""

    albums: list[ParsedAlbum] = Field(default_factory=list)
    count: int = 0
    errors: list[FeedError] | None = None
    timestamp: datetime = Field(default_factory=utc_now)
    source: str = AlbumsDataSource.AUTO.value
    cached: bool = False
    static: bool = False
    fallback: bool = False
    cache_age: int | None = None


class StaticSnapshot(CamelModel):
    """Pre-generated album snapshot document."""

    model_config = ConfigDict(extra="allow")

    albums: list[ParsedAlbum] = Field(default_factory=list)
    count: int = 0
    timestamp: datetime = Field(default_factory=utc_now)
    source: str = "build-time-rss-parse"
    generated: bool = True
    generated_at: datetime = Field(default_factory=utc_now)
    errors: list[FeedError] | None = None
    error: str | None = None


class LatestAlbum(CamelModel):
    """Newest release of a publisher, by release date."""

    title: str
    cover_art: str | None = None
    release_date: str | None = None


class Publisher(CamelModel):
    """An artist or label grouping of albums."""

    name: str
    feed_guid: str
    feed_url: str = ""
    medium: str = "music"
    albums: list[ParsedAlbum] = Field(default_factory=list)
    album_count: int = 0
    first_album_cover: str | None = None
    latest_album: LatestAlbum | None = None


class PublisherDetail(CamelModel):
    """Single publisher lookup response."""

    publisher: Publisher
    publisher_items: list[PublisherManifestItem] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=utc_now)
    source: str
