"""
Feed registry schemas.

Records stored in the feed registry document and the request/response
models for registry operations.
"""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from cadence_core.slugs import derive_feed_id, title_from_url

from .base import CamelModel


def utc_now() -> datetime:
    return datetime.now(UTC)


class FeedType(str, Enum):
    """Feed type enumeration."""

    ALBUM = "album"
    PUBLISHER = "publisher"


class FeedPriority(str, Enum):
    """Load-ordering hint; no correctness impact."""

    CORE = "core"
    EXTENDED = "extended"
    LOW = "low"


class FeedStatus(str, Enum):
    """Feed status enumeration. Inactive feeds are hidden from every read."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class FeedSource(str, Enum):
    """How a feed entered the registry."""

    MANUAL = "manual"
    RECURSIVE = "recursive"


class FeedRecord(CamelModel):
    """
    One registered RSS feed.

    Attributes:
        id: Stable slug derived from the URL, or an external id such as a feedGuid.
        original_url: Canonical feed URL, unique within the registry.
        type: Album or publisher; album until classified.
        title: Human label, derived from the URL when unknown.
        priority: Load-ordering hint.
        status: Active or inactive.
        added_at: When the record was registered.
        last_updated: When the record last changed.
        source: Manual registration or recursive discovery.
        discovered_from: URL of the publisher feed that led to this record.
    """

    id: str = ""
    original_url: str = Field(min_length=1)
    type: FeedType = FeedType.ALBUM
    title: str = ""
    priority: FeedPriority = FeedPriority.CORE
    status: FeedStatus = FeedStatus.ACTIVE
    added_at: datetime = Field(default_factory=utc_now)
    last_updated: datetime = Field(default_factory=utc_now)
    source: FeedSource = FeedSource.MANUAL
    discovered_from: str | None = None

    @model_validator(mode="after")
    def _fill_derived_fields(self) -> "FeedRecord":
        if not self.id:
            self.id = derive_feed_id(self.original_url)
        if not self.title:
            self.title = title_from_url(self.original_url)
        return self

    @property
    def is_active(self) -> bool:
        return self.status == FeedStatus.ACTIVE

    @classmethod
    def from_url(cls, url: str) -> "FeedRecord":
        """Build a record with registry defaults for a bare URL."""
        return cls(original_url=url)


class FeedRegistry(CamelModel):
    """Canonical registry document: ``{feeds, lastUpdated, version}``."""

    feeds: list[FeedRecord] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=utc_now)
    version: int = 1

    def urls(self) -> set[str]:
        return {feed.original_url for feed in self.feeds}


class PublisherManifestItem(CamelModel):
    """One child feed reference (remote item) inside a publisher feed."""

    feed_url: str
    feed_guid: str | None = None
    title: str | None = None
    medium: str | None = None


class FeedPatch(CamelModel):
    """Partial update for a feed record. Unset fields are left untouched."""

    type: FeedType | None = None
    title: str | None = None
    priority: FeedPriority | None = None
    status: FeedStatus | None = None
    source: FeedSource | None = None
    discovered_from: str | None = None


class FeedCreateRequest(CamelModel):
    """Register feed request."""

    url: str = Field(min_length=1)
    type: FeedType = FeedType.ALBUM
    title: str | None = None
    priority: FeedPriority = FeedPriority.CORE


class FeedOperationResult(BaseModel):
    """Outcome of a registry mutation that is allowed to fail softly."""

    success: bool
    feed: FeedRecord | None = None
    error: str | None = None
    not_found: bool = False
