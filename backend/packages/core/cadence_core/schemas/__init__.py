"""
Pydantic schemas for the feed registry, albums and API responses.
"""

from .album import (
    AlbumsDataSource,
    AlbumsResult,
    FeedError,
    FeedErrorKind,
    LatestAlbum,
    ParsedAlbum,
    Publisher,
    PublisherDetail,
    PublisherInfo,
    StaticSnapshot,
    Track,
)
from .base import CamelModel
from .feed import (
    FeedCreateRequest,
    FeedOperationResult,
    FeedPatch,
    FeedPriority,
    FeedRecord,
    FeedRegistry,
    FeedSource,
    FeedStatus,
    FeedType,
    PublisherManifestItem,
)
from .resolution import (
    AlbumMatch,
    FeedReference,
    NotFound,
    PublisherMatch,
    Resolution,
)

__all__ = [
    "CamelModel",
    # Registry
    "FeedRecord",
    "FeedRegistry",
    "FeedType",
    "FeedPriority",
    "FeedStatus",
    "FeedSource",
    "FeedPatch",
    "FeedCreateRequest",
    "FeedOperationResult",
    "PublisherManifestItem",
    # Albums
    "Track",
    "PublisherInfo",
    "ParsedAlbum",
    "FeedError",
    "FeedErrorKind",
    "AlbumsDataSource",
    "AlbumsResult",
    "StaticSnapshot",
    "LatestAlbum",
    "Publisher",
    "PublisherDetail",
    # Resolution
    "AlbumMatch",
    "PublisherMatch",
    "NotFound",
    "FeedReference",
    "Resolution",
]
