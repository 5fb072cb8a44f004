"""
Service layer.

Feed registry, classification, discovery, resolution and aggregation services.
"""

from .album_resolver import AlbumResolver
from .albums_service import ActiveFeedRegistry, AlbumsAggregationService, AlbumsQuery
from .catalog import CatalogServices, build_catalog_services
from .catalog_builder import BuildInProgressError, BuildReport, CatalogBuilder
from .classifier import FeedTypeClassifier, ReclassificationReport
from .feed_store import BatchAddResult, FeedStore
from .publisher_directory import PublisherDirectoryService
from .publisher_discovery import DiscoveryReport, PublisherDiscovery
from .snapshots import SnapshotRead, SnapshotStore

__all__ = [
    "FeedStore",
    "BatchAddResult",
    "FeedTypeClassifier",
    "ReclassificationReport",
    "PublisherDiscovery",
    "DiscoveryReport",
    "SnapshotStore",
    "SnapshotRead",
    "AlbumsAggregationService",
    "AlbumsQuery",
    "ActiveFeedRegistry",
    "AlbumResolver",
    "PublisherDirectoryService",
    "CatalogBuilder",
    "BuildReport",
    "BuildInProgressError",
    "CatalogServices",
    "build_catalog_services",
]
