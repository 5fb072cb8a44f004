"""
Service wiring.

Builds one set of catalog services per process from ``CatalogSettings``.
Each service gets its own cache and throttle instances.
"""

from dataclasses import dataclass
from typing import Protocol

from cadence_core.cache import TTLCache
from cadence_core.config import CatalogSettings
from cadence_core.feed_source import FeedSource
from cadence_core.slugs import load_slug_overrides
from cadence_core.throttle import RequestThrottle

from .album_resolver import AlbumResolver
from .albums_service import ActiveFeedRegistry, AlbumsAggregationService
from .catalog_builder import CatalogBuilder, RegistryMirror
from .classifier import FeedTypeClassifier
from .feed_store import FeedStore
from .publisher_directory import PublisherDirectoryService
from .publisher_discovery import PublisherDiscovery
from .snapshots import SnapshotStore


class DatabaseRegistry(ActiveFeedRegistry, RegistryMirror, Protocol):
    """Database registry: read by the ``database`` source, synced by builds."""


@dataclass
class CatalogServices:
    """All catalog services sharing one registry and one feed source."""

    store: FeedStore
    snapshots: SnapshotStore
    classifier: FeedTypeClassifier
    discovery: PublisherDiscovery
    albums: AlbumsAggregationService
    resolver: AlbumResolver
    publishers: PublisherDirectoryService
    builder: CatalogBuilder


def build_catalog_services(
    settings: CatalogSettings,
    source: FeedSource,
    database_registry: DatabaseRegistry | None = None,
) -> CatalogServices:
    """
    Wire the catalog services.

    Args:
        settings: Catalog settings.
        source: Feed fetch/parse collaborator.
        database_registry: Optional backend for the ``database`` albums source,
            mirrored from the JSON registry on every build.

    Returns:
        Wired services.
    """
    store = FeedStore(settings.registry_path)
    snapshots = SnapshotStore(
        static_path=settings.static_albums_path,
        static_cached_path=settings.static_cached_path,
        serverless=settings.serverless,
        site_url=settings.site_url,
        http_timeout=settings.snapshot_http_timeout_seconds,
        user_agent=settings.user_agent,
    )

    # Batch jobs space out every request; album parsing only delays slow hosts
    batch_throttle = RequestThrottle.from_settings(
        settings.classify_delay_seconds,
        settings.slow_hosts,
        settings.slow_host_delay_seconds,
    )
    parse_throttle = RequestThrottle.from_settings(
        0.0, settings.slow_hosts, settings.slow_host_delay_seconds
    )

    classifier = FeedTypeClassifier(store, source, batch_throttle)
    discovery = PublisherDiscovery(store, source, batch_throttle)
    albums = AlbumsAggregationService(
        store,
        source,
        snapshots,
        cache=TTLCache(settings.albums_cache_ttl_seconds),
        throttle=parse_throttle,
        parse_timeout=settings.effective_parse_timeout,
        database_registry=database_registry,
    )
    resolver = AlbumResolver(
        store,
        source,
        snapshots,
        cache=TTLCache(settings.album_cache_ttl_seconds),
        throttle=parse_throttle,
        parse_timeout=settings.effective_parse_timeout,
        slug_overrides=load_slug_overrides(settings.slug_overrides_path),
    )
    publishers = PublisherDirectoryService(store, albums, snapshots, source)
    builder = CatalogBuilder(
        store,
        classifier,
        discovery,
        albums,
        snapshots,
        serverless=settings.serverless,
        mirror=database_registry,
    )

    return CatalogServices(
        store=store,
        snapshots=snapshots,
        classifier=classifier,
        discovery=discovery,
        albums=albums,
        resolver=resolver,
        publishers=publishers,
        builder=builder,
    )
