"""
Albums aggregation service.

Serves "all albums" from whichever source is available: a pre-generated
snapshot, a live parse of the registry feeds, or a secondary registry
backend. Every entry point returns a well-formed ``AlbumsResult``; failures
are reported in its ``errors`` list.
"""

import asyncio
import math
from dataclasses import dataclass
from typing import Protocol

from cadence_core import get_logger
from cadence_core.cache import TTLCache
from cadence_core.exceptions import FeedTimeoutError
from cadence_core.feed_source import FeedSource
from cadence_core.images import clean_album_images
from cadence_core.schemas import (
    AlbumsDataSource,
    AlbumsResult,
    FeedError,
    FeedErrorKind,
    FeedPriority,
    FeedRecord,
    FeedType,
    ParsedAlbum,
)
from cadence_core.throttle import RequestThrottle

from .feed_store import FeedStore
from .snapshots import SnapshotStore

logger = get_logger(__name__)

NO_DATA_MESSAGE = "No album data returned"


class ActiveFeedRegistry(Protocol):
    """Secondary registry backend read by the ``database`` source."""

    async def get_active(self) -> list[FeedRecord]: ...


@dataclass(frozen=True)
class AlbumsQuery:
    """Options for one aggregation request."""

    source: AlbumsDataSource = AlbumsDataSource.AUTO
    force_regenerate: bool = False
    clear_cache: bool = False
    priority: FeedPriority | None = None
    include_errors: bool = True

    @property
    def cache_key(self) -> tuple[str, str | None, bool]:
        return (
            self.source.value,
            self.priority.value if self.priority else None,
            self.include_errors,
        )


@dataclass
class ParseOutcome:
    albums: list[ParsedAlbum]
    errors: list[FeedError]


def enrich_album(album: ParsedAlbum, feed: FeedRecord) -> ParsedAlbum:
    """Clean image URLs and tie a parsed album to its registry feed."""
    cleaned = clean_album_images(album)
    return cleaned.model_copy(
        update={
            "feed_id": feed.id,
            "feed_url": feed.original_url,
            "last_updated": feed.last_updated,
        }
    )


class AlbumsAggregationService:
    """Albums aggregation with an in-memory TTL cache and source fallbacks."""

    def __init__(
        self,
        store: FeedStore,
        source: FeedSource,
        snapshots: SnapshotStore,
        cache: TTLCache[tuple[str, str | None, bool], AlbumsResult],
        throttle: RequestThrottle,
        parse_timeout: float = 30.0,
        database_registry: ActiveFeedRegistry | None = None,
    ):
        """
        Initialize albums service.

        Args:
            store: Feed registry read by the ``dynamic`` source.
            source: Feed fetch/parse collaborator.
            snapshots: Static snapshot files.
            cache: Result cache owned by this service.
            throttle: Pre-request delay for slow hosts.
            parse_timeout: Per-feed parse timeout in seconds.
            database_registry: Registry backend read by the ``database`` source.
        """
        self.store = store
        self.source = source
        self.snapshots = snapshots
        self.cache = cache
        self.throttle = throttle
        self.parse_timeout = parse_timeout
        self.database_registry = database_registry

    def clear_cache(self) -> None:
        """Drop every cached aggregation result."""
        self.cache.clear()
        logger.info("Cleared albums cache")

    async def fetch_albums(self, query: AlbumsQuery | None = None) -> AlbumsResult:
        """
        Fetch albums from the requested source.

        Args:
            query: Source selection and cache options.

        Returns:
            Albums result. Never raises.
        """
        query = query or AlbumsQuery()
        try:
            if query.clear_cache:
                self.clear_cache()

            if not query.force_regenerate:
                hit = self.cache.get_with_age(query.cache_key)
                if hit is not None:
                    cached, age = hit
                    logger.info("Serving cached albums", extra={"age": age})
                    return cached.model_copy(
                        update={"cached": True, "cache_age": max(1, math.ceil(age))}
                    )

            result = await self._fetch_from_source(query)
            if result.albums:
                self.cache.set(query.cache_key, result)
            return result
        except Exception as e:
            logger.exception("Albums aggregation failed")
            return AlbumsResult(
                source="error-fallback",
                errors=[FeedError(feed_id="system", error=str(e), kind=FeedErrorKind.SYSTEM)],
            )

    async def _fetch_from_source(self, query: AlbumsQuery) -> AlbumsResult:
        if query.source == AlbumsDataSource.STATIC:
            return await self._from_static()
        if query.source == AlbumsDataSource.STATIC_CACHED:
            return await self._from_static_cached()
        if query.source == AlbumsDataSource.DYNAMIC:
            return await self._from_registry(query.priority, query.include_errors)
        if query.source == AlbumsDataSource.DATABASE:
            return await self._from_database(query.include_errors)
        return await self._auto(query)

    async def _from_static(self) -> AlbumsResult:
        snapshot = await self.snapshots.read_static()
        if not snapshot.found:
            logger.info("Static snapshot not available")
            return AlbumsResult(source=AlbumsDataSource.STATIC.value, fallback=True)
        return AlbumsResult(
            albums=snapshot.albums,
            count=len(snapshot.albums),
            source=snapshot.origin or AlbumsDataSource.STATIC.value,
            static=True,
        )

    async def _from_static_cached(self) -> AlbumsResult:
        snapshot = await self.snapshots.read_static_cached()
        if not snapshot.found:
            return AlbumsResult(source="static-cached-file", fallback=True)
        return AlbumsResult(
            albums=snapshot.albums,
            count=len(snapshot.albums),
            source=snapshot.origin or "static-cached-file",
            static=True,
        )

    async def _static_fallback(self, reason: str, include_errors: bool) -> AlbumsResult:
        errors = [FeedError(feed_id="none", error=reason, kind=FeedErrorKind.NO_DATA)]
        static = await self._from_static()
        if static.albums:
            logger.info("Using static snapshot as fallback", extra={"reason": reason})
            return static.model_copy(
                update={
                    "fallback": True,
                    "errors": errors if include_errors else None,
                }
            )
        return AlbumsResult(
            source=AlbumsDataSource.DYNAMIC.value,
            errors=errors if include_errors else None,
        )

    async def _parse_one(self, feed: FeedRecord) -> ParsedAlbum | None:
        try:
            return await asyncio.wait_for(
                self.source.parse_album_feed(feed.original_url), timeout=self.parse_timeout
            )
        except TimeoutError as e:
            raise FeedTimeoutError(feed.id, self.parse_timeout) from e

    async def parse_feeds(self, feeds: list[FeedRecord]) -> ParseOutcome:
        """
        Parse album feeds one after another.

        Each feed gets its own timeout. Failures and empty feeds are
        recorded per feed id and never stop the loop.
        """
        albums: list[ParsedAlbum] = []
        errors: list[FeedError] = []

        for feed in feeds:
            await self.throttle.wait(feed.original_url)
            try:
                album = await self._parse_one(feed)
            except FeedTimeoutError as e:
                logger.warning("Feed parse timed out", extra={"feed_id": feed.id, "url": feed.original_url})
                errors.append(FeedError(feed_id=feed.id, error=e.message, kind=FeedErrorKind.TIMEOUT))
                continue
            except Exception as e:
                logger.warning(
                    "Failed to parse feed",
                    extra={"feed_id": feed.id, "url": feed.original_url, "error": str(e)},
                )
                errors.append(FeedError(feed_id=feed.id, error=str(e), kind=FeedErrorKind.PARSE))
                continue

            if album is None:
                logger.warning("No data returned for feed", extra={"feed_id": feed.id})
                errors.append(
                    FeedError(feed_id=feed.id, error=NO_DATA_MESSAGE, kind=FeedErrorKind.NO_DATA)
                )
                continue

            albums.append(enrich_album(album, feed))

        logger.info("Parsed album feeds", extra={"albums": len(albums), "errors": len(errors)})
        return ParseOutcome(albums=albums, errors=errors)

    async def _from_registry(
        self, priority: FeedPriority | None, include_errors: bool
    ) -> AlbumsResult:
        feeds = await self.store.get_active()
        if not feeds:
            logger.warning("No active feeds found")
            return await self._static_fallback("No active feeds found", include_errors)

        album_feeds = [feed for feed in feeds if feed.type == FeedType.ALBUM]
        if priority is not None:
            album_feeds = [feed for feed in album_feeds if feed.priority == priority]
        if not album_feeds:
            logger.warning("No album feeds found")
            return await self._static_fallback("No album feeds found", include_errors)

        outcome = await self.parse_feeds(album_feeds)
        return AlbumsResult(
            albums=outcome.albums,
            count=len(outcome.albums),
            source="direct-rss-parsing",
            errors=outcome.errors if include_errors and outcome.errors else None,
        )

    async def _from_database(self, include_errors: bool) -> AlbumsResult:
        if self.database_registry is None:
            logger.warning("No database registry configured, using static snapshot")
            return await self._from_static()
        try:
            feeds = await self.database_registry.get_active()
        except Exception:
            logger.exception("Failed to read database registry, using static snapshot")
            return await self._from_static()

        album_feeds = [feed for feed in feeds if feed.type == FeedType.ALBUM]
        outcome = await self.parse_feeds(album_feeds)
        return AlbumsResult(
            albums=outcome.albums,
            count=len(outcome.albums),
            source="database-feeds",
            errors=outcome.errors if include_errors and outcome.errors else None,
        )

    async def _auto(self, query: AlbumsQuery) -> AlbumsResult:
        if not query.force_regenerate:
            static = await self._from_static()
            if static.albums:
                logger.info("Using pre-generated static album data")
                return static

        try:
            dynamic = await self._from_registry(query.priority, query.include_errors)
        except Exception as e:
            logger.exception("Dynamic parsing failed")
            errors = [
                FeedError(
                    feed_id="system",
                    error=f"Dynamic parsing failed: {e}",
                    kind=FeedErrorKind.SYSTEM,
                )
            ]
            static = await self._from_static()
            if static.albums:
                return static.model_copy(
                    update={"fallback": True, "errors": errors if query.include_errors else None}
                )
            return AlbumsResult(
                source=AlbumsDataSource.AUTO.value,
                errors=errors if query.include_errors else None,
            )

        if dynamic.albums:
            return dynamic

        static = await self._from_static()
        if static.albums:
            logger.info("Falling back to static snapshot, dynamic parsing returned no albums")
            return static.model_copy(update={"fallback": True, "errors": dynamic.errors})
        return dynamic
