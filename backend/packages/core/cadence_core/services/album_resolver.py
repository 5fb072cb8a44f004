"""
Album resolution.

Maps the identifier in an album URL back to exactly one album or
publisher. Strategies run in a fixed order and stop at the first hit:

1. publisher feed id or title slug (never parsed as an album)
2. album feed id
3. live parse of every album feed, matched on its title
4. static snapshot, matched on the stored title
"""

import asyncio
from collections.abc import Mapping
from datetime import UTC, datetime

from cadence_core import get_logger
from cadence_core.cache import TTLCache
from cadence_core.feed_source import FeedSource
from cadence_core.schemas import (
    AlbumMatch,
    FeedRecord,
    FeedReference,
    FeedType,
    NotFound,
    ParsedAlbum,
    PublisherMatch,
    Resolution,
)
from cadence_core.slugs import generate_slug, match_title
from cadence_core.throttle import RequestThrottle

from .albums_service import enrich_album
from .feed_store import FeedStore
from .snapshots import SnapshotStore

logger = get_logger(__name__)


class AlbumResolver:
    """Resolves user-facing identifiers to albums or publishers."""

    def __init__(
        self,
        store: FeedStore,
        source: FeedSource,
        snapshots: SnapshotStore,
        cache: TTLCache[str, AlbumMatch],
        throttle: RequestThrottle,
        parse_timeout: float = 30.0,
        slug_overrides: Mapping[str, str] | None = None,
    ):
        """
        Initialize album resolver.

        Args:
            store: Feed registry.
            source: Feed fetch/parse collaborator.
            snapshots: Static snapshot files, searched last.
            cache: Per-identifier cache of resolved albums.
            throttle: Pre-request delay for slow hosts.
            parse_timeout: Per-feed parse timeout in seconds.
            slug_overrides: Curated title to slug table.
        """
        self.store = store
        self.source = source
        self.snapshots = snapshots
        self.cache = cache
        self.throttle = throttle
        self.parse_timeout = parse_timeout
        self.slug_overrides = slug_overrides

    async def resolve(self, identifier: str) -> Resolution:
        """
        Resolve an identifier.

        Args:
            identifier: URL path segment, already percent-decoded.

        Returns:
            ``AlbumMatch``, ``PublisherMatch`` or ``NotFound``. Unexpected
            failures are reported as ``NotFound`` with a reason.
        """
        try:
            resolution = await self._resolve(identifier)
        except Exception as e:
            logger.exception("Album resolution failed", extra={"identifier": identifier})
            return NotFound(identifier=identifier, reason=str(e))

        cacheable = isinstance(resolution, AlbumMatch) and not resolution.from_snapshot
        if cacheable and self.cache.get(identifier) is not resolution:
            self.cache.set(identifier, resolution)
        return resolution

    async def _resolve(self, identifier: str) -> Resolution:
        wanted = identifier.lower()
        feeds = await self.store.get_active()

        publisher = self._match_publisher(feeds, wanted)
        if publisher is not None:
            logger.info(
                "Identifier matches a publisher feed",
                extra={"identifier": identifier, "feed_id": publisher.id},
            )
            return PublisherMatch(
                feed=publisher, redirect_slug=generate_slug(publisher.title) or publisher.id
            )

        cached = self.cache.get(identifier)
        if cached is not None:
            logger.info("Serving cached album", extra={"identifier": identifier})
            return cached

        album_feeds = [feed for feed in feeds if feed.type == FeedType.ALBUM]

        direct = next((feed for feed in album_feeds if feed.id == identifier), None)
        if direct is not None:
            album = await self._parse(direct)
            if album is not None:
                logger.info("Found direct feed id match", extra={"feed_id": direct.id})
                return AlbumMatch(
                    feed=FeedReference.from_record(direct),
                    album=enrich_album(album, direct),
                    matched_by="id",
                )
            album_feeds = [feed for feed in album_feeds if feed is not direct]

        for feed in album_feeds:
            album = await self._parse(feed)
            if album is None:
                continue
            rule = match_title(album.title, identifier, self.slug_overrides)
            if rule is not None:
                logger.info(
                    "Found title match",
                    extra={"identifier": identifier, "feed_id": feed.id, "rule": rule.value},
                )
                return AlbumMatch(
                    feed=FeedReference.from_record(feed),
                    album=enrich_album(album, feed),
                    matched_by=rule,
                )

        return await self._match_snapshot(identifier)

    @staticmethod
    def _match_publisher(feeds: list[FeedRecord], wanted: str) -> FeedRecord | None:
        for feed in feeds:
            if feed.type != FeedType.PUBLISHER:
                continue
            if feed.id.lower() == wanted or generate_slug(feed.title) == wanted:
                return feed
        return None

    async def _parse(self, feed: FeedRecord) -> ParsedAlbum | None:
        await self.throttle.wait(feed.original_url)
        try:
            return await asyncio.wait_for(
                self.source.parse_album_feed(feed.original_url), timeout=self.parse_timeout
            )
        except TimeoutError:
            logger.warning("Feed parse timed out during resolution", extra={"feed_id": feed.id})
        except Exception as e:
            logger.warning(
                "Failed to parse feed during resolution",
                extra={"feed_id": feed.id, "error": str(e)},
            )
        return None

    async def _match_snapshot(self, identifier: str) -> Resolution:
        snapshot = await self.snapshots.read_static()
        for album in snapshot.albums:
            rule = match_title(album.title, identifier, self.slug_overrides)
            if rule is None:
                continue
            reference = FeedReference.static(identifier)
            logger.info(
                "Found static album match",
                extra={"identifier": identifier, "title": album.title, "rule": rule.value},
            )
            return AlbumMatch(
                feed=reference,
                album=album.model_copy(
                    update={
                        "feed_id": reference.feed_id,
                        "feed_url": reference.feed_url,
                        "last_updated": datetime.now(UTC),
                    }
                ),
                matched_by=rule,
                from_snapshot=True,
            )

        logger.info("No matching album found", extra={"identifier": identifier})
        return NotFound(identifier=identifier)
