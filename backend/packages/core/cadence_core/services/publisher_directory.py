"""
Publisher directory.

Groups aggregated albums into publishers (artists and labels) and merges
in the real publisher feeds from the registry.
"""

import re
from collections.abc import Iterable
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime

from cadence_core import get_logger
from cadence_core.feed_source import FeedSource
from cadence_core.schemas import (
    AlbumsDataSource,
    FeedRecord,
    FeedType,
    LatestAlbum,
    ParsedAlbum,
    Publisher,
    PublisherDetail,
    PublisherManifestItem,
)
from cadence_core.slugs import generate_slug

from .albums_service import AlbumsAggregationService, AlbumsQuery
from .feed_store import FeedStore
from .snapshots import SnapshotStore

logger = get_logger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_LEADING_THE = re.compile(r"^the\s+")
# Containment only counts as a match when the names are this close in length
_CONTAINS_MAX_LENGTH_GAP = 5


def _release_timestamp(album: ParsedAlbum) -> float:
    value = album.release_date
    if not value:
        return 0.0
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        try:
            parsed = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            return 0.0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.timestamp()


def latest_album(albums: list[ParsedAlbum]) -> LatestAlbum | None:
    """Newest album by release date; undated albums sort last."""
    if not albums:
        return None
    newest = max(albums, key=_release_timestamp)
    return LatestAlbum(
        title=newest.title, cover_art=newest.cover_art, release_date=newest.release_date or ""
    )


def names_match(left: str, right: str) -> bool:
    """
    Loose publisher name comparison.

    Matches on equal names, equal slugs, one name containing the other
    when their lengths are close, or equality after dropping a leading
    "the ".
    """
    a = left.lower().strip()
    b = right.lower().strip()
    if a == b or generate_slug(left) == generate_slug(right):
        return True
    if (a in b or b in a) and abs(len(a) - len(b)) < _CONTAINS_MAX_LENGTH_GAP:
        return True
    return _LEADING_THE.sub("", a) == _LEADING_THE.sub("", b)


def _linked_albums(
    albums: Iterable[ParsedAlbum], feed_url: str, child_urls: set[str] | None = None
) -> list[ParsedAlbum]:
    linked = []
    for album in albums:
        publisher_url = album.publisher.feed_url if album.publisher else None
        if feed_url in (publisher_url, album.publisher_url):
            linked.append(album)
        elif child_urls and album.feed_url in child_urls:
            linked.append(album)
    return linked


class PublisherDirectoryService:
    """Lists and looks up publishers."""

    def __init__(
        self,
        store: FeedStore,
        albums_service: AlbumsAggregationService,
        snapshots: SnapshotStore,
        source: FeedSource,
    ):
        self.store = store
        self.albums_service = albums_service
        self.snapshots = snapshots
        self.source = source

    @staticmethod
    def group_albums(albums: list[ParsedAlbum]) -> dict[str, Publisher]:
        """
        Group albums by publisher GUID, or by artist name when an album has none.

        Returns:
            Publishers keyed by GUID or lower-cased artist name, in first-seen order.
        """
        groups: dict[str, Publisher] = {}
        for album in albums:
            artist = (album.artist or "").strip()
            if not artist:
                logger.warning("Skipping album without artist", extra={"title": album.title})
                continue

            if album.publisher and album.publisher.feed_guid:
                key = album.publisher.feed_guid
                guid = album.publisher.feed_guid
                feed_url = album.publisher.feed_url or ""
                medium = album.publisher.medium or "music"
            else:
                key = artist.lower()
                guid = f"artist-{_NON_ALNUM.sub('-', key)}"
                feed_url = ""
                medium = "music"

            publisher = groups.get(key)
            if publisher is None:
                publisher = Publisher(
                    name=album.artist,
                    feed_guid=guid,
                    feed_url=feed_url,
                    medium=medium,
                    first_album_cover=album.cover_art or "",
                )
                groups[key] = publisher
            publisher.albums.append(album)
            publisher.album_count += 1
        return groups

    @staticmethod
    def _merge_feed(
        groups: dict[str, Publisher], feed: FeedRecord, albums: list[ParsedAlbum]
    ) -> None:
        name = feed.title
        own_albums = _linked_albums(albums, feed.original_url)

        match_key = next(
            (key for key, publisher in groups.items() if names_match(publisher.name, name)),
            None,
        )
        if match_key is not None:
            matched = groups.pop(match_key)
            seen_ids = {album.feed_id for album in matched.albums}
            combined = matched.albums + [
                album for album in own_albums if album.feed_id and album.feed_id not in seen_ids
            ]
            first_cover = matched.first_album_cover or (combined[0].cover_art if combined else None)
            logger.info(
                "Merged artist group into publisher feed",
                extra={"publisher": name, "group": matched.name},
            )
        else:
            combined = own_albums
            first_cover = combined[0].cover_art if combined else None

        groups[feed.id] = Publisher(
            name=name,
            feed_guid=feed.id,
            feed_url=feed.original_url,
            medium="publisher",
            albums=combined,
            album_count=len(combined),
            first_album_cover=first_cover,
        )

    async def list_publishers(self) -> list[Publisher]:
        """
        List every publisher, most albums first.

        Returns:
            Publishers with their albums and latest release.
        """
        result = await self.albums_service.fetch_albums(
            AlbumsQuery(source=AlbumsDataSource.AUTO, include_errors=False)
        )
        groups = self.group_albums(result.albums)

        publisher_feeds = await self.store.get_by_type(FeedType.PUBLISHER)
        for feed in publisher_feeds:
            self._merge_feed(groups, feed, result.albums)

        publishers = [
            publisher.model_copy(update={"latest_album": latest_album(publisher.albums)})
            for publisher in groups.values()
        ]
        publishers.sort(key=lambda publisher: publisher.album_count, reverse=True)
        logger.info(
            "Listed publishers",
            extra={"publishers": len(publishers), "publisher_feeds": len(publisher_feeds)},
        )
        return publishers

    async def _publisher_items(self, feed: FeedRecord) -> list[PublisherManifestItem]:
        try:
            return await self.source.parse_publisher_feed(feed.original_url)
        except Exception as e:
            logger.warning(
                "Could not read publisher feed items",
                extra={"feed_id": feed.id, "error": str(e)},
            )
            return []

    async def get_publisher(self, name: str) -> PublisherDetail | None:
        """
        Look up one publisher by name, id or slug.

        Registry publisher feeds are checked first, then artists in the
        static snapshot.

        Args:
            name: Publisher name or slug, already percent-decoded.

        Returns:
            Publisher detail, or None if nothing matched.
        """
        name_slug = generate_slug(name)
        wanted = name.lower()

        for feed in await self.store.get_by_type(FeedType.PUBLISHER):
            if (
                generate_slug(feed.id) == name_slug
                or generate_slug(feed.title) == name_slug
                or feed.id.lower() == wanted
                or feed.title.lower() == wanted
            ):
                items = await self._publisher_items(feed)
                result = await self.albums_service.fetch_albums(
                    AlbumsQuery(source=AlbumsDataSource.AUTO, include_errors=False)
                )
                albums = _linked_albums(
                    result.albums, feed.original_url, {item.feed_url for item in items}
                )
                logger.info("Found publisher feed", extra={"feed_id": feed.id})
                return PublisherDetail(
                    publisher=Publisher(
                        name=feed.title,
                        feed_guid=feed.id,
                        feed_url=feed.original_url,
                        medium="publisher",
                        albums=albums,
                        album_count=len(albums),
                        first_album_cover=albums[0].cover_art if albums else None,
                        latest_album=latest_album(albums),
                    ),
                    publisher_items=items,
                    source="feed-manager",
                )

        snapshot = await self.snapshots.read_static()
        albums = [
            album
            for album in snapshot.albums
            if album.artist
            and (generate_slug(album.artist) == name_slug or album.artist.lower() == wanted)
        ]
        if not albums:
            logger.info("Publisher not found", extra={"publisher": name})
            return None

        first = albums[0]
        return PublisherDetail(
            publisher=Publisher(
                name=first.artist,
                feed_guid=(first.publisher.feed_guid if first.publisher else None) or "no-guid",
                feed_url=(first.publisher.feed_url if first.publisher else None) or "",
                medium=(first.publisher.medium if first.publisher else None) or "music",
                albums=albums,
                album_count=len(albums),
                first_album_cover=first.cover_art,
                latest_album=latest_album(albums),
            ),
            source="static-albums",
        )
