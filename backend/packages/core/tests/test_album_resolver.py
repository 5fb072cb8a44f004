"""Tests for album identifier resolution."""

from unittest.mock import AsyncMock

import pytest

from conftest import FakeFeedSource, make_album, write_json

from cadence_core.schemas import (
    AlbumMatch,
    FeedPatch,
    FeedRecord,
    FeedType,
    NotFound,
    PublisherMatch,
)
from cadence_core.schemas.resolution import STATIC_FEED_URL
from cadence_core.services import AlbumResolver, FeedStore
from cadence_core.slugs import MatchRule

PUBLISHER_URL = "https://label.example/publisher.xml"
ALBUM_URL = "https://music.example/album.xml"
OTHER_URL = "https://music.example/other.xml"


class TestPrecedence:
    """Test the order in which strategies are tried."""

    @pytest.mark.asyncio
    async def test_publisher_wins_over_album_with_same_slug(
        self, album_resolver: AlbumResolver, feed_store: FeedStore, fake_source: FakeFeedSource
    ):
        await feed_store.add(FeedRecord(id="x", original_url=PUBLISHER_URL, type=FeedType.PUBLISHER))
        await feed_store.add(FeedRecord(original_url=ALBUM_URL))
        fake_source.albums[ALBUM_URL] = make_album("X")

        resolution = await album_resolver.resolve("x")

        assert isinstance(resolution, PublisherMatch)
        assert resolution.feed.id == "x"
        assert resolution.parse_as_album is False
        assert fake_source.album_calls() == []

    @pytest.mark.asyncio
    async def test_publisher_matched_by_title_slug(
        self, album_resolver: AlbumResolver, feed_store: FeedStore
    ):
        await feed_store.add(
            FeedRecord(original_url=PUBLISHER_URL, type=FeedType.PUBLISHER, title="The Label")
        )

        resolution = await album_resolver.resolve("The-Label")

        assert isinstance(resolution, PublisherMatch)
        assert resolution.redirect_slug == "the-label"

    @pytest.mark.asyncio
    async def test_direct_id_match_parses_only_that_feed(
        self, album_resolver: AlbumResolver, feed_store: FeedStore, fake_source: FakeFeedSource
    ):
        await feed_store.add(FeedRecord(original_url=OTHER_URL))
        await feed_store.add(FeedRecord(id="my-album", original_url=ALBUM_URL))
        fake_source.albums[ALBUM_URL] = make_album("Something Else")

        resolution = await album_resolver.resolve("my-album")

        assert isinstance(resolution, AlbumMatch)
        assert resolution.matched_by == "id"
        assert resolution.feed.feed_id == "my-album"
        assert resolution.album.feed_url == ALBUM_URL
        assert fake_source.album_calls() == [ALBUM_URL]

    @pytest.mark.asyncio
    async def test_failed_direct_id_falls_through_to_titles(
        self, album_resolver: AlbumResolver, feed_store: FeedStore, fake_source: FakeFeedSource
    ):
        await feed_store.add(FeedRecord(id="midnight-run", original_url=ALBUM_URL))
        await feed_store.add(FeedRecord(original_url=OTHER_URL))
        fake_source.albums[ALBUM_URL] = ValueError("HTTP 404")
        fake_source.albums[OTHER_URL] = make_album("Midnight Run")

        resolution = await album_resolver.resolve("midnight-run")

        assert isinstance(resolution, AlbumMatch)
        assert resolution.feed.feed_url == OTHER_URL
        assert resolution.matched_by == MatchRule.RICH_SLUG


class TestTitleMatching:
    """Test live title matching."""

    @pytest.mark.asyncio
    async def test_flexible_base_title_match(
        self, album_resolver: AlbumResolver, feed_store: FeedStore, fake_source: FakeFeedSource
    ):
        await feed_store.add(FeedRecord(original_url=ALBUM_URL))
        fake_source.albums[ALBUM_URL] = make_album("Midnight Run - Live Session")

        resolution = await album_resolver.resolve("midnight-run")

        assert isinstance(resolution, AlbumMatch)
        assert resolution.matched_by == MatchRule.BASE_TITLE
        assert resolution.album.title == "Midnight Run - Live Session"
        assert not resolution.from_snapshot

    @pytest.mark.asyncio
    async def test_first_matching_feed_wins(
        self, album_resolver: AlbumResolver, feed_store: FeedStore, fake_source: FakeFeedSource
    ):
        await feed_store.add(FeedRecord(original_url=ALBUM_URL))
        await feed_store.add(FeedRecord(original_url=OTHER_URL))
        fake_source.albums[ALBUM_URL] = make_album("Echoes")
        fake_source.albums[OTHER_URL] = make_album("Echoes")

        resolution = await album_resolver.resolve("echoes")

        assert resolution.feed.feed_url == ALBUM_URL
        assert fake_source.album_calls() == [ALBUM_URL]

    @pytest.mark.asyncio
    async def test_resolution_is_cached(
        self, album_resolver: AlbumResolver, feed_store: FeedStore, fake_source: FakeFeedSource
    ):
        await feed_store.add(FeedRecord(original_url=ALBUM_URL))
        fake_source.albums[ALBUM_URL] = make_album("Echoes")

        first = await album_resolver.resolve("echoes")
        second = await album_resolver.resolve("echoes")

        assert first == second
        assert fake_source.album_calls() == [ALBUM_URL]

    @pytest.mark.asyncio
    async def test_reclassified_publisher_bypasses_cached_album(
        self, album_resolver: AlbumResolver, feed_store: FeedStore, fake_source: FakeFeedSource
    ):
        """A feed reclassified as publisher stops resolving to its cached album."""
        await feed_store.add(FeedRecord(id="x", original_url=ALBUM_URL))
        fake_source.albums[ALBUM_URL] = make_album("Echoes")
        assert isinstance(await album_resolver.resolve("x"), AlbumMatch)

        await feed_store.update("x", FeedPatch(type=FeedType.PUBLISHER))
        resolution = await album_resolver.resolve("x")

        assert isinstance(resolution, PublisherMatch)
        assert resolution.feed.id == "x"


class TestSnapshotFallback:
    """Test matching against the static snapshot."""

    @pytest.mark.asyncio
    async def test_snapshot_match(self, album_resolver: AlbumResolver, static_path):
        write_json(
            static_path,
            {"albums": [{"title": "Old Favourite", "artist": "Someone", "coverArt": "c.jpg"}]},
        )

        resolution = await album_resolver.resolve("old-favourite")

        assert isinstance(resolution, AlbumMatch)
        assert resolution.from_snapshot
        assert resolution.feed.feed_id == "static-old-favourite"
        assert resolution.album.feed_url == STATIC_FEED_URL
        assert resolution.album.cover_art == "c.jpg"

    @pytest.mark.asyncio
    async def test_not_found(self, album_resolver: AlbumResolver):
        resolution = await album_resolver.resolve("nothing-here")

        assert isinstance(resolution, NotFound)
        assert resolution.identifier == "nothing-here"

    @pytest.mark.asyncio
    async def test_unexpected_failure_becomes_not_found(
        self, album_resolver: AlbumResolver, feed_store: FeedStore
    ):
        feed_store.get_active = AsyncMock(side_effect=RuntimeError("boom"))

        resolution = await album_resolver.resolve("anything")

        assert isinstance(resolution, NotFound)
        assert resolution.reason == "boom"
