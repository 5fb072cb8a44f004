"""Tests for publisher grouping and lookup."""

import pytest

from conftest import FakeFeedSource, make_album, write_json

from cadence_core.schemas import FeedRecord, FeedType, PublisherInfo, PublisherManifestItem
from cadence_core.services import PublisherDirectoryService
from cadence_core.services.publisher_directory import latest_album, names_match

LABEL_URL = "https://label.example/publisher.xml"


@pytest.fixture
def directory(feed_store, albums_service, snapshot_store, fake_source) -> PublisherDirectoryService:
    return PublisherDirectoryService(feed_store, albums_service, snapshot_store, fake_source)


def _snapshot_album(title: str, artist: str, **fields) -> dict:
    return {"title": title, "artist": artist, **fields}


class TestHelpers:
    """Test name matching and latest album selection."""

    @pytest.mark.parametrize(
        "left,right",
        [
            ("Artist B", "artist b"),
            ("Salt & Pepper", "salt pepper"),
            ("The Beatles", "Beatles"),
            ("Nate", "Nate J"),
        ],
    )
    def test_names_match(self, left, right):
        assert names_match(left, right)

    def test_names_do_not_match(self):
        assert not names_match("Nate", "Nathaniel Johnivan")
        assert not names_match("Alpha", "Omega")

    def test_latest_album_by_release_date(self):
        albums = [
            make_album("Old", release_date="Mon, 01 Jan 2018 00:00:00 GMT"),
            make_album("New", release_date="2023-05-01T00:00:00Z"),
            make_album("Undated"),
        ]

        latest = latest_album(albums)

        assert latest.title == "New"

    def test_latest_album_empty(self):
        assert latest_album([]) is None


class TestGroupAlbums:
    """Test grouping albums into publishers."""

    def test_groups_by_publisher_guid_then_artist(self):
        publisher = PublisherInfo(feed_guid="guid-1", feed_url=LABEL_URL, medium="publisher")
        albums = [
            make_album("One", artist="Label Artist", publisher=publisher, cover_art="one.jpg"),
            make_album("Two", artist="Other Name", publisher=publisher),
            make_album("Three", artist="The Band"),
            make_album("Four", artist="the band"),
            make_album("Nameless", artist=""),
        ]

        groups = PublisherDirectoryService.group_albums(albums)

        assert list(groups) == ["guid-1", "the band"]
        assert groups["guid-1"].album_count == 2
        assert groups["guid-1"].feed_url == LABEL_URL
        assert groups["guid-1"].first_album_cover == "one.jpg"
        assert groups["the band"].feed_guid == "artist-the-band"
        assert groups["the band"].album_count == 2


class TestListPublishers:
    """Test the publisher listing."""

    @pytest.mark.asyncio
    async def test_merges_registry_feeds_and_sorts(
        self, directory: PublisherDirectoryService, feed_store, static_path
    ):
        write_json(
            static_path,
            {
                "albums": [
                    _snapshot_album("A1", "Artist A", releaseDate="2020-01-01T00:00:00Z"),
                    _snapshot_album("A2", "Artist A", releaseDate="2022-01-01T00:00:00Z"),
                    _snapshot_album("A3", "Artist A"),
                    _snapshot_album("B1", "Artist B"),
                ]
            },
        )
        await feed_store.add(
            FeedRecord(original_url=LABEL_URL, type=FeedType.PUBLISHER, title="Artist B")
        )

        publishers = await directory.list_publishers()

        assert [publisher.name for publisher in publishers] == ["Artist A", "Artist B"]
        assert publishers[0].album_count == 3
        assert publishers[0].latest_album.title == "A2"
        assert publishers[1].medium == "publisher"
        assert publishers[1].feed_url == LABEL_URL
        assert publishers[1].album_count == 1

    @pytest.mark.asyncio
    async def test_registry_feed_without_albums_is_listed(
        self, directory: PublisherDirectoryService, feed_store
    ):
        await feed_store.add(
            FeedRecord(original_url=LABEL_URL, type=FeedType.PUBLISHER, title="Quiet Label")
        )

        publishers = await directory.list_publishers()

        assert [publisher.name for publisher in publishers] == ["Quiet Label"]
        assert publishers[0].album_count == 0
        assert publishers[0].latest_album is None


class TestGetPublisher:
    """Test single publisher lookup."""

    @pytest.mark.asyncio
    async def test_registry_publisher(
        self,
        directory: PublisherDirectoryService,
        feed_store,
        fake_source: FakeFeedSource,
        static_path,
    ):
        write_json(
            static_path,
            {
                "albums": [
                    _snapshot_album(
                        "Linked", "Someone", publisher={"feedGuid": "g", "feedUrl": LABEL_URL}
                    ),
                    _snapshot_album("Unrelated", "Someone Else"),
                ]
            },
        )
        await feed_store.add(
            FeedRecord(original_url=LABEL_URL, type=FeedType.PUBLISHER, title="The Label")
        )
        fake_source.publishers[LABEL_URL] = [
            PublisherManifestItem(feed_url="https://label.example/a.xml", medium="music")
        ]

        detail = await directory.get_publisher("the-label")

        assert detail.source == "feed-manager"
        assert detail.publisher.name == "The Label"
        assert [album.title for album in detail.publisher.albums] == ["Linked"]
        assert len(detail.publisher_items) == 1

    @pytest.mark.asyncio
    async def test_unreadable_publisher_feed_gives_no_items(
        self, directory: PublisherDirectoryService, feed_store, fake_source: FakeFeedSource
    ):
        await feed_store.add(
            FeedRecord(original_url=LABEL_URL, type=FeedType.PUBLISHER, title="The Label")
        )
        fake_source.publishers[LABEL_URL] = ValueError("HTTP 500")

        detail = await directory.get_publisher("The Label")

        assert detail.publisher_items == []

    @pytest.mark.asyncio
    async def test_snapshot_artist_fallback(self, directory: PublisherDirectoryService, static_path):
        write_json(
            static_path,
            {"albums": [_snapshot_album("A1", "Artist A"), _snapshot_album("B1", "Artist B")]},
        )

        detail = await directory.get_publisher("artist-a")

        assert detail.source == "static-albums"
        assert detail.publisher.name == "Artist A"
        assert detail.publisher.feed_guid == "no-guid"
        assert [album.title for album in detail.publisher.albums] == ["A1"]

    @pytest.mark.asyncio
    async def test_unknown_publisher(self, directory: PublisherDirectoryService):
        assert await directory.get_publisher("nobody") is None
