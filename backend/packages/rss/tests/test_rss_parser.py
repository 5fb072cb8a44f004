"""Tests for Podcasting 2.0 feed parsing."""

import pytest

from cadence_core.schemas import FeedType
from cadence_rss import detect_feed_type_document, parse_album_document, parse_publisher_document

ALBUM_URL = "https://music.example/feeds/northern-lights.xml"

ALBUM_XML = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"
     xmlns:itunes="http://www.itunes.com/dtds/podcast-1.0.dtd"
     xmlns:podcast="https://podcastindex.org/namespace/1.0">
  <channel>
    <title>Northern Lights</title>
    <itunes:author>The Auroras</itunes:author>
    <description>Second studio album.</description>
    <itunes:image href="https://music.example/art/northern-lights.jpg"/>
    <podcast:guid>album-guid-1</podcast:guid>
    <podcast:medium>music</podcast:medium>
    <podcast:funding url="https://support.example/auroras">Support the band</podcast:funding>
    <podcast:value type="lightning" method="keysend" suggested="0.00000005000">
      <podcast:valueRecipient name="The Auroras" type="node" address="02abc" split="95"/>
      <podcast:valueRecipient name="Host" type="node" address="03def" split="5" fee="true"/>
    </podcast:value>
    <podcast:remoteItem medium="publisher" feedGuid="pub-guid-1" feedUrl="https://music.example/publisher.xml"/>
    <item>
      <title>Opening</title>
      <guid>track-1</guid>
      <itunes:duration>3:45</itunes:duration>
      <enclosure url="https://music.example/audio/opening.mp3" type="audio/mpeg" length="1"/>
    </item>
    <item>
      <title>Closing</title>
      <guid>track-2</guid>
      <podcast:guid>item-guid-2</podcast:guid>
      <enclosure url="https://music.example/audio/closing.mp3" type="audio/mpeg" length="1"/>
    </item>
  </channel>
</rss>
"""

PUBLISHER_XML = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:podcast="https://podcastindex.org/namespace/1.0">
  <channel>
    <title>Aurora Records</title>
    <podcast:medium>publisher</podcast:medium>
    <podcast:remoteItem medium="music" feedGuid="album-guid-1" feedUrl="https://music.example/feeds/northern-lights.xml"/>
    <podcast:remoteItem medium="music" feedGuid="album-guid-2" feedUrl="https://music.example/feeds/southern-skies.xml" title="Southern Skies"/>
    <podcast:remoteItem medium="music" feedGuid="no-url"/>
  </channel>
</rss>
"""

MANIFEST_WITHOUT_MEDIUM_XML = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:podcast="https://podcastindex.org/namespace/1.0">
  <channel>
    <title>Label Without Medium</title>
    <podcast:remoteItem medium="music" feedGuid="album-guid-1" feedUrl="https://music.example/a.xml"/>
  </channel>
</rss>
"""


class TestParseAlbumDocument:
    """Test album feed parsing."""

    @pytest.mark.asyncio
    async def test_channel_fields(self):
        album = await parse_album_document(ALBUM_XML, ALBUM_URL)

        assert album is not None
        assert album.title == "Northern Lights"
        assert album.artist == "The Auroras"
        assert album.cover_art == "https://music.example/art/northern-lights.jpg"
        assert album.feed_guid == "album-guid-1"

    @pytest.mark.asyncio
    async def test_tracks(self):
        album = await parse_album_document(ALBUM_XML, ALBUM_URL)

        assert album is not None
        assert [track.title for track in album.tracks] == ["Opening", "Closing"]
        first, second = album.tracks
        assert first.url == "https://music.example/audio/opening.mp3"
        assert first.duration == "3:45"
        assert first.track_number == 1
        assert second.track_number == 2
        assert second.podcast_guid == "item-guid-2"
        assert first.feed_url == ALBUM_URL
        assert first.feed_guid == "album-guid-1"

    @pytest.mark.asyncio
    async def test_publisher_reference(self):
        album = await parse_album_document(ALBUM_XML, ALBUM_URL)

        assert album is not None
        assert album.publisher is not None
        assert album.publisher.feed_guid == "pub-guid-1"
        assert album.publisher_url == "https://music.example/publisher.xml"

    @pytest.mark.asyncio
    async def test_value_and_funding(self):
        album = await parse_album_document(ALBUM_XML, ALBUM_URL)

        assert album is not None
        assert album.value is not None
        assert album.value["type"] == "lightning"
        assert [r["split"] for r in album.value["recipients"]] == [95, 5]
        assert album.value["recipients"][1]["fee"] is True
        assert album.funding == [
            {"url": "https://support.example/auroras", "message": "Support the band"}
        ]

    @pytest.mark.asyncio
    async def test_empty_channel_gives_none(self):
        xml = '<?xml version="1.0"?><rss version="2.0"><channel></channel></rss>'

        assert await parse_album_document(xml, ALBUM_URL) is None

    @pytest.mark.asyncio
    async def test_garbage_raises(self):
        with pytest.raises(ValueError):
            await parse_album_document("this is not a feed", ALBUM_URL)


class TestParsePublisherDocument:
    """Test publisher manifest parsing."""

    @pytest.mark.asyncio
    async def test_lists_remote_items_with_urls(self):
        items = await parse_publisher_document(PUBLISHER_XML)

        assert [item.feed_guid for item in items] == ["album-guid-1", "album-guid-2"]
        assert items[1].title == "Southern Skies"
        assert all(item.medium == "music" for item in items)

    @pytest.mark.asyncio
    async def test_no_channel_raises(self):
        with pytest.raises(ValueError):
            await parse_publisher_document("<html><body>nope</body></html>")


class TestDetectFeedType:
    """Test album/publisher detection."""

    @pytest.mark.asyncio
    async def test_album(self):
        assert await detect_feed_type_document(ALBUM_XML) == FeedType.ALBUM

    @pytest.mark.asyncio
    async def test_publisher_medium(self):
        assert await detect_feed_type_document(PUBLISHER_XML) == FeedType.PUBLISHER

    @pytest.mark.asyncio
    async def test_manifest_without_enclosures(self):
        assert await detect_feed_type_document(MANIFEST_WITHOUT_MEDIUM_XML) == FeedType.PUBLISHER

    @pytest.mark.asyncio
    async def test_no_channel_raises(self):
        with pytest.raises(ValueError):
            await detect_feed_type_document("<html/>")
