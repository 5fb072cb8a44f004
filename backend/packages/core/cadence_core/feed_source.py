"""
Feed fetch/parse contract.

The core only talks to feeds through this protocol. ``cadence_rss``
provides the network implementation; tests use an in-memory fake.
"""

from typing import Protocol, runtime_checkable

from cadence_core.schemas import FeedType, ParsedAlbum, PublisherManifestItem


@runtime_checkable
class FeedSource(Protocol):
    """Potentially slow, potentially failing feed operations."""

    async def parse_album_feed(self, url: str) -> ParsedAlbum | None:
        """Parse an album feed. None means the feed had no usable data."""
        ...

    async def parse_publisher_feed(self, url: str) -> list[PublisherManifestItem]:
        """List the remote items a publisher feed references."""
        ...

    async def detect_feed_type(self, url: str) -> FeedType:
        """Sniff whether a feed is an album or a publisher manifest."""
        ...
