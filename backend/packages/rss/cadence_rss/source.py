"""
Network feed source.

Wires fetching and parsing into the feed source the catalog services use.
"""

import httpx

from cadence_core import get_logger
from cadence_core.schemas import FeedType, ParsedAlbum, PublisherManifestItem

from .fetcher import DEFAULT_USER_AGENT, fetch_feed
from .parser import detect_feed_type_document, parse_album_document, parse_publisher_document

logger = get_logger(__name__)


class RSSFeedSource:
    """Fetches feeds over HTTP and parses them."""

    def __init__(
        self,
        timeout: float = 30,
        user_agent: str = DEFAULT_USER_AGENT,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize feed source.

        Args:
            timeout: Per-request timeout in seconds.
            user_agent: User-Agent header sent to feed hosts.
            client: Optional shared HTTP client.
        """
        self.timeout = timeout
        self.user_agent = user_agent
        self.client = client

    async def _fetch(self, url: str) -> str:
        return await fetch_feed(
            url, timeout=self.timeout, user_agent=self.user_agent, client=self.client
        )

    async def parse_album_feed(self, url: str) -> ParsedAlbum | None:
        """
        Fetch and parse an album feed.

        Raises:
            ValueError: If the feed cannot be fetched or parsed.
        """
        content = await self._fetch(url)
        album = await parse_album_document(content, url)
        if album is None:
            logger.warning("Album feed has no usable data", extra={"url": url})
        return album

    async def parse_publisher_feed(self, url: str) -> list[PublisherManifestItem]:
        """
        Fetch a publisher feed and list its remote items.

        Raises:
            ValueError: If the feed cannot be fetched or parsed.
        """
        content = await self._fetch(url)
        items = await parse_publisher_document(content)
        logger.info("Parsed publisher feed", extra={"url": url, "items": len(items)})
        return items

    async def detect_feed_type(self, url: str) -> FeedType:
        """
        Fetch a feed and detect its type.

        Raises:
            ValueError: If the feed cannot be fetched or parsed.
        """
        content = await self._fetch(url)
        return await detect_feed_type_document(content)
