"""
RSS processing package.

Provides feed fetching, Podcasting 2.0 album and publisher feed parsing,
and the network feed source used by the catalog services.
"""

from .fetcher import fetch_feed
from .parser import detect_feed_type_document, parse_album_document, parse_publisher_document
from .source import RSSFeedSource

__all__ = [
    "fetch_feed",
    "parse_album_document",
    "parse_publisher_document",
    "detect_feed_type_document",
    "RSSFeedSource",
]
