"""
Podcasting 2.0 music feed parser.

Channel and item basics come from feedparser; ``podcast:*`` namespace tags
(guid, medium, remoteItem, value, funding) are read with BeautifulSoup's
XML parser because feedparser does not expose them.
"""

from typing import Any

import feedparser
from bs4 import BeautifulSoup, Tag
from feedparser import FeedParserDict

from cadence_core.schemas import (
    FeedType,
    ParsedAlbum,
    PublisherInfo,
    PublisherManifestItem,
    Track,
)

PUBLISHER_MEDIUM = "publisher"


def _soup(content: str) -> BeautifulSoup:
    return BeautifulSoup(content, "xml")


def _channel(soup: BeautifulSoup) -> Tag | None:
    channel = soup.find("channel")
    return channel if isinstance(channel, Tag) else None


def _child_text(parent: Tag, name: str) -> str | None:
    tag = parent.find(name, recursive=False)
    if isinstance(tag, Tag):
        text = tag.get_text(strip=True)
        return text or None
    return None


def _remote_items(parent: Tag) -> list[Tag]:
    return [tag for tag in parent.find_all("podcast:remoteItem", recursive=False) if isinstance(tag, Tag)]


def _has_enclosures(channel: Tag) -> bool:
    for item in channel.find_all("item", recursive=False):
        if isinstance(item, Tag) and item.find("enclosure"):
            return True
    return False


def _parse_value(parent: Tag) -> dict[str, Any] | None:
    value = parent.find("podcast:value", recursive=False)
    if not isinstance(value, Tag):
        return None
    recipients = []
    for recipient in value.find_all("podcast:valueRecipient"):
        split = recipient.get("split")
        recipients.append(
            {
                "name": recipient.get("name"),
                "type": recipient.get("type"),
                "address": recipient.get("address"),
                "split": int(split) if split and str(split).isdigit() else 0,
                "fee": str(recipient.get("fee", "")).lower() == "true",
            }
        )
    return {
        "type": value.get("type"),
        "method": value.get("method"),
        "suggested": value.get("suggested"),
        "recipients": recipients,
    }


def _parse_funding(channel: Tag) -> list[dict[str, Any]] | None:
    funding = [
        {"url": tag.get("url"), "message": tag.get_text(strip=True) or None}
        for tag in channel.find_all("podcast:funding", recursive=False)
        if tag.get("url")
    ]
    return funding or None


def _parse_publisher_reference(channel: Tag) -> PublisherInfo | None:
    candidates: list[Tag] = []
    publisher_tag = channel.find("podcast:publisher", recursive=False)
    if isinstance(publisher_tag, Tag):
        candidates.extend(publisher_tag.find_all("podcast:remoteItem"))
    candidates.extend(
        tag for tag in _remote_items(channel) if tag.get("medium") == PUBLISHER_MEDIUM
    )
    for tag in candidates:
        if tag.get("feedGuid") or tag.get("feedUrl"):
            return PublisherInfo(
                feed_guid=tag.get("feedGuid"),
                feed_url=tag.get("feedUrl"),
                medium=tag.get("medium") or PUBLISHER_MEDIUM,
            )
    return None


def _image_href(data: FeedParserDict) -> str | None:
    image = data.get("image")
    if isinstance(image, dict):
        return image.get("href") or image.get("url")
    return None


def _track_from_entry(
    entry: FeedParserDict, index: int, item_tag: Tag | None, feed_guid: str | None, url: str
) -> Track:
    enclosure_url = None
    for enclosure in entry.get("enclosures", []):
        if enclosure.get("href"):
            enclosure_url = enclosure["href"]
            break

    episode = entry.get("itunes_episode")
    track_number = int(episode) if episode and str(episode).isdigit() else index + 1

    return Track(
        title=entry.get("title", ""),
        duration=entry.get("itunes_duration") or None,
        url=enclosure_url,
        track_number=track_number,
        image=_image_href(entry),
        guid=entry.get("id"),
        podcast_guid=_child_text(item_tag, "podcast:guid") if item_tag else None,
        feed_guid=feed_guid,
        feed_url=url,
    )


async def parse_album_document(content: str, url: str) -> ParsedAlbum | None:
    """
    Parse an album feed document.

    Args:
        content: Feed XML.
        url: Feed URL, recorded on each track.

    Returns:
        Parsed album, or None when the document has neither a title nor tracks.

    Raises:
        ValueError: If the document cannot be parsed at all.
    """
    data = feedparser.parse(content)
    if data.get("bozo", False) and not data.get("entries") and not data.get("feed"):
        raise ValueError(f"Failed to parse feed: {data.get('bozo_exception', 'Unknown error')}")

    soup = _soup(content)
    channel = _channel(soup)
    if channel is None:
        raise ValueError("Failed to parse feed: no channel element")

    feed_info = data.get("feed", {})
    feed_guid = _child_text(channel, "podcast:guid")
    item_tags = [tag for tag in channel.find_all("item", recursive=False) if isinstance(tag, Tag)]

    tracks = []
    for index, entry in enumerate(data.get("entries", [])):
        item_tag = item_tags[index] if index < len(item_tags) else None
        tracks.append(_track_from_entry(entry, index, item_tag, feed_guid, url))

    title = feed_info.get("title", "")
    if not title and not tracks:
        return None

    cover_art = _image_href(feed_info)
    publisher = _parse_publisher_reference(channel)
    return ParsedAlbum(
        title=title,
        artist=feed_info.get("author") or feed_info.get("itunes_author") or "",
        description=feed_info.get("subtitle") or feed_info.get("description"),
        cover_art=cover_art,
        image_url=cover_art,
        release_date=feed_info.get("published") or feed_info.get("updated"),
        tracks=tracks,
        feed_guid=feed_guid,
        publisher=publisher,
        publisher_guid=publisher.feed_guid if publisher else None,
        publisher_url=publisher.feed_url if publisher else None,
        funding=_parse_funding(channel),
        value=_parse_value(channel),
    )


async def parse_publisher_document(content: str) -> list[PublisherManifestItem]:
    """
    List the remote items of a publisher feed.

    Raises:
        ValueError: If the document has no channel element.
    """
    channel = _channel(_soup(content))
    if channel is None:
        raise ValueError("Failed to parse publisher feed: no channel element")

    items = []
    for tag in _remote_items(channel):
        feed_url = tag.get("feedUrl")
        if not feed_url:
            continue
        items.append(
            PublisherManifestItem(
                feed_url=feed_url,
                feed_guid=tag.get("feedGuid"),
                title=tag.get("title"),
                medium=tag.get("medium"),
            )
        )
    return items


async def detect_feed_type_document(content: str) -> FeedType:
    """
    Decide whether a feed is an album or a publisher manifest.

    A channel with ``podcast:medium`` of ``publisher``, or with remote items
    and no audio enclosures, is a publisher feed.

    Raises:
        ValueError: If the document has no channel element.
    """
    channel = _channel(_soup(content))
    if channel is None:
        raise ValueError("Failed to parse feed: no channel element")

    medium = (_child_text(channel, "podcast:medium") or "").lower()
    if medium == PUBLISHER_MEDIUM:
        return FeedType.PUBLISHER

    manifest = [tag for tag in _remote_items(channel) if tag.get("medium") != PUBLISHER_MEDIUM]
    if manifest and not _has_enclosures(channel):
        return FeedType.PUBLISHER
    return FeedType.ALBUM
