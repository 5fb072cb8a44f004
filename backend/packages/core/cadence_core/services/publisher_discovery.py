"""
Publisher feed discovery.

Publisher feeds list the album feeds of an artist or label as remote
items. This service follows them and registers the music feeds that are
not yet in the registry.
"""

from dataclasses import dataclass, field

from cadence_core import get_logger
from cadence_core.exceptions import PerFeedParseError, RegistryReadError, RegistryWriteError
from cadence_core.feed_source import FeedSource
from cadence_core.schemas import (
    FeedPriority,
    FeedRecord,
    FeedSource as RecordSource,
    FeedType,
    PublisherManifestItem,
)
from cadence_core.slugs import derive_feed_id, hostname_title
from cadence_core.throttle import RequestThrottle

from .feed_store import FeedStore

logger = get_logger(__name__)

MUSIC_MEDIUM = "music"


@dataclass
class DiscoveryReport:
    """Outcome of a discovery pass over all publisher feeds."""

    discovered: list[PublisherManifestItem] = field(default_factory=list)
    errors: list[PerFeedParseError] = field(default_factory=list)
    verified: bool = True
    missing: list[str] = field(default_factory=list)


class PublisherDiscovery:
    """Registers child feeds found in publisher manifests."""

    def __init__(self, store: FeedStore, source: FeedSource, throttle: RequestThrottle):
        """
        Initialize discovery service.

        Args:
            store: Feed registry.
            source: Feed fetch/parse collaborator.
            throttle: Gate applied before every outbound request.
        """
        self.store = store
        self.source = source
        self.throttle = throttle

    @staticmethod
    def _record_for(item: PublisherManifestItem, publisher_feed: FeedRecord) -> FeedRecord:
        return FeedRecord(
            id=item.feed_guid or derive_feed_id(item.feed_url),
            original_url=item.feed_url,
            type=FeedType.ALBUM,
            title=item.title or hostname_title(item.feed_url),
            priority=FeedPriority.EXTENDED,
            source=RecordSource.RECURSIVE,
            discovered_from=publisher_feed.original_url,
        )

    async def discover(
        self, publisher_feed: FeedRecord, seen: set[str] | None = None
    ) -> list[PublisherManifestItem]:
        """
        Register the unknown music feeds referenced by one publisher feed.

        Args:
            publisher_feed: Registry record of the publisher feed.
            seen: URLs already handled in the current pass. Updated in
                place with every URL registered here.

        Returns:
            Manifest items that were newly registered.

        Raises:
            PerFeedParseError: If the publisher feed cannot be fetched or parsed.
        """
        await self.throttle.wait(publisher_feed.original_url)
        try:
            items = await self.source.parse_publisher_feed(publisher_feed.original_url)
        except Exception as e:
            raise PerFeedParseError(publisher_feed.id, str(e)) from e

        if seen is None:
            seen = set()
        registry = await self.store.load()
        known = registry.urls() | seen

        candidates: list[tuple[PublisherManifestItem, FeedRecord]] = []
        for item in items:
            if not item.feed_url or item.medium != MUSIC_MEDIUM:
                continue
            if item.feed_url in known:
                continue
            known.add(item.feed_url)
            candidates.append((item, self._record_for(item, publisher_feed)))

        if not candidates:
            logger.info(
                "No new feeds in publisher feed",
                extra={"feed_id": publisher_feed.id, "items": len(items)},
            )
            return []

        result = await self.store.add_many(record for _, record in candidates)
        added_urls = {record.original_url for record in result.added}
        for rejection in result.rejected:
            logger.warning(
                "Discovered feed rejected",
                extra={"url": rejection.url, "reason": rejection.reason},
            )

        seen.update(added_urls)
        discovered = [item for item, _ in candidates if item.feed_url in added_urls]
        logger.info(
            "Discovered feeds from publisher feed",
            extra={"feed_id": publisher_feed.id, "discovered": len(discovered)},
        )
        return discovered

    async def discover_all(self) -> DiscoveryReport:
        """
        Run discovery over every active publisher feed.

        Publisher feeds are processed one at a time; a failing feed is
        recorded and skipped. The registry is then re-read to check that
        every reported feed is really stored.

        Returns:
            Discovery report.
        """
        report = DiscoveryReport()
        seen: set[str] = set()

        for publisher_feed in await self.store.get_by_type(FeedType.PUBLISHER):
            try:
                report.discovered.extend(await self.discover(publisher_feed, seen))
            except PerFeedParseError as e:
                logger.warning(
                    "Error processing publisher feed",
                    extra={"feed_id": publisher_feed.id, "error": e.message},
                )
                report.errors.append(e)
            except (RegistryReadError, RegistryWriteError):
                raise
            except Exception as e:
                logger.exception(
                    "Unexpected error processing publisher feed",
                    extra={"feed_id": publisher_feed.id},
                )
                report.errors.append(PerFeedParseError(publisher_feed.id, str(e)))

        self.store.invalidate()
        if report.discovered:
            registry = await self.store.load()
            present = registry.urls()
            report.missing = [
                item.feed_url for item in report.discovered if item.feed_url not in present
            ]
            report.verified = not report.missing
            if report.missing:
                logger.warning(
                    "Discovered feeds missing after reload",
                    extra={
                        "found": len(report.discovered) - len(report.missing),
                        "expected": len(report.discovered),
                    },
                )

        logger.info(
            "Discovery finished",
            extra={"discovered": len(report.discovered), "errors": len(report.errors)},
        )
        return report
