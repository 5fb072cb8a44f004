"""
Feed type classification.

Registry entries start out as albums; this service fetches each one and
flips it to ``publisher`` when the feed turns out to be a manifest.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime

from cadence_core import get_logger
from cadence_core.exceptions import ClassificationError
from cadence_core.feed_source import FeedSource
from cadence_core.schemas import FeedRecord, FeedStatus, FeedType
from cadence_core.throttle import RequestThrottle

from .feed_store import FeedStore

logger = get_logger(__name__)


@dataclass
class ReclassificationReport:
    """Outcome of a reclassification pass."""

    checked: int = 0
    changed: list[FeedRecord] = field(default_factory=list)
    errors: list[ClassificationError] = field(default_factory=list)


class FeedTypeClassifier:
    """Decides album vs publisher for registry feeds."""

    def __init__(self, store: FeedStore, source: FeedSource, throttle: RequestThrottle):
        """
        Initialize classifier.

        Args:
            store: Feed registry.
            source: Feed fetch/parse collaborator.
            throttle: Gate applied before every outbound request.
        """
        self.store = store
        self.source = source
        self.throttle = throttle

    async def classify(self, url: str) -> FeedType:
        """
        Detect the type of one feed.

        Args:
            url: Feed URL.

        Returns:
            Detected feed type.

        Raises:
            ClassificationError: If the feed cannot be fetched or parsed.
        """
        try:
            return await self.source.detect_feed_type(url)
        except Exception as e:
            raise ClassificationError(url, e) from e

    async def reclassify_all(
        self, candidates: list[FeedRecord] | None = None
    ) -> ReclassificationReport:
        """
        Re-detect the type of every active feed still typed as album.

        Requests are throttled and run one at a time. A failing feed keeps
        its current type. Changed records are written in one batch at the
        end.

        Args:
            candidates: Feeds to consider; defaults to the whole registry.

        Returns:
            Report of checked, changed and failed feeds.
        """
        if candidates is None:
            candidates = await self.store.get_all()
        pending = [
            feed
            for feed in candidates
            if feed.type == FeedType.ALBUM and feed.status == FeedStatus.ACTIVE
        ]

        report = ReclassificationReport()
        flips: dict[str, FeedType] = {}

        for feed in pending:
            await self.throttle.wait(feed.original_url)
            report.checked += 1
            try:
                detected = await self.classify(feed.original_url)
            except ClassificationError as e:
                logger.warning(
                    "Could not classify feed",
                    extra={"feed_id": feed.id, "url": feed.original_url, "error": str(e.cause)},
                )
                report.errors.append(e)
                continue

            if detected != feed.type:
                logger.info(
                    "Feed type changed",
                    extra={"feed_id": feed.id, "from": feed.type.value, "to": detected.value},
                )
                flips[feed.id] = detected

        if flips:
            now = datetime.now(UTC)
            self.store.invalidate()
            records = await self.store.get_all()
            updated: list[FeedRecord] = []
            for record in records:
                if record.id in flips:
                    record = record.model_copy(update={"type": flips[record.id], "last_updated": now})
                    report.changed.append(record)
                updated.append(record)
            await self.store.replace_all(updated)

        logger.info(
            "Reclassification finished",
            extra={
                "checked": report.checked,
                "changed": len(report.changed),
                "errors": len(report.errors),
            },
        )
        return report
