"""
Catalog build pipeline.

Reclassifies registry feeds, discovers child feeds of publishers, parses
every album feed and writes the static snapshot that the site serves
first.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from cadence_core import get_logger
from cadence_core.schemas import AlbumsDataSource, FeedError, FeedRecord, StaticSnapshot

from .albums_service import AlbumsAggregationService, AlbumsQuery
from .classifier import FeedTypeClassifier, ReclassificationReport
from .feed_store import FeedStore
from .publisher_discovery import DiscoveryReport, PublisherDiscovery
from .snapshots import SnapshotStore

logger = get_logger(__name__)

SNAPSHOT_SOURCE = "build-time-rss-parse"
SNAPSHOT_ERROR_SOURCE = "build-time-error"


class RegistryMirror(Protocol):
    """Secondary registry kept in step with the JSON registry after each build."""

    async def sync_from(self, records: list[FeedRecord]) -> int: ...


class BuildInProgressError(RuntimeError):
    """A catalog build is already running in this process."""


@dataclass
class BuildReport:
    """Outcome of a catalog build."""

    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    finished_at: datetime | None = None
    reclassification: ReclassificationReport | None = None
    discovery: DiscoveryReport | None = None
    album_count: int = 0
    errors: list[FeedError] = field(default_factory=list)
    snapshot_written: bool = False
    mirrored_feeds: int | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None


class CatalogBuilder:
    """Runs the full catalog pipeline and writes ``static-albums.json``."""

    def __init__(
        self,
        store: FeedStore,
        classifier: FeedTypeClassifier,
        discovery: PublisherDiscovery,
        albums_service: AlbumsAggregationService,
        snapshots: SnapshotStore,
        serverless: bool = False,
        mirror: RegistryMirror | None = None,
    ):
        self.store = store
        self.classifier = classifier
        self.discovery = discovery
        self.albums_service = albums_service
        self.snapshots = snapshots
        self.serverless = serverless
        self.mirror = mirror
        self.processed_urls: set[str] | None = None
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    async def build(self) -> BuildReport:
        """
        Run one catalog build.

        Returns:
            Build report. A fatal error is recorded in the report and an
            empty snapshot carrying the error is written.

        Raises:
            BuildInProgressError: If another build is running.
        """
        if self._lock.locked():
            raise BuildInProgressError("Catalog build already in progress")

        async with self._lock:
            report = BuildReport()
            try:
                await self._run(report)
            except Exception as e:
                logger.exception("Catalog build failed")
                report.error = str(e)
                await self._write_snapshot(
                    report,
                    StaticSnapshot(source=SNAPSHOT_ERROR_SOURCE, error=str(e)),
                )
            report.finished_at = datetime.now(UTC)
            return report

    async def unprocessed_feeds(self) -> list[FeedRecord]:
        """Active feeds whose URLs the last successful build in this process did not cover."""
        self.store.invalidate()
        active = await self.store.get_active()
        if self.processed_urls is None:
            return active
        return [feed for feed in active if feed.original_url not in self.processed_urls]

    async def build_if_changed(self) -> BuildReport | None:
        """
        Build only when the registry gained active feeds since the last build.

        Returns:
            Build report, or None when there is nothing new to process.

        Raises:
            BuildInProgressError: If another build is running.
        """
        pending = await self.unprocessed_feeds()
        if not pending:
            return None
        logger.info(
            "New feeds detected, rebuilding catalog",
            extra={"count": len(pending), "urls": [feed.original_url for feed in pending[:10]]},
        )
        return await self.build()

    async def _run(self, report: BuildReport) -> None:
        logger.info("Detecting feed types")
        report.reclassification = await self.classifier.reclassify_all()
        self.store.invalidate()

        logger.info("Discovering feeds from publisher feeds")
        report.discovery = await self.discovery.discover_all()
        self.store.invalidate()

        if self.mirror is not None:
            report.mirrored_feeds = await self.mirror.sync_from(await self.store.get_all())

        processed_urls = {feed.original_url for feed in await self.store.get_active()}
        result = await self.albums_service.fetch_albums(
            AlbumsQuery(source=AlbumsDataSource.DYNAMIC, force_regenerate=True)
        )
        # The dynamic source falls back to the snapshot when there are no
        # album feeds; never write that back as a fresh build.
        albums = [] if result.fallback else result.albums
        errors = [error for error in result.errors or [] if error.feed_id != "none"]

        report.album_count = len(albums)
        report.errors = errors
        await self._write_snapshot(
            report,
            StaticSnapshot(
                albums=albums,
                count=len(albums),
                source=SNAPSHOT_SOURCE,
                errors=errors or None,
            ),
        )
        if report.snapshot_written:
            self.albums_service.clear_cache()
        self.processed_urls = processed_urls
        logger.info(
            "Catalog build complete",
            extra={"albums": len(albums), "errors": len(errors)},
        )

    async def _write_snapshot(self, report: BuildReport, snapshot: StaticSnapshot) -> None:
        if self.serverless:
            logger.info("Serverless environment, skipping snapshot write")
            return
        try:
            await self.snapshots.write_static(snapshot)
        except OSError:
            logger.exception("Failed to write static snapshot")
            return
        report.snapshot_written = True
