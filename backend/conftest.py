"""Global pytest fixtures for testing."""

import asyncio
import contextlib
import json
from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import dotenv
import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from cadence_core.cache import TTLCache
from cadence_core.schemas import FeedType, ParsedAlbum, PublisherManifestItem
from cadence_core.services import (
    AlbumResolver,
    AlbumsAggregationService,
    CatalogBuilder,
    CatalogServices,
    FeedStore,
    FeedTypeClassifier,
    PublisherDirectoryService,
    PublisherDiscovery,
    SnapshotStore,
)
from cadence_core.throttle import RequestThrottle, ThrottleConfig

with contextlib.suppress(OSError):
    dotenv.load_dotenv()


class FakeFeedSource:
    """In-memory feed source keyed by URL.

    Values may be exceptions, which are raised when the URL is requested.
    """

    def __init__(self):
        self.albums: dict[str, ParsedAlbum | None | Exception] = {}
        self.publishers: dict[str, list[PublisherManifestItem] | Exception] = {}
        self.types: dict[str, FeedType | Exception] = {}
        self.delays: dict[str, float] = {}
        self.calls: list[tuple[str, str]] = []

    async def _respond(self, kind: str, url: str, table: dict[str, Any], default: Any) -> Any:
        self.calls.append((kind, url))
        if url in self.delays:
            await asyncio.sleep(self.delays[url])
        value = table.get(url, default)
        if isinstance(value, Exception):
            raise value
        return value

    async def parse_album_feed(self, url: str) -> ParsedAlbum | None:
        return await self._respond("album", url, self.albums, None)

    async def parse_publisher_feed(self, url: str) -> list[PublisherManifestItem]:
        return await self._respond("publisher", url, self.publishers, [])

    async def detect_feed_type(self, url: str) -> FeedType:
        return await self._respond("detect", url, self.types, FeedType.ALBUM)

    def album_calls(self) -> list[str]:
        return [url for kind, url in self.calls if kind == "album"]


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class MockArqRedis:
    """Mock ArqRedis for testing."""

    def __init__(self):
        self.enqueued_jobs: list[tuple[str, tuple[Any, ...]]] = []
        self.job_options: list[dict[str, Any]] = []

    async def enqueue_job(self, func_name: str, *args: Any, **kwargs: Any) -> Any:
        """Record the call and return a job-like object."""
        self.enqueued_jobs.append((func_name, args))
        self.job_options.append(kwargs)
        job = AsyncMock()
        job.job_id = f"job-{len(self.enqueued_jobs)}"
        return job

    async def close(self) -> None:
        pass


def make_album(title: str, artist: str = "Test Artist", **fields: Any) -> ParsedAlbum:
    """Build a parsed album with sensible defaults."""
    return ParsedAlbum(title=title, artist=artist, **fields)


def write_json(path: Path, document: Any) -> Path:
    """Write a JSON document, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(document, indent=2), encoding="utf-8")
    return path


@pytest.fixture
def registry_path(tmp_path: Path) -> Path:
    """Path of the registry file (not created)."""
    return tmp_path / "data" / "feeds.json"


@pytest.fixture
def static_path(tmp_path: Path) -> Path:
    """Path of the static albums snapshot (not created)."""
    return tmp_path / "public" / "static-albums.json"


@pytest.fixture
def static_cached_path(tmp_path: Path) -> Path:
    """Path of the cached albums snapshot (not created)."""
    return tmp_path / "public" / "albums-static-cached.json"


@pytest.fixture
def fake_source() -> FakeFeedSource:
    return FakeFeedSource()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def no_throttle() -> RequestThrottle:
    """Throttle that never actually sleeps."""
    return RequestThrottle(ThrottleConfig(min_interval_seconds=0.0), sleep=AsyncMock())


@pytest.fixture
def feed_store(registry_path: Path) -> FeedStore:
    return FeedStore(registry_path)


@pytest.fixture
def snapshot_store(static_path: Path, static_cached_path: Path) -> SnapshotStore:
    return SnapshotStore(static_path=static_path, static_cached_path=static_cached_path)


@pytest.fixture
def albums_service(
    feed_store: FeedStore,
    fake_source: FakeFeedSource,
    snapshot_store: SnapshotStore,
    fake_clock: FakeClock,
    no_throttle: RequestThrottle,
) -> AlbumsAggregationService:
    return AlbumsAggregationService(
        feed_store,
        fake_source,
        snapshot_store,
        cache=TTLCache(300, clock=fake_clock),
        throttle=no_throttle,
        parse_timeout=1.0,
    )


@pytest.fixture
def album_resolver(
    feed_store: FeedStore,
    fake_source: FakeFeedSource,
    snapshot_store: SnapshotStore,
    fake_clock: FakeClock,
    no_throttle: RequestThrottle,
) -> AlbumResolver:
    return AlbumResolver(
        feed_store,
        fake_source,
        snapshot_store,
        cache=TTLCache(600, clock=fake_clock),
        throttle=no_throttle,
        parse_timeout=1.0,
        slug_overrides={},
    )


@pytest.fixture
def catalog_services(
    feed_store: FeedStore,
    fake_source: FakeFeedSource,
    snapshot_store: SnapshotStore,
    no_throttle: RequestThrottle,
    albums_service: AlbumsAggregationService,
    album_resolver: AlbumResolver,
) -> CatalogServices:
    """Catalog services wired to temp files and the fake feed source."""
    classifier = FeedTypeClassifier(feed_store, fake_source, no_throttle)
    discovery = PublisherDiscovery(feed_store, fake_source, no_throttle)
    return CatalogServices(
        store=feed_store,
        snapshots=snapshot_store,
        classifier=classifier,
        discovery=discovery,
        albums=albums_service,
        resolver=album_resolver,
        publishers=PublisherDirectoryService(
            feed_store, albums_service, snapshot_store, fake_source
        ),
        builder=CatalogBuilder(
            feed_store, classifier, discovery, albums_service, snapshot_store
        ),
    )


@pytest.fixture
def mock_redis() -> MockArqRedis:
    return MockArqRedis()


@pytest.fixture
def app(catalog_services: CatalogServices) -> FastAPI:
    """API application bound to the test catalog services."""
    from cadence_api.main import create_app

    return create_app(catalog_services)


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
