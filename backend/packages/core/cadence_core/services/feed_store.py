"""
Feed registry storage.

The registry is one JSON document. Three historical on-disk shapes are
accepted on read and normalized immediately; writes always use the
canonical ``{feeds, lastUpdated, version}`` shape.
"""

import asyncio
import json
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from cadence_core import get_logger
from cadence_core.exceptions import (
    DuplicateFeedError,
    NotFoundError,
    RegistryReadError,
    RegistryWriteError,
)
from cadence_core.files import dump_json, write_atomic
from cadence_core.schemas import (
    FeedOperationResult,
    FeedPatch,
    FeedPriority,
    FeedRecord,
    FeedRegistry,
    FeedType,
)

logger = get_logger(__name__)


class RegistryShape(str, Enum):
    """On-disk shapes the registry document has had over time."""

    CANONICAL = "canonical"
    RECORD_LIST = "record-list"
    URL_LIST = "url-list"
    UNKNOWN = "unknown"


def detect_registry_shape(raw: Any) -> RegistryShape:
    """Classify a decoded registry document."""
    if isinstance(raw, dict) and isinstance(raw.get("feeds"), list):
        return RegistryShape.CANONICAL
    if isinstance(raw, list):
        if raw and isinstance(raw[0], str):
            return RegistryShape.URL_LIST
        return RegistryShape.RECORD_LIST
    return RegistryShape.UNKNOWN


def _records_from_items(items: list[Any]) -> list[FeedRecord]:
    records: list[FeedRecord] = []
    seen_urls: set[str] = set()
    seen_ids: set[str] = set()
    for item in items:
        try:
            if isinstance(item, str):
                record = FeedRecord.from_url(item)
            else:
                record = FeedRecord.model_validate(item)
        except ValidationError as e:
            logger.warning(
                "Skipping invalid registry entry",
                extra={"entry": str(item)[:200], "error": str(e)},
            )
            continue

        # First entry per URL or id wins.
        if record.original_url in seen_urls or record.id in seen_ids:
            logger.warning(
                "Skipping duplicate registry entry",
                extra={"feed_id": record.id, "url": record.original_url},
            )
            continue
        seen_urls.add(record.original_url)
        seen_ids.add(record.id)
        records.append(record)
    return records


def parse_registry_document(raw: Any) -> FeedRegistry:
    """
    Normalize any accepted registry shape into a ``FeedRegistry``.

    Args:
        raw: Decoded JSON document.

    Returns:
        Canonical registry. Unknown shapes give an empty registry.
    """
    shape = detect_registry_shape(raw)

    if shape == RegistryShape.CANONICAL:
        registry = FeedRegistry(feeds=_records_from_items(raw["feeds"]))
        if raw.get("lastUpdated"):
            try:
                registry.last_updated = datetime.fromisoformat(
                    str(raw["lastUpdated"]).replace("Z", "+00:00")
                )
            except ValueError:
                pass
        if isinstance(raw.get("version"), int):
            registry.version = raw["version"]
        return registry

    if shape in (RegistryShape.RECORD_LIST, RegistryShape.URL_LIST):
        return FeedRegistry(feeds=_records_from_items(raw))

    logger.warning("Unexpected registry format, using empty registry")
    return FeedRegistry()


def serialize_registry(registry: FeedRegistry) -> str:
    """Canonical registry JSON: UTF-8, 2-space indent, camelCase keys."""
    document = registry.model_dump(mode="json", by_alias=True, exclude_none=True)
    return dump_json(document)


@dataclass
class BatchAddResult:
    """Outcome of ``FeedStore.add_many``."""

    added: list[FeedRecord] = field(default_factory=list)
    rejected: list[DuplicateFeedError] = field(default_factory=list)


class FeedStore:
    """
    Canonical feed registry backed by a JSON file.

    The loaded registry is cached on the instance until ``invalidate()``;
    every mutation re-reads the file, writes the whole registry back and
    invalidates, so readers never see a half-applied change.
    """

    def __init__(self, path: Path):
        """
        Initialize feed store.

        Args:
            path: Registry JSON file.
        """
        self.path = path
        self._cached: FeedRegistry | None = None
        self._generation = 0
        self._write_lock = asyncio.Lock()

    async def _read(self, strict: bool = False) -> FeedRegistry:
        """
        Read and normalize the registry file.

        A missing file is an empty registry. Otherwise unreadable or
        undecodable content gives an empty registry for readers, and raises
        ``RegistryReadError`` when ``strict`` so that mutations never write
        over a registry they could not read.
        """
        try:
            text = await asyncio.to_thread(self.path.read_text, encoding="utf-8")
        except FileNotFoundError:
            logger.warning("Registry file not found, using empty registry", extra={"path": str(self.path)})
            return FeedRegistry()
        except OSError as e:
            if strict:
                raise RegistryReadError(f"Failed to read registry {self.path}: {e}") from e
            logger.exception("Failed to read registry file", extra={"path": str(self.path)})
            return FeedRegistry()

        try:
            raw = json.loads(text)
        except ValueError as e:
            if strict:
                raise RegistryReadError(f"Registry {self.path} is not valid JSON: {e}") from e
            logger.exception("Registry file is not valid JSON", extra={"path": str(self.path)})
            return FeedRegistry()

        if strict and detect_registry_shape(raw) == RegistryShape.UNKNOWN:
            raise RegistryReadError(f"Registry {self.path} has an unrecognized format")

        return parse_registry_document(raw)

    async def _write(self, registry: FeedRegistry) -> None:
        registry.last_updated = datetime.now(UTC)
        content = serialize_registry(registry)
        try:
            await asyncio.to_thread(write_atomic, self.path, content)
        except OSError as e:
            raise RegistryWriteError(f"Failed to write registry {self.path}: {e}") from e
        finally:
            self.invalidate()

    async def load(self) -> FeedRegistry:
        """
        Load the registry, from cache when possible.

        Returns:
            Registry in canonical form. Missing or corrupt files give an
            empty registry.
        """
        while self._cached is None:
            generation = self._generation
            registry = await self._read()
            # An invalidate() during the read means the result may predate a write.
            if generation == self._generation:
                self._cached = registry
        return self._cached

    def invalidate(self) -> None:
        """Drop the cached registry; the next ``load()`` re-reads storage."""
        self._generation += 1
        self._cached = None

    async def get_all(self) -> list[FeedRecord]:
        registry = await self.load()
        return list(registry.feeds)

    async def get_active(self) -> list[FeedRecord]:
        registry = await self.load()
        return [feed for feed in registry.feeds if feed.is_active]

    async def get_by_type(self, feed_type: FeedType) -> list[FeedRecord]:
        return [feed for feed in await self.get_active() if feed.type == feed_type]

    async def get_by_priority(self, priority: FeedPriority) -> list[FeedRecord]:
        return [feed for feed in await self.get_active() if feed.priority == priority]

    async def find_by_url(self, url: str) -> FeedRecord | None:
        registry = await self.load()
        return next((feed for feed in registry.feeds if feed.original_url == url), None)

    async def find_by_id(self, feed_id: str) -> FeedRecord | None:
        registry = await self.load()
        return next((feed for feed in registry.feeds if feed.id == feed_id), None)

    async def get(self, feed_id: str) -> FeedRecord:
        """
        Get a registered feed by id.

        Raises:
            NotFoundError: If no feed has this id.
        """
        feed = await self.find_by_id(feed_id)
        if feed is None:
            raise NotFoundError(feed_id)
        return feed

    @staticmethod
    def _check_unique(registry: FeedRegistry, record: FeedRecord) -> None:
        for existing in registry.feeds:
            if existing.original_url == record.original_url:
                raise DuplicateFeedError(record.original_url)
            if existing.id == record.id:
                raise DuplicateFeedError(
                    record.original_url,
                    reason=f"Feed id {record.id!r} already used by {existing.original_url}",
                )

    async def add(self, record: FeedRecord) -> FeedRecord:
        """
        Register a new feed.

        Args:
            record: Feed to add.

        Returns:
            The stored record with fresh timestamps.

        Raises:
            DuplicateFeedError: If the URL is registered, or its id belongs
                to a different URL.
            RegistryWriteError: If the registry cannot be written.
            RegistryReadError: If the registry exists but cannot be read.
        """
        async with self._write_lock:
            registry = await self._read(strict=True)
            self._check_unique(registry, record)

            now = datetime.now(UTC)
            stored = record.model_copy(update={"added_at": now, "last_updated": now})
            registry.feeds.append(stored)
            await self._write(registry)

        logger.info("Feed added", extra={"feed_id": stored.id, "url": stored.original_url})
        return stored

    async def add_many(self, records: Iterable[FeedRecord]) -> BatchAddResult:
        """
        Register several feeds with a single write.

        Duplicates (against the registry or earlier records in the same
        batch) are rejected individually; the rest are stored.
        """
        result = BatchAddResult()
        async with self._write_lock:
            registry = await self._read(strict=True)
            now = datetime.now(UTC)
            for record in records:
                try:
                    self._check_unique(registry, record)
                except DuplicateFeedError as e:
                    result.rejected.append(e)
                    continue
                stored = record.model_copy(update={"added_at": now, "last_updated": now})
                registry.feeds.append(stored)
                result.added.append(stored)

            if result.added:
                await self._write(registry)

        if result.added:
            logger.info("Feeds added", extra={"count": len(result.added)})
        return result

    async def update(self, feed_id: str, patch: FeedPatch) -> FeedOperationResult:
        """
        Merge ``patch`` into a registered feed.

        A missing id is reported as a not-found result rather than raised.
        """
        changes = patch.model_dump(exclude_none=True)
        async with self._write_lock:
            registry = await self._read(strict=True)
            for index, feed in enumerate(registry.feeds):
                if feed.id == feed_id:
                    changes["last_updated"] = datetime.now(UTC)
                    updated = feed.model_copy(update=changes)
                    registry.feeds[index] = updated
                    await self._write(registry)
                    break
            else:
                logger.warning("Feed to update not found", extra={"feed_id": feed_id})
                return FeedOperationResult(
                    success=False, error=f"Feed not found: {feed_id}", not_found=True
                )

        logger.info("Feed updated", extra={"feed_id": feed_id, "fields": sorted(changes)})
        return FeedOperationResult(success=True, feed=updated)

    async def remove(self, feed_id: str) -> FeedOperationResult:
        """Remove a feed. A missing id is reported as a not-found result."""
        async with self._write_lock:
            registry = await self._read(strict=True)
            kept = [feed for feed in registry.feeds if feed.id != feed_id]
            if len(kept) == len(registry.feeds):
                logger.warning("Feed to remove not found", extra={"feed_id": feed_id})
                return FeedOperationResult(
                    success=False, error=f"Feed not found: {feed_id}", not_found=True
                )

            removed = next(feed for feed in registry.feeds if feed.id == feed_id)
            registry.feeds = kept
            await self._write(registry)

        logger.info("Feed removed", extra={"feed_id": feed_id})
        return FeedOperationResult(success=True, feed=removed)

    async def replace_all(self, records: list[FeedRecord]) -> None:
        """Write ``records`` as the whole registry in one go."""
        async with self._write_lock:
            registry = await self._read(strict=True)
            registry.feeds = list(records)
            await self._write(registry)
