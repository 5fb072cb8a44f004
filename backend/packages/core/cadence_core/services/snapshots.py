"""
Static album snapshots.

Snapshots are pre-generated JSON files of parsed albums. They are read
from disk, or over HTTP from the public site when running serverless,
where the build output is only reachable as static assets.
"""

import asyncio
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx
from pydantic import ValidationError

from cadence_core import get_logger
from cadence_core.files import dump_json, write_atomic
from cadence_core.schemas import ParsedAlbum, StaticSnapshot

logger = get_logger(__name__)


@dataclass
class SnapshotRead:
    """Albums read from a snapshot and where they came from."""

    albums: list[ParsedAlbum] = field(default_factory=list)
    origin: str | None = None

    @property
    def found(self) -> bool:
        return bool(self.albums)


def albums_from_document(document: Any) -> list[ParsedAlbum]:
    """
    Extract albums from a snapshot document.

    Accepts ``{albums: [...]}`` and the older ``{metadata: {albums: [...]}}``.
    Entries that do not validate are skipped.
    """
    if not isinstance(document, dict):
        return []
    raw_albums = document.get("albums")
    if not raw_albums and isinstance(document.get("metadata"), dict):
        raw_albums = document["metadata"].get("albums")
    if not isinstance(raw_albums, list):
        return []

    albums: list[ParsedAlbum] = []
    for raw in raw_albums:
        try:
            albums.append(ParsedAlbum.model_validate(raw))
        except ValidationError as e:
            logger.warning("Skipping invalid snapshot album", extra={"error": str(e)})
    return albums


class SnapshotStore:
    """Reads and writes the static album snapshot files."""

    def __init__(
        self,
        static_path: Path,
        static_cached_path: Path,
        serverless: bool = False,
        site_url: str | None = None,
        http_timeout: float = 5.0,
        user_agent: str = "Cadence/1.0",
    ):
        self.static_path = static_path
        self.static_cached_path = static_cached_path
        self.serverless = serverless
        self.site_url = site_url.rstrip("/") if site_url else None
        self.http_timeout = http_timeout
        self.user_agent = user_agent

    async def _read_file(self, path: Path) -> Any | None:
        try:
            text = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("Failed to read snapshot file", extra={"path": str(path), "error": str(e)})
            return None
        try:
            return json.loads(text)
        except ValueError as e:
            logger.warning("Snapshot file is not valid JSON", extra={"path": str(path), "error": str(e)})
            return None

    async def _read_http(self, filename: str) -> Any | None:
        if not self.site_url:
            return None
        url = f"{self.site_url}/{filename}"
        try:
            async with httpx.AsyncClient(
                timeout=self.http_timeout, headers={"User-Agent": self.user_agent}
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Snapshot not available over HTTP", extra={"url": url, "error": str(e)})
            return None

    async def _read(self, path: Path, origin: str) -> SnapshotRead:
        document = await self._read_file(path)
        if document is not None:
            albums = albums_from_document(document)
            logger.info("Loaded albums from snapshot file", extra={"path": str(path), "count": len(albums)})
            return SnapshotRead(albums=albums, origin=origin)

        if self.serverless:
            document = await self._read_http(path.name)
            if document is not None:
                albums = albums_from_document(document)
                logger.info("Loaded albums from snapshot over HTTP", extra={"count": len(albums)})
                return SnapshotRead(albums=albums, origin=f"{origin}-http")

        return SnapshotRead()

    async def read_static(self) -> SnapshotRead:
        """Read ``static-albums.json``. Missing or empty gives no albums."""
        return await self._read(self.static_path, "static-file")

    async def read_static_cached(self) -> SnapshotRead:
        """Read the separately maintained cached snapshot."""
        return await self._read(self.static_cached_path, "static-cached-file")

    async def write_static(self, snapshot: StaticSnapshot) -> None:
        """Write ``static-albums.json`` atomically."""
        document = snapshot.model_dump(mode="json", by_alias=True, exclude_none=True)
        content = dump_json(document)
        await asyncio.to_thread(write_atomic, self.static_path, content)
        logger.info(
            "Saved static snapshot",
            extra={"path": str(self.static_path), "count": snapshot.count},
        )
