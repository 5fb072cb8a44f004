"""Tests for the feed registry endpoints."""

from datetime import timedelta

import pytest
from fastapi import FastAPI
from httpx import AsyncClient

from conftest import MockArqRedis

from cadence_core.schemas import FeedRecord, FeedType
from cadence_core.services import FeedStore

ALBUM_URL = "https://music.example/feeds/first.xml"
LABEL_URL = "https://label.example/publisher.xml"


class TestListFeeds:
    """Test GET /api/feeds."""

    @pytest.mark.asyncio
    async def test_empty_registry(self, client: AsyncClient):
        response = await client.get("/api/feeds")

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_filter_by_type(self, client: AsyncClient, feed_store: FeedStore):
        await feed_store.add(FeedRecord(original_url=ALBUM_URL))
        await feed_store.add(FeedRecord(original_url=LABEL_URL, type=FeedType.PUBLISHER))

        response = await client.get("/api/feeds", params={"type": "publisher"})

        feeds = response.json()
        assert [feed["originalUrl"] for feed in feeds] == [LABEL_URL]
        assert feeds[0]["type"] == "publisher"


class TestAddFeed:
    """Test POST /api/feeds."""

    @pytest.mark.asyncio
    async def test_add_feed(self, client: AsyncClient, feed_store: FeedStore):
        response = await client.post("/api/feeds", json={"url": ALBUM_URL, "title": "First"})

        assert response.status_code == 201
        body = response.json()
        assert body["originalUrl"] == ALBUM_URL
        assert body["title"] == "First"
        assert body["type"] == "album"
        assert body["status"] == "active"
        assert body["id"]
        assert await feed_store.find_by_url(ALBUM_URL) is not None

    @pytest.mark.asyncio
    async def test_add_duplicate_url(self, client: AsyncClient):
        await client.post("/api/feeds", json={"url": ALBUM_URL})

        response = await client.post("/api/feeds", json={"url": ALBUM_URL})

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_add_requires_url(self, client: AsyncClient):
        response = await client.post("/api/feeds", json={"url": ""})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_add_queues_new_feed_processing(
        self, app: FastAPI, client: AsyncClient, mock_redis: MockArqRedis
    ):
        """Test that a registered feed is handed to the worker for processing."""
        app.state.redis_pool = mock_redis

        response = await client.post("/api/feeds", json={"url": ALBUM_URL})

        assert response.status_code == 201
        assert mock_redis.enqueued_jobs == [("process_new_feeds_task", ())]
        assert mock_redis.job_options[0]["_defer_by"] == timedelta(seconds=2)

    @pytest.mark.asyncio
    async def test_duplicate_does_not_queue_processing(
        self, app: FastAPI, client: AsyncClient, mock_redis: MockArqRedis
    ):
        await client.post("/api/feeds", json={"url": ALBUM_URL})
        app.state.redis_pool = mock_redis

        response = await client.post("/api/feeds", json={"url": ALBUM_URL})

        assert response.status_code == 409
        assert mock_redis.enqueued_jobs == []


class TestFeedById:
    """Test GET, PATCH and DELETE /api/feeds/{feed_id}."""

    @pytest.mark.asyncio
    async def test_get_feed(self, client: AsyncClient, feed_store: FeedStore):
        await feed_store.add(FeedRecord(id="first", original_url=ALBUM_URL))

        response = await client.get("/api/feeds/first")

        assert response.status_code == 200
        assert response.json()["originalUrl"] == ALBUM_URL

    @pytest.mark.asyncio
    async def test_get_missing_feed(self, client: AsyncClient):
        response = await client.get("/api/feeds/missing")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_patch_feed(self, client: AsyncClient, feed_store: FeedStore):
        await feed_store.add(FeedRecord(id="first", original_url=ALBUM_URL))

        response = await client.patch(
            "/api/feeds/first", json={"type": "publisher", "status": "inactive"}
        )

        assert response.status_code == 200
        assert response.json()["type"] == "publisher"
        stored = await feed_store.find_by_id("first")
        assert stored is not None
        assert stored.type == FeedType.PUBLISHER
        assert not stored.is_active

    @pytest.mark.asyncio
    async def test_patch_missing_feed(self, client: AsyncClient):
        response = await client.patch("/api/feeds/missing", json={"title": "x"})

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_feed(self, client: AsyncClient, feed_store: FeedStore):
        await feed_store.add(FeedRecord(id="first", original_url=ALBUM_URL))

        response = await client.delete("/api/feeds/first")

        assert response.status_code == 204
        assert await feed_store.find_by_id("first") is None

    @pytest.mark.asyncio
    async def test_delete_missing_feed(self, client: AsyncClient):
        response = await client.delete("/api/feeds/missing")

        assert response.status_code == 404
