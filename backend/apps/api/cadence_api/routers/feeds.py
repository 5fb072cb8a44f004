"""
Feed registry router.

Provides endpoints for listing, registering, editing and removing feeds.
"""

from typing import Annotated

from arq.connections import ArqRedis
from fastapi import APIRouter, Depends, HTTPException, Query, status

from cadence_core.exceptions import DuplicateFeedError, NotFoundError
from cadence_core.schemas import FeedCreateRequest, FeedPatch, FeedRecord, FeedType
from cadence_core.services import FeedStore

from ..dependencies import get_feed_store, get_redis_pool
from .process import NEW_FEEDS_DEBOUNCE, NEW_FEEDS_TASK_NAME

router = APIRouter()


@router.get("")
async def list_feeds(
    store: Annotated[FeedStore, Depends(get_feed_store)],
    feed_type: Annotated[FeedType | None, Query(alias="type")] = None,
) -> list[FeedRecord]:
    """
    Get registered feeds.

    Args:
        store: Feed registry store.
        feed_type: Only feeds of this type.

    Returns:
        Feeds in registry order.
    """
    if feed_type is not None:
        return await store.get_by_type(feed_type)
    return await store.get_all()


@router.get("/{feed_id}")
async def get_feed(
    feed_id: str,
    store: Annotated[FeedStore, Depends(get_feed_store)],
) -> FeedRecord:
    """
    Get one feed.

    Raises:
        HTTPException: If the feed is not registered.
    """
    try:
        return await store.get(feed_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("", status_code=status.HTTP_201_CREATED)
async def add_feed(
    data: FeedCreateRequest,
    store: Annotated[FeedStore, Depends(get_feed_store)],
    redis_pool: Annotated[ArqRedis | None, Depends(get_redis_pool)],
) -> FeedRecord:
    """
    Register a feed.

    When a task queue is configured the worker is asked to process the
    new feed, so it reaches the catalog without waiting for the hourly build.

    Args:
        data: Feed URL, type, optional title and priority.
        store: Feed registry store.
        redis_pool: Task queue pool, if configured.

    Returns:
        The stored feed.

    Raises:
        HTTPException: If the URL or its derived id is already registered.
    """
    record = FeedRecord(
        original_url=data.url,
        type=data.type,
        title=data.title or "",
        priority=data.priority,
    )
    try:
        stored = await store.add(record)
    except DuplicateFeedError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    if redis_pool is not None:
        await redis_pool.enqueue_job(NEW_FEEDS_TASK_NAME, _defer_by=NEW_FEEDS_DEBOUNCE)
    return stored


@router.patch("/{feed_id}")
async def update_feed(
    feed_id: str,
    data: FeedPatch,
    store: Annotated[FeedStore, Depends(get_feed_store)],
) -> FeedRecord:
    """
    Update feed fields.

    Raises:
        HTTPException: If the feed is not registered.
    """
    result = await store.update(feed_id, data)
    if result.not_found or result.feed is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.error)
    return result.feed


@router.delete("/{feed_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_feed(
    feed_id: str,
    store: Annotated[FeedStore, Depends(get_feed_store)],
) -> None:
    """
    Remove a feed.

    Raises:
        HTTPException: If the feed is not registered.
    """
    result = await store.remove(feed_id)
    if result.not_found:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.error)
