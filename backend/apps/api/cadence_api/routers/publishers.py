"""
Publishers router.

Lists artists and labels and serves publisher detail pages.
"""

from datetime import UTC, datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status

from cadence_core import get_logger
from cadence_core.schemas import PublisherDetail
from cadence_core.services import PublisherDirectoryService

from ..dependencies import get_publisher_service

logger = get_logger(__name__)

router = APIRouter()


@router.get("/publishers")
async def list_publishers(
    publisher_service: Annotated[PublisherDirectoryService, Depends(get_publisher_service)],
) -> dict[str, Any]:
    """
    List publishers, most albums first.

    Failures return an empty list with an ``error`` field so the page
    can still render.
    """
    timestamp = datetime.now(UTC).isoformat()
    try:
        publishers = await publisher_service.list_publishers()
    except Exception as e:
        logger.exception("Failed to list publishers")
        return {
            "publishers": [],
            "totalPublishers": 0,
            "lastUpdated": timestamp,
            "error": str(e),
        }

    return {
        "publishers": [publisher.to_json_dict() for publisher in publishers],
        "totalPublishers": len(publishers),
        "lastUpdated": timestamp,
    }


@router.get("/publisher/{name}", response_model_exclude_none=True)
async def get_publisher(
    name: str,
    publisher_service: Annotated[PublisherDirectoryService, Depends(get_publisher_service)],
) -> PublisherDetail:
    """
    Get one publisher by name, id or slug.

    Raises:
        HTTPException: If no publisher matches.
    """
    detail = await publisher_service.get_publisher(name)
    if detail is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"Publisher not found: {name}"
        )
    return detail
