"""
Catalog processing router.

Triggers a catalog build inline or through the task queue.
"""

from datetime import UTC, datetime, timedelta
from typing import Annotated, Any

from arq.connections import ArqRedis
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse

from cadence_core.services import BuildInProgressError, CatalogBuilder

from ..dependencies import get_catalog_builder, get_redis_pool

router = APIRouter()

BUILD_TASK_NAME = "build_catalog_task"
NEW_FEEDS_TASK_NAME = "process_new_feeds_task"

# Registrations within this window are picked up by one build.
NEW_FEEDS_DEBOUNCE = timedelta(seconds=2)


@router.get("/process-feeds")
async def build_status(
    builder: Annotated[CatalogBuilder, Depends(get_catalog_builder)],
) -> dict[str, Any]:
    """Report whether a catalog build is running."""
    return {"running": builder.is_running, "timestamp": datetime.now(UTC).isoformat()}


@router.post("/process-feeds", response_model=None)
async def process_feeds(
    builder: Annotated[CatalogBuilder, Depends(get_catalog_builder)],
    redis_pool: Annotated[ArqRedis | None, Depends(get_redis_pool)],
    queue: bool = False,
) -> dict[str, Any] | JSONResponse:
    """
    Rebuild the catalog.

    Args:
        builder: Catalog builder.
        redis_pool: Task queue pool, if configured.
        queue: Enqueue the build for the worker instead of running it here.

    Returns:
        Build summary, or the queued job id.

    Raises:
        HTTPException: 409 if a build is already running, 503 if queueing
            was requested without a task queue.
    """
    timestamp = datetime.now(UTC).isoformat()

    if queue:
        if redis_pool is None:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Task queue not configured",
            )
        job = await redis_pool.enqueue_job(BUILD_TASK_NAME)
        return {
            "success": True,
            "queued": True,
            "jobId": job.job_id if job else None,
            "timestamp": timestamp,
        }

    try:
        report = await builder.build()
    except BuildInProgressError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    if not report.success:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": report.error, "timestamp": timestamp},
        )

    return {
        "success": True,
        "message": "Feeds processed successfully",
        "albumCount": report.album_count,
        "errorCount": len(report.errors),
        "discovered": len(report.discovery.discovered) if report.discovery else 0,
        "reclassified": len(report.reclassification.changed) if report.reclassification else 0,
        "snapshotWritten": report.snapshot_written,
        "timestamp": timestamp,
    }
