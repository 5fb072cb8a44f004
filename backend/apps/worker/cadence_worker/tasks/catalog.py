"""
Catalog build tasks.

Background tasks that rebuild the static album snapshot.
"""

from typing import Any

from cadence_core import get_logger
from cadence_core.services import BuildInProgressError, BuildReport, CatalogServices

logger = get_logger(__name__)


def summarize_report(report: BuildReport) -> dict[str, Any]:
    """Flatten a build report into a task result."""
    return {
        "status": "success" if report.success else "error",
        "albums": report.album_count,
        "errors": len(report.errors),
        "discovered": len(report.discovery.discovered) if report.discovery else 0,
        "reclassified": len(report.reclassification.changed) if report.reclassification else 0,
        "snapshot_written": report.snapshot_written,
        "mirrored_feeds": report.mirrored_feeds,
        "error": report.error,
    }


async def build_catalog_task(ctx: dict) -> dict[str, Any]:
    """
    Rebuild the catalog.

    Args:
        ctx: Worker context holding ``services``.

    Returns:
        Dictionary with build results.
    """
    services: CatalogServices = ctx["services"]
    try:
        report = await services.builder.build()
    except BuildInProgressError:
        logger.info("Catalog build already running, skipping")
        return {"status": "skipped"}

    result = summarize_report(report)
    logger.info("Catalog build task finished", extra=result)
    return result


async def scheduled_build(ctx: dict) -> dict[str, Any]:
    """
    Scheduled task to rebuild the catalog (runs hourly).

    Args:
        ctx: Worker context.

    Returns:
        Dictionary with build results.
    """
    return await build_catalog_task(ctx)


async def process_new_feeds_task(ctx: dict) -> dict[str, Any]:
    """
    Rebuild the catalog when the registry has active feeds no build has covered yet.

    Args:
        ctx: Worker context holding ``services``.

    Returns:
        Dictionary with build results, or ``unchanged`` when nothing is new.
    """
    services: CatalogServices = ctx["services"]
    try:
        report = await services.builder.build_if_changed()
    except BuildInProgressError:
        logger.info("Catalog build already running, skipping")
        return {"status": "skipped"}

    if report is None:
        return {"status": "unchanged"}

    result = summarize_report(report)
    logger.info("New feed build finished", extra=result)
    return result
