"""
Cadence Worker - arq worker entry point.

Run with ``arq cadence_worker.main.WorkerSettings``.
"""

import os

from arq import cron
from arq.connections import RedisSettings

from cadence_core import get_logger, init_logging
from cadence_core.config import catalog_settings
from cadence_core.services import build_catalog_services

from .tasks.catalog import build_catalog_task, process_new_feeds_task, scheduled_build

logger = get_logger(__name__)


async def startup(ctx: dict) -> None:
    """
    Build catalog services for the worker process.

    Args:
        ctx: Worker context.
    """
    from cadence_database import DatabaseFeedRegistry, create_tables, init_database
    from cadence_rss import RSSFeedSource

    init_logging(os.getenv("CADENCE_LOG_LEVEL", "INFO"))
    session_factory = init_database(catalog_settings.database_url)
    await create_tables()

    source = RSSFeedSource(
        timeout=catalog_settings.fetch_timeout_seconds,
        user_agent=catalog_settings.user_agent,
    )
    ctx["services"] = build_catalog_services(
        catalog_settings, source, DatabaseFeedRegistry(session_factory)
    )
    logger.info("Cadence worker started")


async def shutdown(ctx: dict) -> None:
    """
    Release database connections.

    Args:
        ctx: Worker context.
    """
    from cadence_database import close_database

    await close_database()
    logger.info("Cadence worker stopped")


class WorkerSettings:
    """arq worker configuration."""

    functions = [build_catalog_task, process_new_feeds_task]
    cron_jobs = [
        cron(scheduled_build, minute=0, run_at_startup=True),
        cron(process_new_feeds_task, second=30),
    ]
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = RedisSettings.from_dsn(os.getenv("CADENCE_REDIS_URL", "redis://localhost:6379"))
    max_jobs = 1
    job_timeout = 3600
