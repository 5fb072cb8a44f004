"""
Cadence API - FastAPI application entry point.

This module initializes the FastAPI application and configures
middleware, routers, and lifecycle events.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from arq import create_pool
from arq.connections import RedisSettings
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cadence_core import get_logger, init_logging
from cadence_core.config import catalog_settings
from cadence_core.services import CatalogServices, build_catalog_services

from .config import settings
from .routers import albums, feeds, process, publishers

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifecycle manager.

    Builds the catalog services unless they were supplied to
    ``create_app``, and opens the task queue pool when configured.

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    from cadence_database import (
        DatabaseFeedRegistry,
        close_database,
        create_tables,
        init_database,
    )
    from cadence_rss import RSSFeedSource

    init_logging(settings.log_level)
    logger.info("Starting Cadence API", extra={"version": settings.version})

    owns_database = app.state.services is None
    if owns_database:
        session_factory = init_database(catalog_settings.database_url)
        await create_tables()
        source = RSSFeedSource(
            timeout=catalog_settings.fetch_timeout_seconds,
            user_agent=catalog_settings.user_agent,
        )
        app.state.services = build_catalog_services(
            catalog_settings, source, DatabaseFeedRegistry(session_factory)
        )

    if settings.redis_url:
        app.state.redis_pool = await create_pool(RedisSettings.from_dsn(settings.redis_url))
        logger.info("Redis pool initialized")

    yield

    if app.state.redis_pool is not None:
        await app.state.redis_pool.close()
        logger.info("Redis pool closed")
    if owns_database:
        await close_database()
    logger.info("Shutting down Cadence API")


def create_app(services: CatalogServices | None = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        services: Pre-built catalog services. When omitted they are built
            from the environment at startup.

    Returns:
        Configured application.
    """
    app = FastAPI(
        title="Cadence API",
        description="Cadence - Podcasting 2.0 music feed catalog API",
        version=settings.version,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
    )
    app.state.services = services
    app.state.redis_pool = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(albums.router, prefix="/api", tags=["Albums"])
    app.include_router(publishers.router, prefix="/api", tags=["Publishers"])
    app.include_router(feeds.router, prefix="/api/feeds", tags=["Feeds"])
    app.include_router(process.router, prefix="/api", tags=["Processing"])

    @app.get("/api/health")
    async def health_check() -> dict[str, str]:
        """
        Health check endpoint.

        Returns:
            Dictionary containing service status and version.
        """
        return {"status": "healthy", "version": settings.version}

    return app


app = create_app()
