"""
FastAPI dependencies.

Provides dependency injection for the catalog services held on app state.
"""

from typing import Annotated

from arq.connections import ArqRedis
from fastapi import Depends, Request

from cadence_core.services import (
    AlbumResolver,
    AlbumsAggregationService,
    CatalogBuilder,
    CatalogServices,
    FeedStore,
    PublisherDirectoryService,
)


def get_services(request: Request) -> CatalogServices:
    """
    Get the catalog services built at startup.

    Raises:
        RuntimeError: If the services were not initialized.
    """
    services = request.app.state.services
    if services is None:
        raise RuntimeError("Catalog services not initialized")
    return services


def get_redis_pool(request: Request) -> ArqRedis | None:
    """Get the task queue pool, or None when builds run inline."""
    return request.app.state.redis_pool


def get_feed_store(services: Annotated[CatalogServices, Depends(get_services)]) -> FeedStore:
    """Get feed registry store."""
    return services.store


def get_albums_service(
    services: Annotated[CatalogServices, Depends(get_services)],
) -> AlbumsAggregationService:
    """Get albums aggregation service."""
    return services.albums


def get_album_resolver(
    services: Annotated[CatalogServices, Depends(get_services)],
) -> AlbumResolver:
    """Get album resolver."""
    return services.resolver


def get_publisher_service(
    services: Annotated[CatalogServices, Depends(get_services)],
) -> PublisherDirectoryService:
    """Get publisher directory service."""
    return services.publishers


def get_catalog_builder(
    services: Annotated[CatalogServices, Depends(get_services)],
) -> CatalogBuilder:
    """Get catalog builder."""
    return services.builder
