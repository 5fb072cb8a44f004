"""Tests for FastAPI app factory isolation behavior."""

from cadence_api.main import create_app
from cadence_core.services import CatalogServices


def test_create_app_binds_supplied_services(catalog_services: CatalogServices) -> None:
    """Factory should attach the given services and no task queue."""
    app = create_app(catalog_services)

    assert app.state.services is catalog_services
    assert app.state.redis_pool is None


def test_create_app_builds_independent_apps(catalog_services: CatalogServices) -> None:
    """Factory should return apps that do not share state."""
    app_one = create_app(catalog_services)
    app_two = create_app()

    assert app_one is not app_two
    assert app_two.state.services is None


def test_routes_mounted_under_api() -> None:
    """All catalog routes should live under /api."""
    paths = set(create_app().openapi()["paths"])

    assert {
        "/api/albums",
        "/api/album/{album_id}",
        "/api/publishers",
        "/api/publisher/{name}",
        "/api/feeds",
        "/api/feeds/{feed_id}",
        "/api/process-feeds",
        "/api/health",
    } <= paths
