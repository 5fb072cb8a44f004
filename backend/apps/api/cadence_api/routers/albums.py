"""
Albums router.

Serves the aggregated album catalog and single-album lookups.
"""

from datetime import UTC, datetime
from typing import Annotated, Any
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Response, status

from cadence_core.schemas import AlbumsDataSource, AlbumsResult, NotFound, PublisherMatch
from cadence_core.services import AlbumResolver, AlbumsAggregationService, AlbumsQuery

from ..dependencies import get_album_resolver, get_albums_service

router = APIRouter()

CACHE_SHORT = "public, max-age=180, s-maxage=300"
CACHE_MEDIUM = "public, max-age=300, s-maxage=600"
CACHE_STATIC = "public, max-age=3600, s-maxage=7200, stale-while-revalidate=86400"
CACHE_NONE = "no-store, no-cache, must-revalidate, max-age=0"

ERROR_SOURCE = "error-fallback"


def set_albums_cache_headers(response: Response, result: AlbumsResult) -> None:
    """Pick Cache-Control from where the albums came from."""
    if result.source == ERROR_SOURCE:
        response.headers["Cache-Control"] = CACHE_NONE
        response.headers["Pragma"] = "no-cache"
        response.headers["Expires"] = "0"
    elif result.static:
        response.headers["Cache-Control"] = CACHE_STATIC
        response.headers["CDN-Cache-Control"] = "max-age=7200"
    elif result.cached:
        response.headers["Cache-Control"] = CACHE_MEDIUM
    else:
        response.headers["Cache-Control"] = CACHE_SHORT


@router.get("/albums", response_model_exclude_none=True)
async def list_albums(
    response: Response,
    albums_service: Annotated[AlbumsAggregationService, Depends(get_albums_service)],
    source: AlbumsDataSource = AlbumsDataSource.AUTO,
    regenerate: bool = False,
    clear: bool = False,
    errors: bool = True,
) -> AlbumsResult:
    """
    Get the album catalog.

    Args:
        response: Outgoing response, for cache headers.
        albums_service: Albums aggregation service.
        source: Where to load albums from.
        regenerate: Bypass the cache.
        clear: Drop the cache before loading.
        errors: Include per-feed errors.

    Returns:
        Albums with source and cache metadata. Failures are reported in
        ``errors`` with an empty album list rather than as a 500.
    """
    result = await albums_service.fetch_albums(
        AlbumsQuery(
            source=source,
            force_regenerate=regenerate,
            clear_cache=clear,
            include_errors=errors,
        )
    )
    set_albums_cache_headers(response, result)
    return result


@router.get("/album/{album_id}")
async def get_album(
    album_id: str,
    response: Response,
    resolver: Annotated[AlbumResolver, Depends(get_album_resolver)],
) -> dict[str, Any]:
    """
    Get one album by feed id or title slug.

    Args:
        album_id: Feed id, album title or slug.
        response: Outgoing response, for cache headers.
        resolver: Album resolver.

    Returns:
        The album and how it was matched.

    Raises:
        HTTPException: 400 with a redirect if the id names a publisher,
            404 if nothing matched.
    """
    resolution = await resolver.resolve(album_id)

    if isinstance(resolution, PublisherMatch):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "This is a publisher feed, not an album",
                "publisherFeedId": resolution.feed.id,
                "publisherTitle": resolution.feed.title,
                "redirectTo": f"/publisher/{quote(resolution.redirect_slug)}",
            },
        )
    if isinstance(resolution, NotFound):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=resolution.reason or f"Album not found: {album_id}",
        )

    response.headers["Cache-Control"] = CACHE_MEDIUM
    return {
        "album": resolution.album.to_json_dict(),
        "feedId": resolution.feed.feed_id,
        "matchedBy": resolution.matched_by,
        "fromSnapshot": resolution.from_snapshot,
        "timestamp": datetime.now(UTC).isoformat(),
    }
