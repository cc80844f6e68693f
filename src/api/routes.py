"""FastAPI API routes for OpenStream.

Provides REST endpoints for aggregated search, album and release detail,
artist browsing, and health checks.  Service dependencies are resolved
from ``app.state`` via FastAPI's ``Depends`` using the ``Annotated``
pattern.

# --- API ROUTE MAP ----------------------------------------------------
#
# Endpoint                              Method  Description
# ---------------------------------------------------------------------
# /search                               GET     Ranked, deduplicated search
# /track/{identifier}                   GET     Archive album + playable tracks
# /release/{release_id}                 GET     MusicBrainz release as an album
# /artists/search                       GET     MusicBrainz artist search
# /artist/{artist_id}/releases          GET     An artist's releases, newest first
# /health                               GET     Health check + provider status
#
# DEPENDENCY INJECTION PATTERN:
# Each route declares its dependencies as type-annotated params.  FastAPI
# resolves them via Depends() helpers that read from app.state (populated
# at startup in main.py's _build_all).  Validation and upstream errors are
# raised as OpenStreamError subclasses and turned into JSON bodies by
# ErrorHandlingMiddleware.
# ----------------------------------------------------------------------
"""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Query, Request

from src.api.schemas import (
    ArtistSearchResponse,
    ErrorResponse,
    HealthResponse,
    ReleasesResponse,
    SearchResponse,
)
from src.interfaces.cache_provider import ICacheProvider
from src.models.catalog import Album
from src.services.catalog_service import CatalogService
from src.services.search_aggregator import SearchAggregator
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter()

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid query or identifier"},
    404: {"model": ErrorResponse, "description": "Unknown item"},
    500: {"model": ErrorResponse, "description": "Upstream failure"},
}


# ---------------------------------------------------------------------------
# Dependency injection helpers -- resolve singletons from app.state
# ---------------------------------------------------------------------------


def _get_search_aggregator(request: Request) -> SearchAggregator:
    """Return the search aggregator from application state."""
    return request.app.state.search_aggregator


def _get_catalog_service(request: Request) -> CatalogService:
    """Return the catalog service from application state."""
    return request.app.state.catalog_service


def _get_cache(request: Request) -> ICacheProvider:
    """Return the shared cache store from application state."""
    return request.app.state.cache


AggregatorDep = Annotated[SearchAggregator, Depends(_get_search_aggregator)]
CatalogDep = Annotated[CatalogService, Depends(_get_catalog_service)]
CacheDep = Annotated[ICacheProvider, Depends(_get_cache)]


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


@router.get(
    "/search",
    response_model=SearchResponse,
    responses=_ERROR_RESPONSES,
    summary="Search the music catalogs",
)
async def search(
    aggregator: AggregatorDep,
    q: Annotated[str | None, Query(description="Free-text query")] = None,
    start: Annotated[int, Query(description="Zero-based offset")] = 0,
    rows: Annotated[int | None, Query(description="Page size")] = None,
    secondary: Annotated[bool, Query(description="Also query MusicBrainz")] = False,
) -> SearchResponse:
    """Return one ranked, deduplicated page of albums matching *q*."""
    page = await aggregator.search(q, start=start, rows=rows, include_secondary=secondary)
    return SearchResponse(response=page)


# ---------------------------------------------------------------------------
# Album and release detail
# ---------------------------------------------------------------------------


@router.get(
    "/track/{identifier}",
    response_model=Album,
    responses=_ERROR_RESPONSES,
    summary="Album detail with playable tracks",
)
async def get_track(identifier: str, catalog: CatalogDep) -> Album:
    """Return the archive item *identifier* and its ordered stream URLs."""
    return await catalog.get_album(identifier)


@router.get(
    "/release/{release_id}",
    response_model=Album,
    responses=_ERROR_RESPONSES,
    summary="MusicBrainz release detail",
)
async def get_release(release_id: str, catalog: CatalogDep) -> Album:
    return await catalog.get_release(release_id)


# ---------------------------------------------------------------------------
# Artist browsing
# ---------------------------------------------------------------------------


@router.get(
    "/artists/search",
    response_model=ArtistSearchResponse,
    responses=_ERROR_RESPONSES,
    summary="Search artists",
)
async def search_artists(
    catalog: CatalogDep,
    q: Annotated[str | None, Query(description="Artist name")] = None,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> ArtistSearchResponse:
    artists = await catalog.search_artists(q, limit=limit)
    return ArtistSearchResponse(artists=artists)


@router.get(
    "/artist/{artist_id}/releases",
    response_model=ReleasesResponse,
    responses=_ERROR_RESPONSES,
    summary="List an artist's releases",
)
async def get_artist_releases(
    artist_id: str,
    catalog: CatalogDep,
    start: int = 0,
    rows: int = 25,
) -> ReleasesResponse:
    """Return one page of releases credited to *artist_id*, newest first."""
    page = await catalog.get_artist_releases(artist_id, start=start, rows=rows)
    return ReleasesResponse(response=page)


# ---------------------------------------------------------------------------
# System endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request, cache: CacheDep) -> HealthResponse:
    """Return application health, version, and provider availability."""
    providers: dict[str, bool] = {}
    if hasattr(request.app.state, "provider_registry"):
        providers = dict(request.app.state.provider_registry)

    status = "healthy" if providers.get("archive", False) else "unhealthy"
    return HealthResponse(
        status=status,
        version=getattr(request.app.state, "app_version", "0.0.0"),
        providers=providers,
        cache_entries=len(cache) if hasattr(cache, "__len__") else 0,
        backend_url=getattr(request.app.state, "backend_url", None),
    )
