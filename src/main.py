"""OpenStream FastAPI application entry point.

Wires together the upstream providers, the cache, the search aggregator and
the catalog service via dependency injection.  Loads configuration from
``.env`` and ``config/config.yaml`` and configures structured logging.

Also exposes ``build_services`` for CLI or scripting usage outside the web
server.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router as api_router
from src.config.loader import load_config
from src.config.search_policy import DEFAULT_DENY_LIST, policy_from_config
from src.config.settings import Settings
from src.providers.cache.memory_cache import MemoryCacheProvider
from src.providers.music_db.archive_provider import ArchiveProvider
from src.providers.music_db.musicbrainz_provider import MusicBrainzProvider
from src.services.catalog_service import CatalogService
from src.services.relevance_scorer import RelevanceScorer
from src.services.search_aggregator import SearchAggregator
from src.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)

APP_VERSION = str(config.get("app", {}).get("version", "1.0.0"))


# ---------------------------------------------------------------------------
# Component wiring
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings, app_config: dict[str, Any]) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    # -- Shared resources --
    http_client = httpx.AsyncClient(
        timeout=app_settings.http_timeout,
        follow_redirects=True,
    )
    cache = MemoryCacheProvider(
        max_size=app_settings.cache_max_size,
        ttl=app_settings.cache_ttl_search,
        namespace_ttls=app_settings.namespace_ttls(),
    )

    # -- Search policy (config.yaml may override the defaults) --
    scoring_policy, query_weights = policy_from_config(app_config)

    # -- Upstream catalogs --
    archive = ArchiveProvider(
        http_client=http_client,
        base_url=app_settings.archive_base_url,
        user_agent=app_settings.user_agent(),
        deny_list=DEFAULT_DENY_LIST,
        weights=query_weights,
    )
    musicbrainz = MusicBrainzProvider(settings=app_settings)

    # -- Services --
    search_aggregator = SearchAggregator(
        primary=archive,
        cache=cache,
        scorer=RelevanceScorer(scoring_policy),
        secondary=musicbrainz if app_settings.secondary_source_enabled else None,
        default_rows=app_settings.default_page_size,
        max_rows=app_settings.max_page_size,
        max_candidates=app_settings.max_candidates,
    )
    catalog_service = CatalogService(
        archive=archive,
        cache=cache,
        musicbrainz=musicbrainz,
        max_rows=app_settings.max_page_size,
    )

    provider_registry = {
        archive.get_provider_name(): archive.is_available(),
        musicbrainz.get_provider_name(): musicbrainz.is_available(),
    }

    return {
        "http_client": http_client,
        "cache": cache,
        "search_aggregator": search_aggregator,
        "catalog_service": catalog_service,
        "provider_registry": provider_registry,
        "app_version": APP_VERSION,
        "backend_url": app_settings.backend_url or None,
    }


def build_services(custom_settings: Settings | None = None) -> dict[str, Any]:
    """Build the component graph without starting the web server.

    Callers own the returned ``http_client`` and must ``aclose()`` it.
    """
    app_settings = custom_settings or settings
    return _build_all(app_settings, load_config(settings=app_settings))


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    components = _build_all(settings, config)

    for key, value in components.items():
        setattr(application.state, key, value)

    cache: MemoryCacheProvider = components["cache"]
    cache.start_sweeper(settings.cache_sweep_interval)

    _logger.info(
        "app_startup",
        version=APP_VERSION,
        environment=settings.app_env,
        providers=components["provider_registry"],
        secondary_source=settings.secondary_source_enabled,
    )

    yield

    # -- Shutdown: stop the sweeper, close shared httpx client --
    await cache.stop_sweeper()
    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="OpenStream API",
        version=APP_VERSION,
        description=(
            "Search the Internet Archive and MusicBrainz for albums, rank and "
            "deduplicate the results, and resolve albums to playable stream URLs."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
