"""Pydantic response schemas for the OpenStream API.

Defines the public contract for the REST endpoints: search, album and
release detail, artist browsing, health, and the error body.

# --- HOW SCHEMAS WORK -------------------------------------------------
#
# FastAPI uses these models for:
#
#   1. **Serialization** -- route return values are converted to JSON
#      matching the schema (via response_model=...).  Domain models use
#      camelCase aliases, so ``num_found`` leaves the server as
#      ``numFound``.
#   2. **Documentation** -- the OpenAPI docs at /docs are generated from
#      these schemas.
#
# Convention: response schemas end with "Response".  The domain models
# themselves (SearchResultPage, Album, ...) live in src/models/catalog.py
# and are wrapped here only where the wire shape nests them.
# ----------------------------------------------------------------------
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from src.models.catalog import ArtistMatch, ReleasePage, SearchResultPage


class SearchResponse(BaseModel):
    """Envelope for ``GET /search``: ``{"response": {docs, numFound, start, rows}}``."""

    response: SearchResultPage


class ArtistSearchResponse(BaseModel):
    """Artists matching a free-text query, best match first."""

    artists: list[ArtistMatch] = Field(default_factory=list)


class ReleasesResponse(BaseModel):
    """Envelope for one page of an artist's releases."""

    response: ReleasePage


class HealthResponse(BaseModel):
    """Application health check response.

    ``backend_url`` is the address browser clients should call, when configured.
    """

    status: str
    version: str
    providers: dict[str, bool]
    cache_entries: int = 0
    backend_url: str | None = None


class ErrorResponse(BaseModel):
    """Standard error response body.

    ``source`` names the upstream that failed (comma-separated when several
    did) and ``status_code`` is the HTTP status that upstream answered, when
    one is known.
    """

    error: str
    detail: str | None = None
    source: str | None = None
    status_code: int | None = None
    failures: list[dict[str, Any]] | None = None
