"""OpenStream API layer -- routes, schemas, and middleware."""

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router
from src.api.schemas import (
    ArtistSearchResponse,
    ErrorResponse,
    HealthResponse,
    ReleasesResponse,
    SearchResponse,
)

__all__ = [
    "ArtistSearchResponse",
    "ErrorHandlingMiddleware",
    "ErrorResponse",
    "HealthResponse",
    "ReleasesResponse",
    "RequestLoggingMiddleware",
    "SearchResponse",
    "configure_cors",
    "router",
]
