"""Utility modules for OpenStream.

Available utility modules (all re-exported here for convenience):

- **errors** -- Domain-specific exception hierarchy rooted at
  OpenStreamError; each class carries the HTTP status the API answers with.
- **concurrency** -- asyncio semaphore throttling for upstream fan-out,
  returning results in input order.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **text_normalizer** -- album-title normalization and the permissive
  "same album" rule used by duplicate collapsing.
"""

# -- Domain exception hierarchy --------------------------------------------
from src.utils.errors import (
    AggregationFailureError,
    ConfigurationError,
    NotFoundError,
    OpenStreamError,
    SourceFailure,
    UpstreamUnavailableError,
    ValidationError,
)

# -- Async concurrency helpers ---------------------------------------------
from src.utils.concurrency import throttled_gather

# -- Structured logging setup ----------------------------------------------
from src.utils.logging import configure_logging, get_logger

# -- Title normalization ---------------------------------------------------
from src.utils.text_normalizer import is_same_album, normalize_query, normalize_title, titles_match

__all__ = [
    "AggregationFailureError",
    "ConfigurationError",
    "NotFoundError",
    "OpenStreamError",
    "SourceFailure",
    "UpstreamUnavailableError",
    "ValidationError",
    "configure_logging",
    "get_logger",
    "is_same_album",
    "normalize_query",
    "normalize_title",
    "throttled_gather",
    "titles_match",
]
