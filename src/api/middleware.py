"""API middleware -- CORS, request logging, and error handling.

Provides helper functions and middleware classes to configure cross-origin
resource sharing, structured request logging (via structlog), and automatic
conversion of ``OpenStreamError`` subclasses into JSON ``ErrorResponse``
bodies.

# --- MIDDLEWARE EXECUTION ORDER ---------------------------------------
#
# Starlette middleware is a stack (LIFO -- last added, first executed):
#
#   In main.py:
#     app.add_middleware(ErrorHandlingMiddleware)   # added 1st -> inner
#     app.add_middleware(RequestLoggingMiddleware)  # added 2nd -> outermost
#
#   Request flow:
#     Client -> RequestLogging -> ErrorHandling -> route handler
#   Response flow:
#     Client <- RequestLogging <- ErrorHandling <- route handler
#
# So RequestLoggingMiddleware sees the *final* response status code
# (after ErrorHandling replaced an exception with a JSON error).
# ----------------------------------------------------------------------
"""

from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from src.api.schemas import ErrorResponse
from src.utils.errors import AggregationFailureError, OpenStreamError, UpstreamUnavailableError
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware to the FastAPI application.

    The browser client is served from a different origin than this
    backend, so every route must answer CORS preflights.

    Parameters
    ----------
    app:
        The FastAPI application instance.
    allowed_origins:
        Explicit list of allowed origins.  Defaults to ``["*"]`` for
        development; override with specific origins in production.
    """
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=False,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
    )


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            status_code = response.status_code if response else 500
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=status_code,
                duration_ms=duration_ms,
            )


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


def error_body(exc: OpenStreamError) -> ErrorResponse:
    """Build the client-facing error body for *exc*."""
    upstream_status = (
        exc.upstream_status if isinstance(exc, UpstreamUnavailableError) else None
    )
    failures = None
    if isinstance(exc, AggregationFailureError):
        failures = [
            {
                "source": failure.source,
                "detail": failure.message,
                "status_code": failure.upstream_status,
            }
            for failure in exc.failures
        ]
    return ErrorResponse(
        error=type(exc).__name__,
        detail=exc.message,
        source=exc.provider_name,
        status_code=upstream_status,
        failures=failures,
    )


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Catch ``OpenStreamError`` subclasses and return structured JSON errors.

    Each error class carries its HTTP status (400 validation, 404 not
    found, 500 upstream/aggregation failure).  Stack traces are logged
    server-side only and never leaked to the client.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except OpenStreamError as exc:
            log = _logger.warning if exc.status_code < 500 else _logger.error
            log(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                path=str(request.url.path),
            )
            return JSONResponse(
                status_code=exc.status_code,
                content=error_body(exc).model_dump(),
            )
