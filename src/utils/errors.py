"""Custom exception hierarchy for OpenStream.

All application exceptions inherit from :class:`OpenStreamError`, which
carries an optional ``provider_name`` so error handlers can identify which
upstream catalog (e.g. "archive", "musicbrainz") caused the failure, and an
HTTP ``status_code`` used by the API error middleware.

The hierarchy is organized by where a request can fail:

    OpenStreamError  (base -- catch-all for any OpenStream error)
    +-- ValidationError           (bad query / identifier, rejected before I/O)
    +-- NotFoundError             (identifier resolves to nothing playable)
    +-- UpstreamUnavailableError  (network failure or non-2xx upstream answer)
    +-- AggregationFailureError   (every requested source failed)
    +-- ConfigurationError        (startup / invalid settings)

Callers retry on UpstreamUnavailableError, show a "nothing here" message on
NotFoundError, and never retry ValidationError.
"""

from __future__ import annotations

from dataclasses import dataclass


class OpenStreamError(Exception):
    """Base exception for all OpenStream errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which upstream service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[archive] HTTP 503``.
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Request validation
# ---------------------------------------------------------------------------

class ValidationError(OpenStreamError):
    """Raised for an empty/malformed query or identifier, before any I/O."""

    status_code = 400

    def __init__(
        self,
        message: str = "Invalid request",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class NotFoundError(OpenStreamError):
    """Raised when an identifier resolves to no item, or to an item with no playable files."""

    status_code = 404

    def __init__(
        self,
        message: str = "Item not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Upstream errors
# ---------------------------------------------------------------------------

class UpstreamUnavailableError(OpenStreamError):
    """Raised when an upstream catalog is unreachable or answers non-2xx.

    Retryable by the caller; never retried internally.  ``upstream_status``
    is the HTTP status the upstream returned, or ``None`` for transport
    failures (DNS, timeout, connection reset).
    """

    def __init__(
        self,
        message: str = "Upstream service is unavailable",
        provider_name: str | None = None,
        upstream_status: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._upstream_status = upstream_status

    @property
    def upstream_status(self) -> int | None:
        return self._upstream_status


@dataclass(frozen=True)
class SourceFailure:
    """One failed upstream source inside an aggregated request."""

    source: str
    message: str
    upstream_status: int | None = None


class AggregationFailureError(OpenStreamError):
    """Raised when every upstream source of an aggregated search failed."""

    def __init__(
        self,
        message: str = "All upstream sources failed",
        failures: list[SourceFailure] | None = None,
    ) -> None:
        self._failures = list(failures or [])
        sources = ",".join(f.source for f in self._failures) or None
        super().__init__(message=message, provider_name=sources)

    @property
    def failures(self) -> list[SourceFailure]:
        return list(self._failures)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

class ConfigurationError(OpenStreamError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
