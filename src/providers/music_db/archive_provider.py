"""Internet Archive provider implementing IMusicCatalogProvider.

Uses two public, key-less endpoints of archive.org:

- ``/advancedsearch.php`` for full-text search (Solr-style JSON answer with
  ``response.docs`` and ``response.numFound``);
- ``/metadata/{identifier}`` for item metadata and the file listing from
  which playable tracks are derived.

The ``httpx.AsyncClient`` is injected for testability and shared with the
rest of the application.
"""

from __future__ import annotations

import re
from typing import Any
from urllib.parse import quote

import httpx

from src.config.search_policy import (
    ACCEPTED_FORMATS,
    DEFAULT_DENY_LIST,
    DEFAULT_QUERY_WEIGHTS,
    DenyList,
    QueryWeights,
)
from src.interfaces.music_db_provider import IMusicCatalogProvider
from src.models.catalog import Album, CandidateRecord, ProviderSearchResult, Track
from src.services.query_builder import build_archive_query
from src.utils.errors import NotFoundError, UpstreamUnavailableError
from src.utils.logging import get_logger
from src.utils.text_normalizer import first_value

_SEARCH_FIELDS = ("identifier", "title", "creator", "year", "downloads", "format")

# One encoding per album: archive items usually carry the uploaded original
# plus derivatives of the same tracks.
_FORMAT_PREFERENCE = ("VBR MP3", "MP3", "Ogg Vorbis", "FLAC")

_TRACK_NUMBER_RE = re.compile(r"^\s*(\d+)")
_EXTENSION_RE = re.compile(r"\.[^/.]+$")


class ArchiveProvider(IMusicCatalogProvider):
    """Internet Archive search and item-metadata client."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str = "https://archive.org",
        user_agent: str = "OpenStream/1.0.0",
        deny_list: DenyList = DEFAULT_DENY_LIST,
        weights: QueryWeights = DEFAULT_QUERY_WEIGHTS,
    ) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._headers = {"User-Agent": user_agent, "Accept": "application/json"}
        self._deny_list = deny_list
        self._weights = weights
        self._logger = get_logger(__name__)

    # -- IMusicCatalogProvider implementation ---------------------------------

    async def search(self, query: str, start: int = 0, rows: int = 50) -> ProviderSearchResult:
        archive_query = build_archive_query(query, self._deny_list, self._weights)
        params: list[tuple[str, str | int]] = [("q", archive_query)]
        params.extend(("fl[]", field) for field in _SEARCH_FIELDS)
        params.extend(
            [
                ("sort[]", "downloads desc"),
                ("rows", rows),
                ("start", start),
                ("output", "json"),
            ]
        )

        payload = await self._get_json(f"{self._base_url}/advancedsearch.php", params=params)
        response = payload.get("response") or {}

        candidates: list[CandidateRecord] = []
        for doc in response.get("docs") or []:
            if not doc.get("identifier"):
                continue
            candidates.append(
                CandidateRecord(
                    identifier=doc["identifier"],
                    title=doc.get("title"),
                    creator=doc.get("creator"),
                    year=doc.get("year"),
                    downloads=doc.get("downloads"),
                    format=doc.get("format"),
                    source=self.get_provider_name(),
                )
            )

        num_found = _as_int(response.get("numFound")) or 0
        self._logger.info(
            "archive_search_complete",
            query=query,
            start=start,
            rows=rows,
            returned=len(candidates),
            num_found=num_found,
        )
        return ProviderSearchResult(
            provider=self.get_provider_name(),
            candidates=candidates,
            num_found=num_found,
        )

    async def get_album(self, identifier: str) -> Album:
        payload = await self._get_json(f"{self._base_url}/metadata/{quote(identifier)}")
        metadata = payload.get("metadata") or {}
        if not metadata:
            raise NotFoundError(
                message=f"No archive item '{identifier}'",
                provider_name=self.get_provider_name(),
            )

        creator = _as_text(metadata.get("creator"))
        tracks = self._map_tracks(identifier, creator, payload.get("files") or [])
        if not tracks:
            raise NotFoundError(
                message=f"Archive item '{identifier}' has no playable files",
                provider_name=self.get_provider_name(),
            )

        self._logger.info("archive_album_loaded", identifier=identifier, tracks=len(tracks))
        return Album(
            identifier=metadata.get("identifier") or identifier,
            title=_as_text(metadata.get("title")) or identifier,
            creator=creator,
            year=_as_text(metadata.get("year")) or _year_of(metadata.get("date")),
            cover_url=f"{self._base_url}/services/img/{quote(identifier)}",
            source=self.get_provider_name(),
            tracks=tracks,
        )

    def get_provider_name(self) -> str:
        return "archive"

    def is_available(self) -> bool:
        """The archive needs no credentials."""
        return True

    # -- Private helpers --------------------------------------------------------

    async def _get_json(
        self, url: str, params: list[tuple[str, str | int]] | None = None
    ) -> dict[str, Any]:
        try:
            response = await self._http.get(url, params=params, headers=self._headers)
        except httpx.HTTPError as exc:
            self._logger.warning("archive_request_failed", url=url, error=str(exc))
            raise UpstreamUnavailableError(
                message=f"Archive request failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not response.is_success:
            self._logger.warning("archive_http_error", url=url, status=response.status_code)
            raise UpstreamUnavailableError(
                message=f"Archive answered HTTP {response.status_code}",
                provider_name=self.get_provider_name(),
                upstream_status=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamUnavailableError(
                message="Archive returned a non-JSON body",
                provider_name=self.get_provider_name(),
                upstream_status=response.status_code,
            ) from exc
        return payload if isinstance(payload, dict) else {}

    def _map_tracks(
        self, identifier: str, album_creator: str | None, files: list[dict[str, Any]]
    ) -> list[Track]:
        playable = [f for f in files if f.get("name") and f.get("format") in ACCEPTED_FORMATS]
        if not playable:
            return []

        available = {f["format"] for f in playable}
        chosen = next(fmt for fmt in _FORMAT_PREFERENCE if fmt in available)

        tracks = [
            Track(
                identifier=f"{identifier}/{f['name']}",
                title=_as_text(f.get("title")) or _EXTENSION_RE.sub("", f["name"].split("/")[-1]),
                creator=_as_text(f.get("creator")) or album_creator,
                stream_url=f"{self._base_url}/download/{quote(identifier)}/{quote(f['name'])}",
                duration=_parse_duration(f.get("length")),
                track=_parse_track_number(f.get("track")),
                format=f["format"],
            )
            for f in playable
            if f["format"] == chosen
        ]
        # Numbered tracks first, in order; unnumbered keep listing order.
        indexed = list(enumerate(tracks))
        indexed.sort(key=lambda pair: (pair[1].track is None, pair[1].track or 0, pair[0]))
        return [track for _, track in indexed]


def _as_text(value: Any) -> str | None:
    value = first_value(value)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _as_int(value: Any) -> int | None:
    try:
        return int(first_value(value))
    except (TypeError, ValueError):
        return None


def _year_of(date_value: Any) -> str | None:
    text = _as_text(date_value)
    if text and len(text) >= 4 and text[:4].isdigit():
        return text[:4]
    return None


def _parse_duration(value: Any) -> float | None:
    """Parse ``"245.3"`` or ``"4:05"`` / ``"1:02:03"`` into seconds."""
    text = _as_text(value)
    if not text:
        return None
    try:
        if ":" in text:
            seconds = 0.0
            for part in text.split(":"):
                seconds = seconds * 60 + float(part)
            return seconds
        return float(text)
    except ValueError:
        return None


def _parse_track_number(value: Any) -> int | None:
    """Parse ``"3"``, ``"03"`` or ``"3/12"`` into ``3``."""
    text = _as_text(value)
    if not text:
        return None
    match = _TRACK_NUMBER_RE.match(text)
    return int(match.group(1)) if match else None
