"""MusicBrainz provider implementing IMusicCatalogProvider and IArtistDirectoryProvider.

Uses the musicbrainzngs library to query the MusicBrainz open database for
releases and artists, and the Cover Art Archive (through the same library)
for release thumbnails.  Enforces the MusicBrainz rate limit of 1 request
per second via asyncio-based throttling; the blocking library calls run in
a worker thread so the event loop is never stalled.
"""

from __future__ import annotations

import asyncio
import re
import time
from typing import Any

import musicbrainzngs
import structlog

from src.config.settings import Settings
from src.interfaces.music_db_provider import IArtistDirectoryProvider, IMusicCatalogProvider
from src.models.catalog import (
    Album,
    ArtistMatch,
    CandidateRecord,
    CoverArt,
    ProviderSearchResult,
    ReleasePage,
    ReleaseSummary,
    Track,
)
from src.utils.concurrency import throttled_gather
from src.utils.errors import NotFoundError, UpstreamUnavailableError

logger = structlog.get_logger(logger_name=__name__)

_MBID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$")


def is_mbid(value: str) -> bool:
    """Return ``True`` if *value* looks like a MusicBrainz identifier (UUID)."""
    return bool(_MBID_RE.match(value.strip().lower()))


class MusicBrainzProvider(IMusicCatalogProvider, IArtistDirectoryProvider):
    """MusicBrainz catalog provider with built-in rate limiting.

    MusicBrainz needs no API key, but clients must identify themselves via a
    user-agent string and respect the 1 request/second rate limit.  In the
    search pipeline it is the optional secondary source: its releases carry
    no download counts, so they rank on title/creator matches alone.

    Attributes
    ----------
    _settings : Settings
        Application settings containing MusicBrainz user-agent details.
    _last_request_time : float
        Monotonic timestamp of the most recent API call, used for throttling.
    _throttle_lock : asyncio.Lock
        Serialises concurrent callers through the rate limiter.
    """

    def __init__(self, settings: Settings, min_request_interval: float = 1.0) -> None:
        self._settings = settings
        self._min_request_interval = min_request_interval
        self._last_request_time: float = 0.0
        self._throttle_lock = asyncio.Lock()

        musicbrainzngs.set_useragent(
            settings.musicbrainz_app_name,
            settings.musicbrainz_app_version,
            settings.musicbrainz_contact or None,
        )
        musicbrainzngs.set_hostname(settings.musicbrainz_host, use_https=True)
        logger.info(
            "musicbrainz_provider_initialized",
            host=settings.musicbrainz_host,
            app_name=settings.musicbrainz_app_name,
            app_version=settings.musicbrainz_app_version,
        )

    # ------------------------------------------------------------------
    # Rate-limiting helper
    # ------------------------------------------------------------------

    async def _throttle(self) -> None:
        """Enforce the MusicBrainz 1 req/sec rate limit, one caller at a time."""
        async with self._throttle_lock:
            elapsed = time.monotonic() - self._last_request_time
            if elapsed < self._min_request_interval:
                await asyncio.sleep(self._min_request_interval - elapsed)
            self._last_request_time = time.monotonic()

    async def _call(self, operation: str, func: Any, *args: Any, **kwargs: Any) -> dict:
        """Run one throttled web-service call in a worker thread."""
        await self._throttle()
        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except musicbrainzngs.WebServiceError as exc:
            status = _status_of(exc)
            logger.warning(
                "musicbrainz_request_failed",
                operation=operation,
                status=status,
                error=str(exc),
            )
            if status == 404:
                raise NotFoundError(
                    message=f"MusicBrainz has no match for {operation}",
                    provider_name=self.get_provider_name(),
                ) from exc
            raise UpstreamUnavailableError(
                message=f"MusicBrainz {operation} failed: {exc}",
                provider_name=self.get_provider_name(),
                upstream_status=status,
            ) from exc

    # ------------------------------------------------------------------
    # IMusicCatalogProvider implementation
    # ------------------------------------------------------------------

    async def search(self, query: str, start: int = 0, rows: int = 50) -> ProviderSearchResult:
        """Search MusicBrainz releases matching *query*."""
        # The web service caps search pages at 100 entries.
        response = await self._call(
            "release search",
            musicbrainzngs.search_releases,
            query=query,
            limit=min(rows, 100),
            offset=start,
        )

        candidates = [
            CandidateRecord(
                identifier=rel["id"],
                title=rel.get("title", ""),
                creator=rel.get("artist-credit-phrase"),
                year=_year_of(rel.get("date")),
                format=[m["format"] for m in rel.get("medium-list", []) if m.get("format")],
                source=self.get_provider_name(),
            )
            for rel in response.get("release-list", [])
            if rel.get("id")
        ]
        num_found = _as_int(response.get("release-count"))

        logger.debug(
            "musicbrainz_release_search",
            query=query,
            result_count=len(candidates),
            num_found=num_found,
        )
        return ProviderSearchResult(
            provider=self.get_provider_name(),
            candidates=candidates,
            num_found=num_found,
        )

    async def get_album(self, identifier: str) -> Album:
        """Fetch a release with its track listing, mapped to an Album."""
        response = await self._call(
            f"release '{identifier}'",
            musicbrainzngs.get_release_by_id,
            identifier,
            includes=["recordings", "artist-credits"],
        )
        rel = response.get("release")
        if not rel:
            raise NotFoundError(
                message=f"MusicBrainz release '{identifier}' not found",
                provider_name=self.get_provider_name(),
            )

        creator = rel.get("artist-credit-phrase")
        tracks: list[Track] = []
        for medium in rel.get("medium-list", []):
            for entry in medium.get("track-list", []):
                recording = entry.get("recording", {})
                length = entry.get("length") or recording.get("length")
                tracks.append(
                    Track(
                        identifier=entry.get("id") or recording.get("id", ""),
                        title=entry.get("title") or recording.get("title", ""),
                        creator=entry.get("artist-credit-phrase") or creator,
                        stream_url=(
                            f"https://{self._settings.musicbrainz_host}"
                            f"/recording/{recording.get('id', '')}"
                        ),
                        duration=_as_int(length) / 1000 if length else None,
                        track=len(tracks) + 1,
                        format=medium.get("format"),
                    )
                )

        cover = await self.get_cover_art(identifier)
        return Album(
            identifier=rel.get("id", identifier),
            title=rel.get("title", ""),
            creator=creator,
            year=_year_of(rel.get("date")),
            cover_url=cover.best if cover else None,
            source=self.get_provider_name(),
            tracks=tracks,
        )

    def get_provider_name(self) -> str:
        """Return the provider identifier."""
        return "musicbrainz"

    def is_available(self) -> bool:
        """MusicBrainz is always available (no API key required)."""
        return True

    # ------------------------------------------------------------------
    # IArtistDirectoryProvider implementation
    # ------------------------------------------------------------------

    async def search_artists(self, query: str, limit: int = 10) -> list[ArtistMatch]:
        """Search MusicBrainz for artists matching *query*."""
        response = await self._call(
            "artist search", musicbrainzngs.search_artists, query=query, limit=limit
        )

        results = [
            ArtistMatch(
                id=artist["id"],
                name=artist.get("name", ""),
                score=_as_int(artist.get("ext:score")),
                disambiguation=artist.get("disambiguation"),
                type=artist.get("type"),
            )
            for artist in response.get("artist-list", [])
            if artist.get("id")
        ]

        logger.debug("musicbrainz_artist_search", query=query, result_count=len(results))
        return results

    async def get_artist_releases(
        self, artist_id: str, start: int = 0, rows: int = 25
    ) -> ReleasePage:
        """List one page of *artist_id*'s releases, with cover art thumbnails.

        Releases re-issued under the same title collapse to the newest
        edition; the page is ordered newest first.
        """
        response = await self._call(
            f"browse releases for artist '{artist_id}'",
            musicbrainzngs.browse_releases,
            artist=artist_id,
            includes=["artist-credits", "release-groups", "media"],
            limit=min(rows, 100),
            offset=start,
        )

        newest: dict[str, dict] = {}
        for rel in response.get("release-list", []):
            key = rel.get("title", "").strip().lower()
            kept = newest.get(key)
            if kept is None or rel.get("date", "") > kept.get("date", ""):
                newest[key] = rel
        releases = sorted(newest.values(), key=lambda r: r.get("date", ""), reverse=True)

        covers = await throttled_gather([self.get_cover_art(rel["id"]) for rel in releases])
        docs = [
            _map_release_summary(rel, cover if isinstance(cover, CoverArt) else None)
            for rel, cover in zip(releases, covers)
        ]

        logger.debug(
            "musicbrainz_artist_releases",
            artist_id=artist_id,
            release_count=len(docs),
        )
        return ReleasePage(
            docs=docs,
            num_found=_as_int(response.get("release-count")),
            start=start,
            rows=rows,
            artist=docs[0].artist if docs else None,
        )

    # ------------------------------------------------------------------
    # Cover Art Archive
    # ------------------------------------------------------------------

    async def get_cover_art(self, release_id: str) -> CoverArt | None:
        """Return thumbnail URLs for *release_id*, or ``None`` if it has none.

        The Cover Art Archive is a separate service and is not subject to
        the MusicBrainz rate limit, so this call is not throttled.
        """
        try:
            response = await asyncio.to_thread(musicbrainzngs.get_image_list, release_id)
        except musicbrainzngs.WebServiceError as exc:
            logger.debug("cover_art_unavailable", release_id=release_id, error=str(exc))
            return None

        images = response.get("images", [])
        if not images:
            return None
        image = next((img for img in images if img.get("front")), images[0])
        thumbnails = image.get("thumbnails", {})
        return CoverArt(
            small=thumbnails.get("small") or thumbnails.get("250"),
            medium=thumbnails.get("500") or thumbnails.get("large"),
            large=thumbnails.get("1200") or image.get("image"),
        )


def _map_release_summary(rel: dict, cover: CoverArt | None) -> ReleaseSummary:
    release_group = rel.get("release-group", {})
    return ReleaseSummary(
        id=rel["id"],
        title=rel.get("title", ""),
        date=rel.get("date") or None,
        artist=rel.get("artist-credit-phrase"),
        release_type=release_group.get("primary-type") or release_group.get("type"),
        track_count=sum(_as_int(m.get("track-count")) for m in rel.get("medium-list", [])),
        cover_art=cover,
    )


def _status_of(exc: musicbrainzngs.WebServiceError) -> int | None:
    return getattr(getattr(exc, "cause", None), "code", None)


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _year_of(date_value: str | None) -> str | None:
    if date_value and len(date_value) >= 4 and date_value[:4].isdigit():
        return date_value[:4]
    return None
