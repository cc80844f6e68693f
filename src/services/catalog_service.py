"""Read-through cached lookups for album detail and artist browsing.

Each public method validates its identifier, consults one cache namespace
and only then calls the upstream provider:

    get_album            -> namespace "album"   -> ArchiveProvider
    get_release          -> namespace "album"   -> MusicBrainzProvider
    get_artist_releases  -> namespace "artist"  -> MusicBrainzProvider
    search_artists       -> namespace "artist"  -> MusicBrainzProvider

Errors from the providers propagate unchanged; only successful answers are
cached.
"""

from __future__ import annotations

import re

from src.interfaces.cache_provider import ICacheProvider
from src.interfaces.music_db_provider import IMusicCatalogProvider
from src.models.catalog import Album, ArtistMatch, ReleasePage
from src.providers.music_db.musicbrainz_provider import MusicBrainzProvider, is_mbid
from src.services.query_builder import tokenize_query
from src.utils.errors import ConfigurationError, ValidationError
from src.utils.logging import get_logger
from src.utils.text_normalizer import normalize_query

ALBUM_NAMESPACE = "album"
ARTIST_NAMESPACE = "artist"

_UNSAFE_IDENTIFIER_RE = re.compile(r"[/\\\s]")


def validate_identifier(identifier: str | None) -> str:
    """Return *identifier* if it is a usable archive item identifier.

    Raises
    ------
    ValidationError
        If it is empty or contains path separators or whitespace.
    """
    if not identifier:
        raise ValidationError("Identifier is required")
    if _UNSAFE_IDENTIFIER_RE.search(identifier) or identifier in {".", ".."}:
        raise ValidationError(f"Invalid identifier '{identifier}'")
    return identifier


def _validate_mbid(value: str | None, kind: str) -> str:
    if not value or not is_mbid(value):
        raise ValidationError(f"Invalid MusicBrainz {kind} id '{value or ''}'")
    return value.strip().lower()


class CatalogService:
    """Album and artist lookups behind the shared cache."""

    def __init__(
        self,
        archive: IMusicCatalogProvider,
        cache: ICacheProvider,
        musicbrainz: MusicBrainzProvider | None = None,
        max_rows: int = 50,
    ) -> None:
        self._archive = archive
        self._musicbrainz = musicbrainz
        self._cache = cache
        self._max_rows = max_rows
        self._logger = get_logger(__name__)

    async def get_album(self, identifier: str) -> Album:
        """Return the archive item *identifier* with its playable tracks."""
        identifier = validate_identifier(identifier)
        cache_key = f"archive:{identifier}"

        cached = await self._cache.get(ALBUM_NAMESPACE, cache_key)
        if cached is not None:
            return Album.model_validate(cached)

        album = await self._archive.get_album(identifier)
        await self._cache.set(ALBUM_NAMESPACE, cache_key, album.model_dump())
        return album

    async def get_release(self, release_id: str) -> Album:
        """Return the MusicBrainz release *release_id* in the Album shape."""
        provider = self._require_musicbrainz()
        release_id = _validate_mbid(release_id, "release")
        cache_key = f"musicbrainz:{release_id}"

        cached = await self._cache.get(ALBUM_NAMESPACE, cache_key)
        if cached is not None:
            return Album.model_validate(cached)

        album = await provider.get_album(release_id)
        await self._cache.set(ALBUM_NAMESPACE, cache_key, album.model_dump())
        return album

    async def get_artist_releases(
        self, artist_id: str, start: int = 0, rows: int = 25
    ) -> ReleasePage:
        """Return one page of *artist_id*'s releases, newest first."""
        provider = self._require_musicbrainz()
        artist_id = _validate_mbid(artist_id, "artist")
        self._validate_window(start, rows)
        cache_key = f"releases:{artist_id}|{start}|{rows}"

        cached = await self._cache.get(ARTIST_NAMESPACE, cache_key)
        if cached is not None:
            return ReleasePage.model_validate(cached)

        page = await provider.get_artist_releases(artist_id, start=start, rows=rows)
        await self._cache.set(ARTIST_NAMESPACE, cache_key, page.model_dump())
        self._logger.info(
            "artist_releases_loaded",
            artist_id=artist_id,
            start=start,
            returned=len(page.docs),
            num_found=page.num_found,
        )
        return page

    async def search_artists(self, query: str | None, limit: int = 10) -> list[ArtistMatch]:
        """Return artists matching *query*, best match first."""
        provider = self._require_musicbrainz()
        tokenize_query(query)
        cache_key = f"search:{normalize_query(query)}|{limit}"

        cached = await self._cache.get(ARTIST_NAMESPACE, cache_key)
        if cached is not None:
            return [ArtistMatch.model_validate(item) for item in cached]

        artists = await provider.search_artists(query, limit=limit)
        await self._cache.set(
            ARTIST_NAMESPACE, cache_key, [artist.model_dump() for artist in artists]
        )
        return artists

    # -- Private helpers --------------------------------------------------------

    def _require_musicbrainz(self) -> MusicBrainzProvider:
        if self._musicbrainz is None:
            raise ConfigurationError("Artist and release lookups are not configured")
        return self._musicbrainz

    def _validate_window(self, start: int, rows: int) -> None:
        if start < 0:
            raise ValidationError(f"start must be >= 0, got {start}")
        if not 1 <= rows <= self._max_rows:
            raise ValidationError(f"rows must be between 1 and {self._max_rows}, got {rows}")
