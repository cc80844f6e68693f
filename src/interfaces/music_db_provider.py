"""Abstract base classes for upstream music catalog providers.

Two contracts are defined here:

- :class:`IMusicCatalogProvider` -- full-text search returning raw
  candidates plus album lookup.  Implemented by the Internet Archive
  (primary source) and MusicBrainz (optional secondary source).
- :class:`IArtistDirectoryProvider` -- artist search and discography
  browsing.  Implemented by MusicBrainz.

Providers translate the upstream's request/response shapes into the
models of :mod:`src.models.catalog`; nothing outside ``src/providers``
knows what an upstream payload looks like.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.catalog import Album, ArtistMatch, ProviderSearchResult, ReleasePage


class IMusicCatalogProvider(ABC):
    """Contract for catalogs that can be searched and that hold albums."""

    @abstractmethod
    async def search(self, query: str, start: int = 0, rows: int = 50) -> ProviderSearchResult:
        """Search the catalog for *query*.

        Parameters
        ----------
        query:
            Free-text user query (already validated by the caller).
        start:
            Zero-based offset into the upstream result list.
        rows:
            Maximum number of candidates to return.

        Returns
        -------
        ProviderSearchResult
            Raw, unscored candidates in upstream order and the upstream's
            total hit count.

        Raises
        ------
        src.utils.errors.UpstreamUnavailableError
            On network failure or a non-2xx upstream answer.
        """

    @abstractmethod
    async def get_album(self, identifier: str) -> Album:
        """Fetch an album and its ordered, playable track list.

        Raises
        ------
        src.utils.errors.NotFoundError
            If *identifier* does not resolve, or resolves to an item with
            no playable tracks.
        src.utils.errors.UpstreamUnavailableError
            On network failure or a non-2xx upstream answer.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return the short source name, e.g. ``"archive"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured for use."""


class IArtistDirectoryProvider(ABC):
    """Contract for catalogs that can resolve artists and list their releases."""

    @abstractmethod
    async def search_artists(self, query: str, limit: int = 10) -> list[ArtistMatch]:
        """Search for artists matching *query*, best match first."""

    @abstractmethod
    async def get_artist_releases(
        self, artist_id: str, start: int = 0, rows: int = 25
    ) -> ReleasePage:
        """List releases credited to *artist_id*, one page at a time."""
