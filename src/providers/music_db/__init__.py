"""Music catalog provider implementations.

Two concrete implementations of IMusicCatalogProvider, queried by the
search aggregator in this order:

    1. ArchiveProvider      -- Internet Archive advanced search and item
       metadata (no API key).  Primary source: carries download counts and
       playable files.
    2. MusicBrainzProvider  -- MusicBrainz open API (musicbrainzngs).
       Optional secondary source for search; also the artist directory
       (artist search, release browsing) and Cover Art Archive lookups.
       Rate limit: 1 req/sec.

Both return the same CandidateRecord/Album shapes so results can be merged.
"""

from src.providers.music_db.archive_provider import ArchiveProvider
from src.providers.music_db.musicbrainz_provider import MusicBrainzProvider

__all__ = [
    "ArchiveProvider",
    "MusicBrainzProvider",
]
