"""OpenStream domain models -- re-exports all public model classes.

Other parts of the codebase can import directly from ``src.models``
(e.g. ``from src.models import SearchResultPage``) instead of reaching into
``src.models.catalog``.
"""

from __future__ import annotations

from src.models.catalog import (
    Album,
    ArtistMatch,
    CandidateRecord,
    CoverArt,
    ProviderSearchResult,
    ReleasePage,
    ReleaseSummary,
    ScoredCandidate,
    SearchResultPage,
    Track,
)

__all__ = [
    "Album",
    "ArtistMatch",
    "CandidateRecord",
    "CoverArt",
    "ProviderSearchResult",
    "ReleasePage",
    "ReleaseSummary",
    "ScoredCandidate",
    "SearchResultPage",
    "Track",
]
