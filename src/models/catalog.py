"""Catalog domain models for the OpenStream search pipeline.

Defines the Pydantic v2 models that flow between the upstream providers, the
ranking pipeline and the HTTP API.  All models are frozen: a search page is
created once per request and never mutated after it is returned or cached.

Key relationships:
    - Providers translate upstream payloads into CandidateRecord objects
    - RelevanceScorer turns each CandidateRecord into a ScoredCandidate
    - SearchAggregator packs the deduplicated ScoredCandidates into a
      SearchResultPage
    - CatalogService builds Album objects (with ordered Track lists) for
      the track-detail endpoint

Field names are snake_case in Python and camelCase on the wire
(``num_found`` <-> ``numFound``, ``stream_url`` <-> ``streamUrl``), which is
the shape the browser client consumes.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.utils.text_normalizer import first_value


class _CatalogModel(BaseModel):
    """Shared config: immutable, camelCase aliases, construction by field name."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ---------------------------------------------------------------------------
# Search candidates
# ---------------------------------------------------------------------------

class CandidateRecord(_CatalogModel):
    """One raw search hit from an upstream source, before scoring.

    ``identifier`` is the stable upstream key (Archive item identifier or
    MusicBrainz release MBID).  ``title``, ``creator`` and ``year`` may
    arrive as a scalar or a list; the first element wins.
    """

    identifier: str = Field(min_length=1)
    title: str = ""
    creator: str | None = None
    year: str | None = None
    downloads: int | None = None
    format: list[str] = Field(default_factory=list)
    source: str = "archive"

    @field_validator("title", mode="before")
    @classmethod
    def _first_title(cls, value: Any) -> str:
        value = first_value(value)
        return "" if value is None else str(value)

    @field_validator("creator", "year", mode="before")
    @classmethod
    def _first_scalar(cls, value: Any) -> str | None:
        value = first_value(value)
        if value is None or value == "":
            return None
        return str(value)

    @field_validator("downloads", mode="before")
    @classmethod
    def _coerce_downloads(cls, value: Any) -> int | None:
        value = first_value(value)
        if value is None or value == "":
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    @field_validator("format", mode="before")
    @classmethod
    def _listify_format(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return [str(v) for v in value]


class ScoredCandidate(CandidateRecord):
    """A CandidateRecord with its per-query relevance score (may be negative)."""

    score: int = 0


class ProviderSearchResult(_CatalogModel):
    """One provider's raw answer to a search request."""

    provider: str
    candidates: list[CandidateRecord] = Field(default_factory=list)
    num_found: int = Field(default=0, ge=0)


class SearchResultPage(_CatalogModel):
    """Deduplicated, score-sorted page returned by the search aggregator."""

    docs: list[ScoredCandidate] = Field(default_factory=list)
    num_found: int = Field(default=0, ge=0)
    start: int = Field(default=0, ge=0)
    rows: int = Field(default=0, ge=0)


# ---------------------------------------------------------------------------
# Albums and tracks
# ---------------------------------------------------------------------------

class CoverArt(_CatalogModel):
    """Thumbnail URLs from the Cover Art Archive."""

    small: str | None = None
    medium: str | None = None
    large: str | None = None

    @property
    def best(self) -> str | None:
        return self.large or self.medium or self.small


class Track(_CatalogModel):
    """A playable track inside an album."""

    identifier: str
    title: str
    creator: str | None = None
    stream_url: str
    duration: float | None = None
    track: int | None = None
    format: str | None = None


class Album(_CatalogModel):
    """Album metadata plus its ordered track list."""

    identifier: str
    title: str
    creator: str | None = None
    year: str | None = None
    cover_url: str | None = None
    source: str = "archive"
    tracks: list[Track] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Artist browsing (MusicBrainz)
# ---------------------------------------------------------------------------

class ArtistMatch(_CatalogModel):
    """An artist returned by a MusicBrainz artist search."""

    id: str
    name: str
    score: int = 0
    disambiguation: str | None = None
    type: str | None = None


class ReleaseSummary(_CatalogModel):
    """One release in an artist's discography."""

    id: str
    title: str
    date: str | None = None
    artist: str | None = None
    release_type: str | None = None
    track_count: int = 0
    cover_art: CoverArt | None = None


class ReleasePage(_CatalogModel):
    """A page of an artist's releases."""

    docs: list[ReleaseSummary] = Field(default_factory=list)
    num_found: int = Field(default=0, ge=0)
    start: int = Field(default=0, ge=0)
    rows: int = Field(default=0, ge=0)
    artist: str | None = None
