"""Canonical search policy: scoring weights, query boosts and the deny-list.

# ─── PURPOSE ───────────────────────────────────────────────────────────
#
# Everything that decides *which* archive items a search returns and *how*
# they are ranked lives here as named constants, so there is exactly one
# scoring policy and one exclusion list in the codebase.  The query builder,
# the relevance scorer and the configuration loader all read from this
# module; config/config.yaml may override individual weights.
#
# All values are data.  Nothing in this module performs I/O.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.utils.errors import ValidationError


# ═════════════════════════════════════════════════════════════════════════
# 1. DENY-LIST
# ═════════════════════════════════════════════════════════════════════════
# Archive collections that hold audio but not music.
EXCLUDED_COLLECTIONS: tuple[str, ...] = (
    "podcasts",
    "audio_podcast",
    "radioprograms",
    "oldtimeradio",
    "librivoxaudio",
    "audio_bookspoetry",
)

# Title terms that mark derivative or non-original recordings.
EXCLUDED_TITLE_TERMS: tuple[str, ...] = (
    "karaoke",
    "remix",
    "cover",
    "instrumental",
)

# Encodings the browser player can stream.  Multi-word values are quoted
# in the archive query syntax.
ACCEPTED_FORMATS: tuple[str, ...] = ("MP3", "VBR MP3", "FLAC", "Ogg Vorbis")

# Creator values the archive uses when the uploader left the field blank.
PLACEHOLDER_CREATORS: frozenset[str] = frozenset({"album"})


class DenyList(BaseModel):
    """Collections and title terms excluded from every archive search."""

    model_config = ConfigDict(frozen=True)

    collections: tuple[str, ...] = EXCLUDED_COLLECTIONS
    title_terms: tuple[str, ...] = EXCLUDED_TITLE_TERMS


# ═════════════════════════════════════════════════════════════════════════
# 2. QUERY BOOSTS
# ═════════════════════════════════════════════════════════════════════════
class QueryWeights(BaseModel):
    """Boosts for the three clause families of an archive query.

    Only the ordering is a contract: whole phrase > every token in creator
    > every token in title.
    """

    model_config = ConfigDict(frozen=True)

    phrase: int = Field(default=10, ge=1)
    creator_tokens: int = Field(default=5, ge=1)
    title_tokens: int = Field(default=2, ge=1)

    @model_validator(mode="after")
    def _check_ordering(self) -> "QueryWeights":
        if not self.phrase > self.creator_tokens > self.title_tokens:
            raise ValidationError(
                "Query weights must satisfy phrase > creator_tokens > title_tokens "
                f"(got {self.phrase}, {self.creator_tokens}, {self.title_tokens})"
            )
        return self


# ═════════════════════════════════════════════════════════════════════════
# 3. RELEVANCE SCORING
# ═════════════════════════════════════════════════════════════════════════
class ScoringPolicy(BaseModel):
    """Additive signals used by :class:`src.services.relevance_scorer.RelevanceScorer`."""

    model_config = ConfigDict(frozen=True)

    exact_match_bonus: int = 10
    token_match_bonus: int = 3
    placeholder_creator_penalty: int = -5
    year_bonus: int = 2
    popularity_enabled: bool = True
    placeholder_creators: frozenset[str] = PLACEHOLDER_CREATORS


DEFAULT_DENY_LIST = DenyList()
DEFAULT_QUERY_WEIGHTS = QueryWeights()
DEFAULT_SCORING_POLICY = ScoringPolicy()


def policy_from_config(config: dict[str, Any]) -> tuple[ScoringPolicy, QueryWeights]:
    """Build the scoring policy and query weights from a loaded config dict.

    Reads the optional ``search.scoring`` and ``search.query_weights``
    sections; missing keys keep their defaults.
    """
    search = config.get("search", {}) or {}
    scoring = ScoringPolicy(**(search.get("scoring") or {}))
    weights = QueryWeights(**(search.get("query_weights") or {}))
    return scoring, weights
