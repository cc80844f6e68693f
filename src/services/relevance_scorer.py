"""Relevance scoring for upstream search candidates.

Assigns every candidate an integer score against the user's query.  The
score drives both the final ranking and the choice of representative inside
each duplicate group, so it must be exactly reproducible: the same query and
candidate fields always give the same integer.

Signals (all additive, weights from :class:`ScoringPolicy`):

    full query inside title            +exact_match_bonus
    full query inside creator          +exact_match_bonus
    placeholder creator ("Album")      +placeholder_creator_penalty (negative)
    each token inside title            +token_match_bonus
    each token inside creator          +token_match_bonus
    downloads > 0                      +floor(ln(1 + downloads))
    year present                       +year_bonus

Comparisons are case-insensitive.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from src.config.search_policy import DEFAULT_SCORING_POLICY, ScoringPolicy
from src.models.catalog import CandidateRecord, ScoredCandidate
from src.services.query_builder import tokenize_query
from src.utils.text_normalizer import normalize_query


class RelevanceScorer:
    """Scores candidates against a query using one fixed :class:`ScoringPolicy`."""

    def __init__(self, policy: ScoringPolicy = DEFAULT_SCORING_POLICY) -> None:
        self._policy = policy

    @property
    def policy(self) -> ScoringPolicy:
        return self._policy

    def score(self, query: str, candidate: CandidateRecord) -> int:
        """Return the integer relevance score of *candidate* for *query*.

        Raises
        ------
        ValidationError
            If *query* has no usable token.
        """
        tokens = [token.lower() for token in tokenize_query(query)]
        return self._score(normalize_query(query), tokens, candidate)

    def score_all(
        self, query: str, candidates: Iterable[CandidateRecord]
    ) -> list[ScoredCandidate]:
        """Score every candidate, preserving input order."""
        tokens = [token.lower() for token in tokenize_query(query)]
        phrase = normalize_query(query)
        return [
            ScoredCandidate(
                **candidate.model_dump(), score=self._score(phrase, tokens, candidate)
            )
            for candidate in candidates
        ]

    def _score(self, phrase: str, tokens: list[str], candidate: CandidateRecord) -> int:
        policy = self._policy
        title = (candidate.title or "").lower()
        creator = (candidate.creator or "").lower()

        score = 0
        if phrase and phrase in title:
            score += policy.exact_match_bonus
        if phrase and phrase in creator:
            score += policy.exact_match_bonus
        if creator.strip() in policy.placeholder_creators:
            score += policy.placeholder_creator_penalty

        for token in tokens:
            if token in title:
                score += policy.token_match_bonus
            if token in creator:
                score += policy.token_match_bonus

        score += self._popularity(candidate.downloads)
        if candidate.year:
            score += policy.year_bonus
        return score

    def _popularity(self, downloads: int | None) -> int:
        if not self._policy.popularity_enabled or not downloads or downloads <= 0:
            return 0
        return int(math.floor(math.log1p(downloads)))
