"""Duplicate collapsing for scored search candidates.

The archive often holds the same release under several items ("Abbey Road",
"Abbey Road (Remastered)", "abbey_road_2").  This module folds such
near-duplicates into groups and keeps one representative per group.

The procedure is two explicit passes:

1. the caller builds the flat, scored candidate list (see
   :class:`src.services.relevance_scorer.RelevanceScorer`);
2. :func:`group_candidates` walks that list in order and appends each
   candidate to the first existing group whose key matches its normalized
   title (:func:`src.utils.text_normalizer.titles_match`), or opens a new
   group keyed by that title.

Every candidate is compared against every group seen so far, which is
O(n^2).  That is acceptable only because the aggregator caps the input at
``max_candidates`` (150 by default); do not feed this unbounded streams.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from src.models.catalog import ScoredCandidate
from src.utils.text_normalizer import normalize_title, titles_match


@dataclass
class DuplicateGroup:
    """Candidates sharing one normalized-title equivalence class."""

    key: str
    members: list[ScoredCandidate] = field(default_factory=list)

    def representative(self) -> ScoredCandidate:
        """The strictly highest-scoring member; ties keep the earliest seen."""
        best = self.members[0]
        for member in self.members[1:]:
            if member.score > best.score:
                best = member
        return best


def group_candidates(candidates: Iterable[ScoredCandidate]) -> list[DuplicateGroup]:
    """Fold candidates into duplicate groups, preserving first-seen group order."""
    groups: list[DuplicateGroup] = []
    for candidate in candidates:
        normalized = normalize_title(candidate.title)
        for group in groups:
            if titles_match(group.key, normalized):
                group.members.append(candidate)
                break
        else:
            groups.append(DuplicateGroup(key=normalized, members=[candidate]))
    return groups


def resolve_groups(groups: Iterable[DuplicateGroup]) -> list[ScoredCandidate]:
    """Pick the representative of each group, in group order."""
    return [group.representative() for group in groups if group.members]


def deduplicate(candidates: Iterable[ScoredCandidate]) -> list[ScoredCandidate]:
    """Drop noise (score <= 0), group near-duplicates and keep one per group.

    The result never has more entries than the input and always contains
    the maximum-score member of every group.
    """
    relevant = [candidate for candidate in candidates if candidate.score > 0]
    return resolve_groups(group_candidates(relevant))
