"""Text normalization utilities for catalog titles and search queries.

This module handles three distinct normalization concerns:

1. **Title normalization** -- Lowercases, strips edition annotations
   ("(Remastered 2003)", "[Deluxe]"), punctuation, disc/volume/part and
   remix/remaster markers, and trailing ``_<digits>`` upload suffixes so
   that the same release uploaded under different catalog entries
   collapses to one comparable string.

2. **Album equivalence** -- A deliberately permissive containment rule:
   two titles are the same album when their normalized forms are equal
   or one contains the other.  "Greatest Hits" matching
   "The Greatest Hits Vol 2" is wanted; "Red" matching "Bread" is a known
   false positive that is accepted rather than tightened.

3. **Scalar-or-list fields** -- The Internet Archive returns ``title``,
   ``creator`` and ``year`` either as a string or as a list of strings;
   the first element is authoritative.
"""

from __future__ import annotations

import re
from typing import Any

# Parenthetical / bracketed annotations: "(Remastered 2003)", "[Live]".
_ANNOTATION_RE = re.compile(r"\s*[\(\[][^\)\]]*[\)\]]")

# Everything outside word characters, whitespace and hyphen.
_PUNCTUATION_RE = re.compile(r"[^\w\s-]")

# Edition markers, with or without a trailing number.  Runs after
# punctuation removal, so "Vol. 2" has already become "vol 2".
_EDITION_MARKER_RE = re.compile(
    r"\b(?:disc|cd|vol|volume|part|parte|pt|remix(?:ed)?|remaster(?:ed)?)\b\s*\d*\b",
    re.IGNORECASE,
)

# Upload version suffixes: "abbey_road_2", "live_1_3".
_TRAILING_VERSION_RE = re.compile(r"(?:_\d+)+$")

_WHITESPACE_RE = re.compile(r"\s+")

# A normalization pass can expose a new match for an earlier rule
# (e.g. stripping "disc" leaves a trailing "_2"), so passes repeat until
# nothing changes.  Each pass only removes characters, so this bound is
# never reached for real titles.
_MAX_PASSES = 8


def _normalize_once(text: str) -> str:
    text = text.lower()
    text = _ANNOTATION_RE.sub("", text)
    text = _PUNCTUATION_RE.sub("", text)
    text = _EDITION_MARKER_RE.sub("", text)
    text = _WHITESPACE_RE.sub(" ", text).strip()
    text = _TRAILING_VERSION_RE.sub("", text).strip()
    return text


def normalize_title(title: str | None) -> str:
    """Normalize a release title for duplicate detection.

    Idempotent: ``normalize_title(normalize_title(x)) == normalize_title(x)``.

    Args:
        title: Raw title as returned by an upstream catalog.  ``None`` is
            treated as an empty title.

    Returns:
        The normalized title (possibly empty).
    """
    if not title:
        return ""

    current = str(title)
    for _ in range(_MAX_PASSES):
        normalized = _normalize_once(current)
        if normalized == current:
            break
        current = normalized
    return current


def titles_match(normalized_a: str, normalized_b: str) -> bool:
    """Return ``True`` if two *already normalized* titles denote the same album.

    Equal strings, or either one a substring of the other.  An empty
    title only matches another empty title; otherwise every title with no
    surviving text would swallow the whole result page.
    """
    if not normalized_a or not normalized_b:
        return normalized_a == normalized_b
    return (
        normalized_a == normalized_b
        or normalized_a in normalized_b
        or normalized_b in normalized_a
    )


def is_same_album(title_a: str | None, title_b: str | None) -> bool:
    """Heuristic album equivalence on raw titles.

    Known source of false positives: short titles contained in longer,
    unrelated ones ("Red" / "Bread") are reported as the same album.
    """
    return titles_match(normalize_title(title_a), normalize_title(title_b))


def first_value(value: Any) -> Any:
    """Return the authoritative element of a scalar-or-list upstream field.

    Lists and tuples yield their first element (``None`` when empty);
    anything else is returned unchanged.
    """
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def normalize_query(query: str) -> str:
    """Lowercase a free-text query and collapse its internal whitespace.

    Used for cache keys so that ``"Grateful  Dead "`` and ``"grateful dead"``
    share one cached page.
    """
    return _WHITESPACE_RE.sub(" ", query).strip().lower()
