"""Archive query construction from free-text user input.

Turns a query such as ``"grateful dead"`` into the Lucene-style boolean
expression accepted by the Internet Archive ``advancedsearch.php`` endpoint:

    (creator:"grateful dead"^10 OR title:"grateful dead"^10
     OR (creator:"grateful" AND creator:"dead")^5
     OR (title:"grateful" AND title:"dead")^2)
    AND mediatype:(audio) AND format:(MP3 OR "VBR MP3" OR FLAC OR "Ogg Vorbis")
    AND NOT collection:(podcasts) AND ... AND NOT title:(karaoke) AND ...

Building is pure and deterministic: the same input, deny-list and weights
always produce the same string.  Callers validate first; a query with no
token longer than one character raises ``ValidationError``.
"""

from __future__ import annotations

import re

from src.config.search_policy import (
    ACCEPTED_FORMATS,
    DEFAULT_DENY_LIST,
    DEFAULT_QUERY_WEIGHTS,
    DenyList,
    QueryWeights,
)
from src.utils.errors import ValidationError

# Characters that would break out of a quoted phrase.
_UNSAFE_CHARS_RE = re.compile(r'["\\]')


def _sanitize(raw: str) -> str:
    return _UNSAFE_CHARS_RE.sub("", raw)


def tokenize_query(raw: str | None) -> list[str]:
    """Split *raw* on whitespace and keep tokens longer than one character.

    Raises
    ------
    ValidationError
        If *raw* is missing, blank, or has no token of length > 1.
    """
    if raw is None or not raw.strip():
        raise ValidationError("Query parameter is required")

    tokens = [token for token in _sanitize(raw).split() if len(token) > 1]
    if not tokens:
        raise ValidationError(
            f"Query '{raw.strip()}' has no search term longer than one character"
        )
    return tokens


def _format_clause() -> str:
    formats = [f'"{fmt}"' if " " in fmt else fmt for fmt in ACCEPTED_FORMATS]
    return f"format:({' OR '.join(formats)})"


def build_archive_query(
    raw: str,
    deny_list: DenyList = DEFAULT_DENY_LIST,
    weights: QueryWeights = DEFAULT_QUERY_WEIGHTS,
) -> str:
    """Build the field-weighted archive query for *raw*.

    Parameters
    ----------
    raw:
        Free-text user query; extra whitespace is ignored.
    deny_list:
        Collections and title terms to exclude with ``NOT`` filters.
    weights:
        Boosts for the phrase, creator-token and title-token clauses.

    Returns
    -------
    str
        The query string for the archive ``q`` parameter.
    """
    tokens = tokenize_query(raw)
    phrase = " ".join(_sanitize(raw).split())

    creator_all = " AND ".join(f'creator:"{token}"' for token in tokens)
    title_all = " AND ".join(f'title:"{token}"' for token in tokens)
    relevance = " OR ".join(
        [
            f'creator:"{phrase}"^{weights.phrase}',
            f'title:"{phrase}"^{weights.phrase}',
            f"({creator_all})^{weights.creator_tokens}",
            f"({title_all})^{weights.title_tokens}",
        ]
    )

    clauses = [f"({relevance})", "mediatype:(audio)", _format_clause()]
    clauses.extend(f"NOT collection:({collection})" for collection in deny_list.collections)
    clauses.extend(f"NOT title:({term})" for term in deny_list.title_terms)
    return " AND ".join(clauses)
