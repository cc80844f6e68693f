# =============================================================================
# src/cli/search.py -- CLI Search Command
# =============================================================================
#
# Runs one aggregated search from the command line, bypassing the HTTP
# server.  The same SearchAggregator the API uses is built via
# src.main.build_services, so ranking, deduplication and pagination are
# identical to GET /search.
#
# Typical usage:
#   python -m src.cli.search "grateful dead"
#   python -m src.cli.search "miles davis" --rows 20 --start 20
#   python -m src.cli.search "nick drake" --secondary --json
#
# Output modes:
#   - Text (default): one ranked line per album
#   - JSON (--json): the same {"response": {...}} envelope the API returns
#
# Log output always goes to stderr so stdout carries only the results.
#
# Exit codes: 0 success (including an empty page), 1 upstream failure,
# 2 invalid query or paging arguments.
# =============================================================================

"""Standalone CLI for running one OpenStream search.

Usage::

    python -m src.cli.search "grateful dead"
    python -m src.cli.search "grateful dead" --start 10 --rows 10 --json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

from src.models.catalog import SearchResultPage
from src.utils.errors import OpenStreamError, ValidationError
from src.utils.logging import configure_logging


# ---------------------------------------------------------------------------
# Output formatting
# ---------------------------------------------------------------------------


def format_text(query: str, page: SearchResultPage) -> str:
    """Render *page* as a human-readable ranked list."""
    if not page.docs:
        return f'No results for "{query}".'

    first = page.start + 1
    last = page.start + len(page.docs)
    lines = [f'Results {first}-{last} of {page.num_found} for "{query}"', ""]
    for position, doc in enumerate(page.docs, start=first):
        creator = f" - {doc.creator}" if doc.creator else ""
        year = f" ({doc.year})" if doc.year else ""
        lines.append(
            f"{position:>3}. [{doc.score:>3}] {doc.title}{creator}{year}"
            f"  <{doc.source}:{doc.identifier}>"
        )
    return "\n".join(lines)


def format_json(page: SearchResultPage) -> str:
    """Render *page* in the API's ``{"response": ...}`` envelope."""
    return json.dumps({"response": page.model_dump(by_alias=True)}, indent=2)


# ---------------------------------------------------------------------------
# Search runner
# ---------------------------------------------------------------------------


async def _run(
    query: str,
    start: int,
    rows: int | None,
    secondary: bool,
    json_output: bool,
    log_level: str,
) -> int:
    """Build the services, run one search, print it.  Returns the exit code."""
    # Deferred import: src.main bootstraps the application (settings, config,
    # FastAPI app) and configures logging to stdout on import.
    from src.main import build_services

    configure_logging(log_level=log_level, stream=sys.stderr)

    components = build_services()
    aggregator = components["search_aggregator"]
    try:
        page = await aggregator.search(
            query, start=start, rows=rows, include_secondary=secondary
        )
    except ValidationError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 2
    except OpenStreamError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        await components["http_client"].aclose()

    print(format_json(page) if json_output else format_text(query, page))
    return 0


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the search CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.search",
        description="Search the Internet Archive (and optionally MusicBrainz) for albums.",
    )
    parser.add_argument("query", type=str, help="Free-text search query.")
    parser.add_argument(
        "--start", type=int, default=0, help="Zero-based result offset (default 0)."
    )
    parser.add_argument(
        "--rows", type=int, default=None, help="Page size (default from settings)."
    )
    parser.add_argument(
        "--secondary",
        action="store_true",
        help="Also query MusicBrainz (when enabled in settings).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Output the page as JSON instead of formatted text.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Log level for stderr output (default WARNING).",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for the search tool."""
    args = _build_parser().parse_args(argv)
    return asyncio.run(
        _run(
            args.query,
            args.start,
            args.rows,
            args.secondary,
            args.json_output,
            args.log_level,
        )
    )


if __name__ == "__main__":
    sys.exit(main())
