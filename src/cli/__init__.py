# =============================================================================
# src/cli/__init__.py -- CLI Module Overview
# =============================================================================
#
# Command-line tools for OpenStream, run via `python -m src.cli.<module>`.
#
#   1. SEARCH (search.py)
#      Runs one aggregated, ranked and deduplicated search against the
#      Internet Archive (and optionally MusicBrainz) and prints the page.
#
# Architecture Notes:
#   - argparse for argument parsing (not Click/Typer).
#   - Application imports are deferred inside functions so --help stays fast.
# =============================================================================

"""CLI tools for OpenStream.

- ``python -m src.cli.search`` -- run one search and print the ranked page.
"""
