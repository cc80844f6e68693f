# =============================================================================
# src/cli/__main__.py -- Package Entry Point
# =============================================================================
#
# Enables running the CLI package itself as a module:
#     python -m src.cli "grateful dead"
#
# Delegates to the search CLI (search.py), the only command.
# =============================================================================

"""Allow ``python -m src.cli`` execution."""

import sys

from src.cli.search import main

sys.exit(main())
