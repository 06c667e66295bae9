# =============================================================================
# src/cli/__main__.py -- Package Entry Point
# =============================================================================
#
# This file enables running the CLI package itself as a module:
#     python -m src.cli
#
# It delegates to the ingestion CLI (ingest.py), the only CLI tool.
# =============================================================================

"""Allow ``python -m src.cli`` execution."""

from src.cli.ingest import main

main()
