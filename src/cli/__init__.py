# =============================================================================
# src/cli/__init__.py -- CLI Module Overview
# =============================================================================
#
# Command-line access to the ingestion engine, for operators who need to
# push local files through extraction and chunking without the upload UI.
#
#   INGESTION (ingest.py)
#      Single-file and directory ingestion, supported-format listing and
#      settings / dedup-store statistics.
#
# Architecture Notes:
#   - argparse for argument parsing (not Click/Typer).
#   - The CLI builds its own pipeline from a settings snapshot; nothing in
#     the engine reads global configuration.
# =============================================================================

"""CLI tools for the document ingestion engine.

- ``python -m src.cli.ingest`` -- ingest files and directories, list
  formats, show statistics.
"""
