# =============================================================================
# src/cli/ingest.py -- CLI Ingest Command (document ingestion)
# =============================================================================
#
# Standalone CLI that runs local files through the ingestion engine:
# format detection, signature validation, text extraction, SHA-256 dedup,
# truncation, adaptive chunking and chunk capping.
#
# Supported subcommands:
#
#   file      -- Ingest one file and print its chunks (or JSON payload)
#   directory -- Ingest every supported file in a directory, concurrently
#   formats   -- List supported extensions and MIME types
#   stats     -- Show the active chunking budget and dedup-store size
#
# Successfully ingested files are registered in the SQLite dedup store
# (DEDUP_DB_PATH) so a second run over the same bytes reports a duplicate.
# --dry-run skips registration.
#
# Usage examples:
#   python -m src.cli.ingest file /path/to/book.fb2
#   python -m src.cli.ingest file report.pdf --json --dry-run
#   python -m src.cli.ingest directory /path/to/library --concurrency 8
#   python -m src.cli.ingest formats
#   python -m src.cli.ingest stats
# =============================================================================

"""Standalone CLI for running documents through the ingestion engine.

Usage::

    python -m src.cli.ingest file /path/to/book.fb2 [--mime TYPE] [--dry-run] [--json]

    python -m src.cli.ingest directory /path/to/library [--concurrency N]

    python -m src.cli.ingest formats

    python -m src.cli.ingest stats
"""

from __future__ import annotations

import argparse
import asyncio
import json
import mimetypes
import sys
from pathlib import Path

from src.config.loader import load_settings
from src.config.settings import Settings
from src.interfaces.dedup_store import IDedupStore
from src.models.document import DuplicateResult, ProcessedDocument, RawDocument
from src.providers.dedup.sqlite_dedup_store import SQLiteDedupStore
from src.services.ingestion.chunker import AdaptiveChunker
from src.services.ingestion.format_registry import FormatRegistry
from src.services.ingestion.ingestion_pipeline import IngestionPipeline
from src.services.ingestion.safety_guard import SafetyGuard
from src.utils.errors import DependencyUnavailableError, IngestError
from src.utils.logging import configure_logging
from src.utils.upload_validation import validate_upload

# Characters of each chunk shown in the human-readable listing.
_PREVIEW_CHARS = 80


def _build_pipeline(app_settings: Settings, dedup_store: IDedupStore | None) -> IngestionPipeline:
    """Wire the pipeline from an explicit settings snapshot."""
    return IngestionPipeline(
        registry=FormatRegistry(),
        chunker=AdaptiveChunker(),
        guard=SafetyGuard(app_settings.safety_limits()),
        dedup_store=dedup_store,
    )


def _read_upload(path: Path, app_settings: Settings, mime_type: str | None = None) -> RawDocument:
    """Apply upload limits and load *path* as a :class:`RawDocument`."""
    validate_upload(path.name, path.stat().st_size, app_settings.upload_limits())
    if mime_type is None:
        mime_type, _ = mimetypes.guess_type(path.name)
    return RawDocument(
        data=path.read_bytes(),
        filename=path.name,
        declared_mime_type=mime_type,
        path=str(path),
    )


async def _register(store: IDedupStore | None, document: ProcessedDocument, filename: str) -> None:
    if store is None:
        return
    try:
        await store.register(
            document.hash,
            filename,
            file_size=document.metadata.original_size,
            format=document.metadata.format,
            chunk_count=len(document.chunks),
        )
    except DependencyUnavailableError as exc:
        print(f"  Warning: could not record {filename} in the dedup store: {exc.message}", file=sys.stderr)


def _print_document(document: ProcessedDocument, filename: str) -> None:
    meta = document.metadata
    print(f"Ingested: {filename}")
    print(f"  Format:      {meta.format.value} ({meta.processor})")
    print(f"  Title:       {meta.title or '-'}")
    print(f"  Pages:       {meta.pages if meta.pages is not None else '-'}")
    print(f"  Characters:  {len(document.text)}{' (truncated)' if meta.truncated else ''}")
    print(f"  Chunks:      {len(document.chunks)}")
    if meta.chunks_dropped:
        print(f"  Dropped:     {meta.chunks_dropped} chunks over the per-file cap")
    print(f"  Hash:        {document.hash}")
    for warning in meta.warnings:
        print(f"  Warning:     {warning}")
    print()
    for chunk in document.chunks:
        preview = " ".join(chunk.content.split())[:_PREVIEW_CHARS]
        print(f"  [{chunk.index:>3}] {chunk.token_count:>5} tok  {preview}")


def _print_duplicate(result: DuplicateResult) -> None:
    print(f"Duplicate: {result.filename}")
    print(f"  Same content as {result.existing.filename} (hash {result.hash[:12]})")


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _handle_file(args: argparse.Namespace, app_settings: Settings) -> int:
    """Ingest a single file."""
    path = Path(args.path)
    if not path.is_file():
        print(f"Error: {path} is not a file", file=sys.stderr)
        return 1

    store = None if args.dry_run else SQLiteDedupStore(app_settings.dedup_db_path)
    pipeline = _build_pipeline(app_settings, store)

    try:
        raw = _read_upload(path, app_settings, args.mime)
        result = await pipeline.ingest(raw, app_settings.chunking_config())
    except IngestError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"Error: cannot read {path}: {exc.strerror or exc}", file=sys.stderr)
        return 1

    if isinstance(result, DuplicateResult):
        if args.json:
            print(json.dumps(result.model_dump(mode="json"), ensure_ascii=False, indent=2))
        else:
            _print_duplicate(result)
        return 0

    await _register(store, result, raw.filename)
    if args.json:
        print(json.dumps(result.to_payload(), ensure_ascii=False, indent=2))
    else:
        _print_document(result, raw.filename)
    return 0


async def _handle_directory(args: argparse.Namespace, app_settings: Settings) -> int:
    """Ingest every supported file in a directory, bounded by --concurrency."""
    directory = Path(args.path)
    if not directory.is_dir():
        print(f"Error: {directory} is not a directory", file=sys.stderr)
        return 1

    store = None if args.dry_run else SQLiteDedupStore(app_settings.dedup_db_path)
    pipeline = _build_pipeline(app_settings, store)
    registry = pipeline.registry

    candidates = sorted(p for p in directory.iterdir() if p.is_file() and registry.is_supported(p.name))
    print(f"Ingesting directory: {directory} ({len(candidates)} supported files)")

    documents: list[RawDocument] = []
    rejected = 0
    for path in candidates:
        try:
            documents.append(_read_upload(path, app_settings))
        except IngestError as exc:
            rejected += 1
            print(f"  Skipped:   {exc}")
        except OSError as exc:
            rejected += 1
            print(f"  Skipped:   [{path.name}] {exc.strerror or exc}")

    results = await pipeline.ingest_many(
        documents,
        app_settings.chunking_config(),
        concurrency=args.concurrency,
    )

    ingested = duplicates = failed = total_chunks = 0
    for raw, result in zip(documents, results):
        if isinstance(result, ProcessedDocument):
            ingested += 1
            total_chunks += len(result.chunks)
            await _register(store, result, raw.filename)
            print(f"  Ingested:  {raw.filename} ({len(result.chunks)} chunks)")
        elif isinstance(result, DuplicateResult):
            duplicates += 1
            print(f"  Duplicate: {raw.filename} (same as {result.existing.filename})")
        else:
            failed += 1
            print(f"  Failed:    {result}")

    print("\nDirectory ingestion complete:")
    print(f"  Ingested:     {ingested}")
    print(f"  Duplicates:   {duplicates}")
    print(f"  Failed:       {failed}")
    print(f"  Rejected:     {rejected}")
    print(f"  Total chunks: {total_chunks}")
    return 1 if failed else 0


def _handle_formats() -> int:
    """List supported formats."""
    registry = FormatRegistry()
    print("Supported formats")
    print("=" * 40)
    for extractor in registry.extractors:
        print(f"  {extractor.format.value:<5} {extractor.name:<14} {', '.join(extractor.extensions)}")
        for mime in extractor.mime_types:
            print(f"        {mime}")
    return 0


async def _handle_stats(app_settings: Settings) -> int:
    """Display chunking budget and dedup-store statistics."""
    info = AdaptiveChunker().describe(app_settings.chunking_config())

    print("Ingestion Settings")
    print("=" * 40)
    print(f"  Chunk size:          {info['chunk_size_tokens']} tokens (~{info['estimated_chars_per_chunk']} chars)")
    print(f"  Overlap:             {info['overlap_tokens']} tokens")
    print(f"  Preserve structure:  {info['preserve_structure']}")
    print(f"  Max chunks per file: {app_settings.max_chunks_per_file}")
    print(f"  Max text length:     {app_settings.max_text_length} characters")

    store = SQLiteDedupStore(app_settings.dedup_db_path)
    try:
        count = await store.count()
    except DependencyUnavailableError as exc:
        print(f"\n  Dedup store unavailable: {exc.message}")
        return 1
    print(f"\n  Registered documents: {count} ({app_settings.dedup_db_path})")
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the ingestion CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.ingest",
        description="Extract, deduplicate and chunk documents.",
    )
    parser.add_argument("--config", default="config/config.yaml", help="YAML configuration file")
    subparsers = parser.add_subparsers(dest="command", help="Ingestion commands")

    # -- file --
    file_parser = subparsers.add_parser("file", help="Ingest a single document")
    file_parser.add_argument("path", help="Path to the document")
    file_parser.add_argument("--mime", default=None, help="Declared MIME type (default: guessed)")
    file_parser.add_argument("--dry-run", action="store_true", dest="dry_run", help="Do not touch the dedup store")
    file_parser.add_argument("--json", action="store_true", help="Print the processed document as JSON")

    # -- directory --
    dir_parser = subparsers.add_parser("directory", help="Ingest all supported files in a directory")
    dir_parser.add_argument("path", help="Directory path")
    dir_parser.add_argument(
        "--concurrency",
        type=int,
        default=4,
        help="Documents processed at the same time (default: 4)",
    )
    dir_parser.add_argument("--dry-run", action="store_true", dest="dry_run", help="Do not touch the dedup store")

    # -- formats --
    subparsers.add_parser("formats", help="List supported formats")

    # -- stats --
    subparsers.add_parser("stats", help="Show chunking settings and dedup-store size")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ingestion tool.

    Parses the subcommand, loads layered settings (YAML < .env < env) and
    dispatches to the handler.  Exits with the handler's status code.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "formats":
        sys.exit(_handle_formats())

    try:
        app_settings = load_settings(args.config)
    except IngestError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)

    configure_logging(app_settings.log_level, json_output=app_settings.log_json)

    if args.command == "stats":
        exit_code = asyncio.run(_handle_stats(app_settings))
    elif args.command == "file":
        exit_code = asyncio.run(_handle_file(args, app_settings))
    elif args.command == "directory":
        exit_code = asyncio.run(_handle_directory(args, app_settings))
    else:
        parser.print_help()
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
