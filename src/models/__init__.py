"""Domain models for the document ingestion engine.

Re-exports every public model from :mod:`src.models.document` so callers
can write ``from src.models import Chunk``.
"""

from __future__ import annotations

from src.models.document import (
    Chunk,
    ChunkingConfig,
    ContentHash,
    DedupRecord,
    DocumentFormat,
    DocumentMetadata,
    DuplicateResult,
    ExtractedText,
    IndexingResult,
    IngestionState,
    ProcessedDocument,
    RawDocument,
    VectorRecord,
)

__all__ = [
    "Chunk",
    "ChunkingConfig",
    "ContentHash",
    "DedupRecord",
    "DocumentFormat",
    "DocumentMetadata",
    "DuplicateResult",
    "ExtractedText",
    "IndexingResult",
    "IngestionState",
    "ProcessedDocument",
    "RawDocument",
    "VectorRecord",
]
