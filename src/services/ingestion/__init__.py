"""Document ingestion and adaptive chunking engine.

Turns uploaded files into bounded, context-preserving chunks:
**detect -> validate -> extract -> hash -> dedup -> chunk -> index**.

Pipeline stages overview:

1. **Detect / extract** (format_registry.py, extractors/) -- the
   registry picks one extractor per upload by MIME type, then extension;
   the extractor checks the file signature and returns plain text.

2. **Hash / dedup** (content_hasher.py) -- SHA-256 over the raw bytes is
   the only dedup key; known hashes short-circuit before chunking.

3. **Guard / chunk** (safety_guard.py, chunker.py) -- text is truncated
   to a hard ceiling, split by a per-format strategy, and the chunk list
   is capped.

4. **Index** (indexing_service.py) -- chunks are embedded in paced batches
   and stored in the vector store; the hash is then registered.

The IngestionPipeline class orchestrates stages 1-3; ChunkIndexer owns
stage 4.
"""

from src.services.ingestion.chunker import AdaptiveChunker, ChunkingStrategy
from src.services.ingestion.content_hasher import ContentHasher
from src.services.ingestion.format_registry import FormatRegistry
from src.services.ingestion.indexing_service import ChunkIndexer
from src.services.ingestion.ingestion_pipeline import IngestionPipeline
from src.services.ingestion.safety_guard import TRUNCATION_MARKER, SafetyGuard, SafetyLimits
from src.services.ingestion.token_estimator import TokenEstimator, estimate_tokens

__all__ = [
    "TRUNCATION_MARKER",
    "AdaptiveChunker",
    "ChunkIndexer",
    "ChunkingStrategy",
    "ContentHasher",
    "FormatRegistry",
    "IngestionPipeline",
    "SafetyGuard",
    "SafetyLimits",
    "TokenEstimator",
    "estimate_tokens",
]
