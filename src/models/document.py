"""Document ingestion data models.

Defines Pydantic v2 models for everything that flows through the ingestion
engine: the raw upload, extracted text, chunking configuration, chunks, and
the two terminal outcomes of :meth:`IngestionPipeline.ingest`
(:class:`ProcessedDocument` and :class:`DuplicateResult`).  All models use
frozen config so that no stage can mutate what a previous stage produced.

Lifecycle overview:

    RawDocument ──extract──> ExtractedText ──chunk──> list[Chunk]
         │                                                │
         └──────────hash──> ContentHash ──────────────────┴──> ProcessedDocument

None of these models carry a persistent identity; persistence is owned by
the dedup store and vector store, both keyed off the content hash and
``Chunk.index``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Hex-encoded SHA-256 digest of a document's raw bytes.
ContentHash = Annotated[str, Field(pattern=r"^[0-9a-f]{64}$")]


class DocumentFormat(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    """Document formats the engine can extract text from."""

    PDF = "pdf"
    TXT = "txt"
    DOCX = "docx"
    DOC = "doc"
    FB2 = "fb2"
    EPUB = "epub"


class IngestionState(str, Enum):  # noqa: UP042
    """States a document passes through inside the ingestion pipeline.

        RECEIVED → VALIDATED → EXTRACTED → HASHED → DUPLICATE (terminal)
                                                  → CHUNKED → READY (terminal)

    ERROR is reachable from any non-terminal state.
    """

    RECEIVED = "RECEIVED"
    VALIDATED = "VALIDATED"
    EXTRACTED = "EXTRACTED"
    HASHED = "HASHED"
    DUPLICATE = "DUPLICATE"
    CHUNKED = "CHUNKED"
    READY = "READY"
    ERROR = "ERROR"


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------
class RawDocument(BaseModel):
    """An uploaded document exactly as received by the caller."""

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(description="Raw file bytes.", repr=False)
    filename: str = Field(min_length=1, description="Original file name, used for extension matching.")
    declared_mime_type: str | None = Field(
        default=None,
        description="MIME type declared by the uploader (multipart Content-Type), if any.",
    )
    path: str | None = Field(
        default=None,
        description="On-disk location of the same bytes, when the caller has one.",
    )

    @property
    def size(self) -> int:
        return len(self.data)


class ChunkingConfig(BaseModel):
    """Token budget for :class:`~src.services.ingestion.chunker.AdaptiveChunker`.

    A snapshot supplied by the caller for each ingestion; the engine never
    mutates it.
    """

    model_config = ConfigDict(frozen=True)

    chunk_size_tokens: int = Field(default=1000, ge=100, le=8000)
    overlap_tokens: int = Field(default=200, ge=0, le=1000)
    preserve_structure: bool = True

    @model_validator(mode="after")
    def _overlap_below_chunk_size(self) -> ChunkingConfig:
        if self.overlap_tokens >= self.chunk_size_tokens:
            msg = (
                f"overlap_tokens ({self.overlap_tokens}) must be smaller than "
                f"chunk_size_tokens ({self.chunk_size_tokens})"
            )
            raise ValueError(msg)
        return self


# ---------------------------------------------------------------------------
# Intermediate artefacts
# ---------------------------------------------------------------------------
class ExtractedText(BaseModel):
    """Plain text produced by one extractor for one document."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(description="Extracted, trimmed plain text.")
    format: DocumentFormat
    extractor_name: str = Field(description='Class name of the extractor, e.g. "PDFExtractor".')
    title: str | None = Field(default=None, description="Title read from format metadata, if any.")
    pages: int | None = Field(default=None, ge=0, description="Page count reported by the parser.")
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-fatal problems met during extraction (e.g. unreadable EPUB chapters).",
    )


class Chunk(BaseModel):
    """A bounded, trimmed span of text intended for one embedding call."""

    model_config = ConfigDict(frozen=True)

    content: str = Field(min_length=1, description="Trimmed chunk text.")
    index: int = Field(ge=0, description="0-based position of the chunk in document order.")
    token_count: int = Field(
        default=0,
        ge=0,
        serialization_alias="tokenCount",
        description="Heuristic token estimate of ``content``.",
    )

    @field_validator("content")
    @classmethod
    def _strip_content(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("chunk content must not be blank")
        return stripped


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------
class DocumentMetadata(BaseModel):
    """Descriptive metadata attached to a :class:`ProcessedDocument`."""

    model_config = ConfigDict(frozen=True)

    format: DocumentFormat
    processor: str = Field(description="Name of the extractor that produced the text.")
    title: str | None = None
    pages: int | None = Field(default=None, ge=0)
    original_size: int = Field(default=0, ge=0, description="Size of the raw upload in bytes.")
    truncated: bool = Field(default=False, description="True when the text hit the length ceiling.")
    chunks_dropped: int = Field(
        default=0,
        ge=0,
        description="Number of chunks removed by the per-file chunk cap.",
    )
    warnings: list[str] = Field(default_factory=list)


class ProcessedDocument(BaseModel):
    """Terminal artefact handed to the embedding and vector-store collaborators."""

    model_config = ConfigDict(frozen=True)

    text: str
    chunks: list[Chunk]
    hash: ContentHash
    metadata: DocumentMetadata

    @model_validator(mode="after")
    def _indices_are_contiguous(self) -> ProcessedDocument:
        for expected, chunk in enumerate(self.chunks):
            if chunk.index != expected:
                msg = f"chunk indices must be contiguous from 0; got {chunk.index} at position {expected}"
                raise ValueError(msg)
        return self

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON-ready output shape consumed by downstream services."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class DedupRecord(BaseModel):
    """A previously ingested document, as known to the dedup store."""

    model_config = ConfigDict(frozen=True)

    record_id: str
    file_hash: ContentHash
    filename: str
    file_size: int | None = Field(default=None, ge=0)
    format: DocumentFormat | None = None
    chunk_count: int | None = Field(default=None, ge=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))


class DuplicateResult(BaseModel):
    """Successful short-circuit: the bytes were already ingested.

    Returned instead of a :class:`ProcessedDocument`; chunking never runs.
    """

    model_config = ConfigDict(frozen=True)

    hash: ContentHash
    filename: str
    existing: DedupRecord


# ---------------------------------------------------------------------------
# Indexing hand-off
# ---------------------------------------------------------------------------
class VectorRecord(BaseModel):
    """One embedded chunk as stored in the vector store."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Generated UUID for the vector point.")
    vector: list[float]
    payload: dict[str, Any] = Field(default_factory=dict)


class IndexingResult(BaseModel):
    """Summary of embedding and storing one processed document."""

    model_config = ConfigDict(frozen=True)

    file_hash: ContentHash
    filename: str
    chunks_indexed: int = Field(ge=0)
    vector_ids: list[str] = Field(default_factory=list)
    elapsed_seconds: float = Field(default=0.0, ge=0.0)
