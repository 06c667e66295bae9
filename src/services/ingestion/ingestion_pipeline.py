"""Per-document ingestion state machine.

:class:`IngestionPipeline` turns one :class:`~src.models.document.RawDocument`
into either a :class:`~src.models.document.ProcessedDocument` (new content,
chunked and capped) or a :class:`~src.models.document.DuplicateResult`
(bytes already ingested; chunking skipped)::

    RECEIVED -> VALIDATED -> EXTRACTED -> HASHED -> DUPLICATE
                                                -> CHUNKED -> READY

Any failure moves the document to ERROR and raises an
:class:`~src.utils.errors.IngestError` carrying the filename and the state
it failed in.  Nothing is retried: extraction results are deterministic for
the same bytes.

The dedup store is the only collaborator with side effects.  When it is
unreachable the pipeline logs the degradation and continues as if no
duplicate existed.  The check is not atomic with the later registration
(done by the indexing service), so two concurrent uploads of the same bytes
may both be chunked; the store's unique hash keeps registration single.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import structlog

from src.interfaces.dedup_store import IDedupStore
from src.models.document import (
    ChunkingConfig,
    DocumentMetadata,
    DuplicateResult,
    ExtractedText,
    IngestionState,
    ProcessedDocument,
    RawDocument,
)
from src.services.ingestion.chunker import AdaptiveChunker
from src.services.ingestion.content_hasher import ContentHasher
from src.services.ingestion.format_registry import FormatRegistry
from src.services.ingestion.metadata_extractor import resolve_pages, resolve_title
from src.services.ingestion.safety_guard import SafetyGuard
from src.utils.concurrency import throttled_gather
from src.utils.errors import (
    CorruptFileError,
    DependencyUnavailableError,
    IngestError,
    UnsupportedFormatError,
)

logger = structlog.get_logger(logger_name=__name__)

IngestResult = ProcessedDocument | DuplicateResult


class IngestionPipeline:
    """Orchestrates detect -> validate -> extract -> hash -> dedup -> chunk.

    Parameters
    ----------
    registry:
        Format registry used to pick the extractor.
    chunker:
        Splits guarded text into chunks.
    guard:
        Text-length and chunk-count ceilings.
    hasher:
        Content hasher for the dedup key.
    dedup_store:
        Optional "find by hash" collaborator.  Without one, every document
        is treated as new.
    """

    def __init__(
        self,
        registry: FormatRegistry | None = None,
        chunker: AdaptiveChunker | None = None,
        guard: SafetyGuard | None = None,
        hasher: ContentHasher | None = None,
        dedup_store: IDedupStore | None = None,
    ) -> None:
        self._registry = registry or FormatRegistry()
        self._chunker = chunker or AdaptiveChunker()
        self._guard = guard or SafetyGuard()
        self._hasher = hasher or ContentHasher()
        self._dedup_store = dedup_store

    @property
    def registry(self) -> FormatRegistry:
        return self._registry

    @property
    def chunker(self) -> AdaptiveChunker:
        return self._chunker

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def ingest(self, raw: RawDocument, config: ChunkingConfig | None = None) -> IngestResult:
        """Run one document through the pipeline.

        Parameters
        ----------
        raw:
            The uploaded bytes with their filename and declared MIME type.
        config:
            Chunking budget snapshot; defaults to :class:`ChunkingConfig()`.

        Returns
        -------
        ProcessedDocument | DuplicateResult
            ``DuplicateResult`` when the content hash is already known.

        Raises
        ------
        UnsupportedFormatError
            No extractor resolves the file.
        CorruptFileError
            The resolved extractor rejects the file signature.
        ExtractionFailedError, EmptyExtractionError
            The parser failed, or produced no text.
        """
        config = config or ChunkingConfig()
        log = logger.bind(filename=raw.filename)
        state = IngestionState.RECEIVED
        log.info("ingestion_started", state=state.value, size=raw.size, mime_type=raw.declared_mime_type)

        try:
            extractor = self._registry.resolve(raw.filename, raw.declared_mime_type)
            if extractor is None:
                raise UnsupportedFormatError(
                    message=f"No extractor for {raw.filename!r} ({raw.declared_mime_type or 'no MIME type'})"
                )
            if not extractor.validate(raw.data):
                raise CorruptFileError(
                    message=f"File does not carry a valid {extractor.format.value.upper()} signature"
                )
            state = IngestionState.VALIDATED
            log.debug("ingestion_state", state=state.value, processor=extractor.name)

            extracted = await asyncio.to_thread(extractor.extract, raw.data, raw.filename, raw.path)
            state = IngestionState.EXTRACTED
            log.debug("ingestion_state", state=state.value, characters=len(extracted.text))

            file_hash = self._hasher.hash(raw.data)
            state = IngestionState.HASHED
            log.debug("ingestion_state", state=state.value, file_hash=file_hash[:12])

            duplicate = await self._find_duplicate(file_hash, raw.filename, log)
            if duplicate is not None:
                state = IngestionState.DUPLICATE
                log.info(
                    "ingestion_duplicate",
                    state=state.value,
                    file_hash=file_hash[:12],
                    existing_filename=duplicate.existing.filename,
                )
                return duplicate

            document = await asyncio.to_thread(self._process, raw, extracted, file_hash, config)
            state = IngestionState.CHUNKED
            log.debug("ingestion_state", state=state.value, chunks=len(document.chunks))
        except IngestError as exc:
            log.warning("ingestion_failed", state=IngestionState.ERROR.value, failed_in=state.value, error=exc.message)
            raise exc.with_context(filename=raw.filename, stage=state.value) from exc

        state = IngestionState.READY
        log.info(
            "ingestion_complete",
            state=state.value,
            format=document.metadata.format.value,
            chunks=len(document.chunks),
            truncated=document.metadata.truncated,
            chunks_dropped=document.metadata.chunks_dropped,
        )
        return document

    async def ingest_many(
        self,
        documents: Sequence[RawDocument],
        config: ChunkingConfig | None = None,
        concurrency: int = 4,
    ) -> list[IngestResult | BaseException]:
        """Ingest *documents* concurrently, at most *concurrency* at a time.

        Failures are returned in place of results, in input order.
        """
        semaphore = asyncio.Semaphore(max(1, concurrency))
        return await throttled_gather(
            [self.ingest(doc, config) for doc in documents],
            semaphore=semaphore,
            return_exceptions=True,
        )

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def _find_duplicate(
        self,
        file_hash: str,
        filename: str,
        log: structlog.stdlib.BoundLogger,
    ) -> DuplicateResult | None:
        if self._dedup_store is None:
            return None
        try:
            existing = await self._dedup_store.find_by_hash(file_hash)
        except DependencyUnavailableError as exc:
            log.warning(
                "dedup_store_unavailable",
                degraded=True,
                store=self._dedup_store.get_provider_name(),
                error=exc.message,
            )
            return None
        if existing is None:
            return None
        return DuplicateResult(hash=file_hash, filename=filename, existing=existing)

    def _process(
        self,
        raw: RawDocument,
        extracted: ExtractedText,
        file_hash: str,
        config: ChunkingConfig,
    ) -> ProcessedDocument:
        """Truncate, chunk and cap (synchronous, CPU-bound)."""
        guarded = self._guard.truncate_text(extracted.text)
        chunks = self._chunker.chunk(guarded.text, extracted.format, config)
        capped = self._guard.cap_chunks(chunks)

        metadata = DocumentMetadata(
            format=extracted.format,
            processor=extracted.extractor_name,
            title=resolve_title(extracted),
            pages=resolve_pages(extracted),
            original_size=raw.size,
            truncated=guarded.truncated,
            chunks_dropped=len(chunks) - len(capped),
            warnings=list(extracted.warnings),
        )
        return ProcessedDocument(text=guarded.text, chunks=capped, hash=file_hash, metadata=metadata)
