"""Embedding and vector-store hand-off for processed documents.

:class:`ChunkIndexer` takes the ordered, already-capped chunk list of a
:class:`~src.models.document.ProcessedDocument` and:

1. embeds chunk texts in fixed-size batches, sleeping between batches to
   stay under the embedding provider's rate limits;
2. checks that every batch came back with one vector per text;
3. stores ``(uuid, vector, payload)`` records in the vector store;
4. registers the content hash in the dedup store so later uploads of the
   same bytes short-circuit as duplicates.

If any batch fails, vectors already stored for the document are removed
before :class:`~src.utils.errors.IndexingError` is raised, so a retry starts
from a clean slate.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from typing import Any

import structlog

from src.interfaces.dedup_store import IDedupStore
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.models.document import IndexingResult, ProcessedDocument, VectorRecord
from src.utils.errors import DependencyUnavailableError, IndexingError

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_BATCH_SIZE = 5
DEFAULT_BATCH_DELAY_SECONDS = 0.5


class ChunkIndexer:
    """Embeds and stores the chunks of processed documents.

    Parameters
    ----------
    embedding_provider:
        Turns chunk text into vectors.
    vector_store:
        Receives one record per chunk.
    dedup_store:
        Optional; when given, each indexed document is registered by hash.
    batch_size:
        Number of chunk texts per embedding call.
    batch_delay_seconds:
        Pause between consecutive embedding calls.
    """

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        vector_store: IVectorStoreProvider,
        dedup_store: IDedupStore | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay_seconds: float = DEFAULT_BATCH_DELAY_SECONDS,
    ) -> None:
        if batch_size < 1:
            msg = f"batch_size must be at least 1, got {batch_size}"
            raise ValueError(msg)
        self._embedding = embedding_provider
        self._vector_store = vector_store
        self._dedup_store = dedup_store
        self._batch_size = batch_size
        self._batch_delay = max(0.0, batch_delay_seconds)

    async def index(self, processed: ProcessedDocument, filename: str) -> IndexingResult:
        """Embed and store every chunk of *processed*.

        Raises
        ------
        IndexingError
            The embedding provider or vector store failed, or returned a
            vector count that does not match the batch.
        """
        started = time.monotonic()
        log = logger.bind(filename=filename, file_hash=processed.hash[:12])
        chunks = processed.chunks
        vector_ids: list[str] = []

        try:
            for start in range(0, len(chunks), self._batch_size):
                if start > 0 and self._batch_delay:
                    await asyncio.sleep(self._batch_delay)

                batch = chunks[start : start + self._batch_size]
                texts = [chunk.content for chunk in batch]
                vectors = await self._embedding.embed(texts)
                if len(vectors) != len(texts):
                    raise IndexingError(
                        message=(
                            f"{self._embedding.get_provider_name()} returned {len(vectors)} "
                            f"vectors for {len(texts)} chunks"
                        ),
                        filename=filename,
                    )

                records = [
                    VectorRecord(
                        id=str(uuid.uuid4()),
                        vector=vector,
                        payload=self._payload(processed, chunk.content, chunk.index, filename),
                    )
                    for chunk, vector in zip(batch, vectors)
                ]
                await self._vector_store.add(records)
                vector_ids.extend(record.id for record in records)
                log.debug("batch_indexed", batch_start=start, batch_size=len(batch))
        except Exception as exc:
            await self._rollback(processed.hash, log)
            if isinstance(exc, IndexingError):
                raise
            raise IndexingError(
                message=f"Indexing failed after {len(vector_ids)} of {len(chunks)} chunks: {exc}",
                filename=filename,
            ) from exc

        await self._register(processed, filename, log)

        elapsed = round(time.monotonic() - started, 3)
        log.info("document_indexed", chunks=len(vector_ids), elapsed_seconds=elapsed)
        return IndexingResult(
            file_hash=processed.hash,
            filename=filename,
            chunks_indexed=len(vector_ids),
            vector_ids=vector_ids,
            elapsed_seconds=elapsed,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _payload(
        processed: ProcessedDocument,
        content: str,
        chunk_index: int,
        filename: str,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "content": content,
            "chunk_index": chunk_index,
            "file_hash": processed.hash,
            "format": processed.metadata.format.value,
            "processor": processed.metadata.processor,
            "filename": filename,
        }
        if processed.metadata.title:
            payload["title"] = processed.metadata.title
        return payload

    async def _rollback(self, file_hash: str, log: Any) -> None:
        try:
            removed = await self._vector_store.delete_by_hash(file_hash)
        except Exception as exc:  # noqa: BLE001
            log.error("index_rollback_failed", error=str(exc))
            return
        log.warning("index_rolled_back", removed=removed)

    async def _register(self, processed: ProcessedDocument, filename: str, log: Any) -> None:
        if self._dedup_store is None:
            return
        try:
            await self._dedup_store.register(
                processed.hash,
                filename,
                file_size=processed.metadata.original_size,
                format=processed.metadata.format,
                chunk_count=len(processed.chunks),
            )
        except DependencyUnavailableError as exc:
            log.warning("dedup_register_failed", degraded=True, error=exc.message)
