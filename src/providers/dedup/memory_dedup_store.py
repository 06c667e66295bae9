"""In-memory deduplication store using cachetools.LRUCache.

Suitable for tests, dry runs and single-process batch jobs.  Nothing
survives a restart.  The cache is bounded; once ``max_size`` documents are
registered the least recently looked-up hash is forgotten.
"""

from __future__ import annotations

import asyncio
import uuid

import structlog
from cachetools import LRUCache

from src.interfaces.dedup_store import IDedupStore
from src.models.document import DedupRecord, DocumentFormat

logger = structlog.get_logger(logger_name=__name__)


class MemoryDedupStore(IDedupStore):
    """Dedup records kept in an ``LRUCache`` keyed by content hash.

    Parameters
    ----------
    max_size:
        Maximum number of remembered documents.
    """

    def __init__(self, max_size: int = 10_000) -> None:
        self._records: LRUCache[str, DedupRecord] = LRUCache(maxsize=max_size)
        self._lock = asyncio.Lock()

    async def find_by_hash(self, file_hash: str) -> DedupRecord | None:
        record = self._records.get(file_hash)
        logger.debug("dedup_lookup", file_hash=file_hash[:12], hit=record is not None)
        return record

    async def register(
        self,
        file_hash: str,
        filename: str,
        file_size: int | None = None,
        format: DocumentFormat | None = None,  # noqa: A002
        chunk_count: int | None = None,
    ) -> DedupRecord:
        async with self._lock:
            existing = self._records.get(file_hash)
            if existing is not None:
                return existing
            record = DedupRecord(
                record_id=str(uuid.uuid4()),
                file_hash=file_hash,
                filename=filename,
                file_size=file_size,
                format=format,
                chunk_count=chunk_count,
            )
            self._records[file_hash] = record
        logger.debug("document_registered", file_hash=file_hash[:12], filename=filename)
        return record

    async def count(self) -> int:
        return len(self._records)

    def get_provider_name(self) -> str:
        return "memory_dedup"
