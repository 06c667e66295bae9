"""Abstract base class for vector-store service providers.

Defines the write-side contract the chunk indexer needs: store a batch of
``(id, vector, payload)`` records.  Query and retrieval belong to the
consumers of the store, not to ingestion.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.document import VectorRecord


class IVectorStoreProvider(ABC):
    """Contract for vector-store services used by the chunk indexer.

    All mutation methods are async to support network-backed stores without
    blocking the event loop.
    """

    @abstractmethod
    async def add(self, records: list[VectorRecord]) -> int:
        """Store *records* and return how many were written.

        Each record's payload carries at least ``content``, ``chunk_index``,
        ``file_hash`` and ``format``.
        """

    @abstractmethod
    async def delete_by_hash(self, file_hash: str) -> int:
        """Remove every record whose payload ``file_hash`` equals *file_hash*.

        Returns the number of records removed.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this vector store."""
