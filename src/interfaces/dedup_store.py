"""Abstract base class for content-hash deduplication stores.

The ingestion pipeline asks the store whether a content hash has been seen
before; the indexing service registers a hash once its chunks are stored.
Implementations that cannot reach their backend raise
:class:`~src.utils.errors.DependencyUnavailableError`, which the pipeline
treats as "no duplicate found" (degraded mode) rather than a failure.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.document import DedupRecord, DocumentFormat


# Concrete implementations:
#   SQLiteDedupStore  -- aiosqlite, UNIQUE index on the hash
#   MemoryDedupStore  -- cachetools LRU, single process only
# Located in: src/providers/dedup/
class IDedupStore(ABC):
    """Contract for the "find by hash" collaborator."""

    async def initialize(self) -> None:
        """Prepare the backend (create tables, open files).  Optional."""

    @abstractmethod
    async def find_by_hash(self, file_hash: str) -> DedupRecord | None:
        """Return the record registered under *file_hash*, if any.

        Raises
        ------
        src.utils.errors.DependencyUnavailableError
            If the backend cannot be queried.
        """

    @abstractmethod
    async def register(
        self,
        file_hash: str,
        filename: str,
        file_size: int | None = None,
        format: DocumentFormat | None = None,  # noqa: A002
        chunk_count: int | None = None,
    ) -> DedupRecord:
        """Record *file_hash* as ingested and return the stored record.

        Registering a hash that already exists returns the existing record
        unchanged; the first registration wins.
        """

    @abstractmethod
    async def count(self) -> int:
        """Return the number of registered documents."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"sqlite_dedup"``."""
