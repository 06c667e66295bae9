"""Content-hash deduplication stores."""

from src.providers.dedup.memory_dedup_store import MemoryDedupStore
from src.providers.dedup.sqlite_dedup_store import SQLiteDedupStore

__all__ = ["MemoryDedupStore", "SQLiteDedupStore"]
