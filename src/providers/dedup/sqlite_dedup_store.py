"""SQLite-backed deduplication store.

Persists one row per ingested document to a local SQLite database at
``data/dedup.db``.  Uses ``aiosqlite`` for async I/O.  The ``file_hash``
column is UNIQUE, so registration is at-most-once even when two identical
uploads race past the pipeline's duplicate check.
"""

from __future__ import annotations

import sqlite3
import uuid
from pathlib import Path

import aiosqlite
import structlog

from src.interfaces.dedup_store import IDedupStore
from src.models.document import DedupRecord, DocumentFormat
from src.utils.errors import DependencyUnavailableError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/dedup.db")

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS documents (
    id           TEXT    PRIMARY KEY,
    file_hash    TEXT    NOT NULL UNIQUE,
    filename     TEXT    NOT NULL,
    file_size    INTEGER,
    format       TEXT,
    chunk_count  INTEGER,
    created_at   TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
"""

_INSERT_SQL = """\
INSERT INTO documents (id, file_hash, filename, file_size, format, chunk_count)
VALUES (?, ?, ?, ?, ?, ?)
ON CONFLICT(file_hash) DO NOTHING;
"""

_SELECT_BY_HASH_SQL = """\
SELECT id, file_hash, filename, file_size, format, chunk_count, created_at
FROM documents
WHERE file_hash = ?;
"""


def _row_to_record(row: aiosqlite.Row) -> DedupRecord:
    return DedupRecord(
        record_id=row["id"],
        file_hash=row["file_hash"],
        filename=row["filename"],
        file_size=row["file_size"],
        format=row["format"],
        chunk_count=row["chunk_count"],
        created_at=row["created_at"],
    )


class SQLiteDedupStore(IDedupStore):
    """SQLite-backed dedup persistence.

    Every public coroutine opens its own connection, so one instance can be
    shared by concurrent ingestions.  Backend failures (unreadable file,
    locked or corrupt database) surface as
    :class:`DependencyUnavailableError`.
    """

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)
        self._initialized = False

    async def initialize(self) -> None:
        """Create the documents table if it doesn't exist."""
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(_CREATE_TABLE_SQL)
                await db.commit()
        except (sqlite3.Error, OSError) as exc:
            raise DependencyUnavailableError(
                message=f"Dedup database unavailable at {self._db_path}: {exc}"
            ) from exc
        self._initialized = True
        logger.info("dedup_db_initialized", path=str(self._db_path))

    async def find_by_hash(self, file_hash: str) -> DedupRecord | None:
        await self._ensure_initialized()
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                cursor = await db.execute(_SELECT_BY_HASH_SQL, (file_hash,))
                row = await cursor.fetchone()
        except (sqlite3.Error, OSError) as exc:
            raise DependencyUnavailableError(message=f"Dedup lookup failed: {exc}") from exc

        return _row_to_record(row) if row is not None else None

    async def register(
        self,
        file_hash: str,
        filename: str,
        file_size: int | None = None,
        format: DocumentFormat | None = None,  # noqa: A002
        chunk_count: int | None = None,
    ) -> DedupRecord:
        await self._ensure_initialized()
        fmt = DocumentFormat(format).value if format is not None else None
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                cursor = await db.execute(
                    _INSERT_SQL,
                    (str(uuid.uuid4()), file_hash, filename, file_size, fmt, chunk_count),
                )
                inserted = cursor.rowcount > 0
                await db.commit()
                cursor = await db.execute(_SELECT_BY_HASH_SQL, (file_hash,))
                row = await cursor.fetchone()
        except (sqlite3.Error, OSError) as exc:
            raise DependencyUnavailableError(message=f"Dedup registration failed: {exc}") from exc

        record = _row_to_record(row)
        if inserted:
            logger.info("document_registered", file_hash=file_hash[:12], filename=filename)
        else:
            logger.info(
                "document_already_registered",
                file_hash=file_hash[:12],
                filename=filename,
                existing_filename=record.filename,
            )
        return record

    async def count(self) -> int:
        await self._ensure_initialized()
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute("SELECT COUNT(*) FROM documents")
                row = await cursor.fetchone()
        except (sqlite3.Error, OSError) as exc:
            raise DependencyUnavailableError(message=f"Dedup count failed: {exc}") from exc
        return int(row[0]) if row else 0

    def get_provider_name(self) -> str:
        return "sqlite_dedup"

    async def _ensure_initialized(self) -> None:
        if not self._initialized:
            await self.initialize()
