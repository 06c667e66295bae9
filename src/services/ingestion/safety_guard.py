"""Hard ceilings on text length and chunk count.

Every chunk turns into one embedding API call downstream, so an unbounded
chunk list is an unbounded bill and an unbounded wait.  :class:`SafetyGuard`
is the single place where the two input-side caps live:

1. **Pre-chunk truncation** -- text longer than ``max_text_length`` is cut to
   that length and a fixed, visible marker is appended.
2. **Post-chunk capping** -- a chunk list longer than ``max_chunks_per_file``
   keeps only its first chunks; the tail is discarded.

Both degrade gracefully: they log a warning and never raise.
"""

from __future__ import annotations

import structlog
from pydantic import BaseModel, ConfigDict, Field

from src.models.document import Chunk

logger = structlog.get_logger(logger_name=__name__)

TRUNCATION_MARKER = "\n\n[... текст обрезан для стабильной работы системы ...]"

DEFAULT_MAX_TEXT_LENGTH = 200_000
DEFAULT_MAX_CHUNKS_PER_FILE = 50


class SafetyLimits(BaseModel):
    """Explicit limits for one :class:`SafetyGuard`."""

    model_config = ConfigDict(frozen=True)

    max_text_length: int = Field(default=DEFAULT_MAX_TEXT_LENGTH, ge=1)
    max_chunks_per_file: int = Field(default=DEFAULT_MAX_CHUNKS_PER_FILE, ge=1)


class GuardedText(BaseModel):
    """Result of :meth:`SafetyGuard.truncate_text`."""

    model_config = ConfigDict(frozen=True)

    text: str
    truncated: bool = False
    original_length: int = 0


class SafetyGuard:
    """Applies :class:`SafetyLimits` to extracted text and chunk lists.

    Parameters
    ----------
    limits:
        The ceilings to enforce.  Defaults to 200 000 characters and
        50 chunks per file.
    marker:
        String appended to truncated text.
    """

    def __init__(self, limits: SafetyLimits | None = None, marker: str = TRUNCATION_MARKER) -> None:
        self._limits = limits or SafetyLimits()
        self._marker = marker

    @property
    def limits(self) -> SafetyLimits:
        return self._limits

    @property
    def marker(self) -> str:
        return self._marker

    def truncate_text(self, text: str) -> GuardedText:
        """Cut *text* to ``max_text_length`` characters plus the marker.

        Text at or below the ceiling is returned unchanged.
        """
        original_length = len(text)
        limit = self._limits.max_text_length
        if original_length <= limit:
            return GuardedText(text=text, truncated=False, original_length=original_length)

        logger.warning(
            "text_truncated",
            original_length=original_length,
            max_text_length=limit,
        )
        return GuardedText(
            text=text[:limit] + self._marker,
            truncated=True,
            original_length=original_length,
        )

    def cap_chunks(self, chunks: list[Chunk]) -> list[Chunk]:
        """Keep at most ``max_chunks_per_file`` chunks, in order."""
        limit = self._limits.max_chunks_per_file
        if len(chunks) <= limit:
            return chunks

        logger.warning(
            "chunks_capped",
            produced=len(chunks),
            kept=limit,
            dropped=len(chunks) - limit,
        )
        return chunks[:limit]
