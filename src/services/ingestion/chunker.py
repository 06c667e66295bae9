"""Adaptive, token-budgeted text chunking with overlapping windows.

Splits extracted text into :class:`~src.models.document.Chunk` objects sized
for one embedding call each.  The splitting strategy is picked from the
document format:

1. **Chapter-aware** (FB2, EPUB) -- books are cut at chapter markers
   ("Глава 3", "Chapter 3", a line holding only "3.") so no chunk straddles
   two chapters.  Chapters that are still too large fall through to the
   token window.

2. **Paragraph-aware** (DOCX, DOC) -- blank-line paragraphs, minus short
   noise lines, are packed greedily up to the token budget.

3. **Token window** (PDF, TXT, and the fallback for everything else) --
   text is packed sentence by sentence so every boundary sits on a sentence
   or paragraph edge.  With ``preserve_structure=False`` the window runs over
   raw whitespace-separated words instead.

Packing strategies start each new chunk with the tail of the previous one
(up to ``overlap_tokens``) so that a statement spanning a boundary is fully
present in at least one chunk.

A paragraph or sentence that alone exceeds the budget is split further
(paragraph -> sentences -> words -> halves of a word) rather than emitted
oversized.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog

from src.models.document import Chunk, ChunkingConfig, DocumentFormat
from src.services.ingestion.token_estimator import TokenEstimator

logger = structlog.get_logger(logger_name=__name__)


class ChunkingStrategy(str, Enum):  # noqa: UP042
    CHAPTER_AWARE = "chapter_aware"
    PARAGRAPH_AWARE = "paragraph_aware"
    TOKEN_WINDOW = "token_window"


_STRATEGY_BY_FORMAT: dict[DocumentFormat, ChunkingStrategy] = {
    DocumentFormat.FB2: ChunkingStrategy.CHAPTER_AWARE,
    DocumentFormat.EPUB: ChunkingStrategy.CHAPTER_AWARE,
    DocumentFormat.DOCX: ChunkingStrategy.PARAGRAPH_AWARE,
    DocumentFormat.DOC: ChunkingStrategy.PARAGRAPH_AWARE,
    DocumentFormat.PDF: ChunkingStrategy.TOKEN_WINDOW,
    DocumentFormat.TXT: ChunkingStrategy.TOKEN_WINDOW,
}

# A chapter marker must start its own line.  The bare "N." form must also
# end the line so numbered list items are not mistaken for sections.
_CHAPTER_MARKER = re.compile(
    r"^[ \t]*(?:(?:глава|chapter)[ \t]+\d+\b|\d+\.[ \t]*$)",
    re.IGNORECASE | re.MULTILINE,
)

# Above this length marker scanning is skipped; the chapters would need the
# token window anyway.
_MAX_MARKER_SCAN_CHARS = 30_000
_MIN_SEGMENT_CHARS = 100
_MIN_PARAGRAPH_CHARS = 50

# Upper bound on characters per token when weighing a unit.  Scripts the
# estimator does not count (Greek, CJK, ...) and very long Latin words
# still consume budget through this floor.
_CHARS_PER_TOKEN_FLOOR = 8

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_SENTENCE_END = re.compile(r"[.!?…]+[\"'»”)\]]*(?=\s|$)")

# Abbreviations that should NOT trigger a sentence split.
# "Dr. Smith" and "и т.д. и т.п." stay inside one sentence.
_ABBREVIATIONS = frozenset(
    {
        "Dr",
        "Mr",
        "Mrs",
        "Ms",
        "Prof",
        "Jr",
        "Sr",
        "St",
        "Vol",
        "No",
        "vs",
        "etc",
        "approx",
        "dept",
        "est",
        "inc",
        "ltd",
        "e.g",
        "i.e",
        "т.д",
        "т.е",
        "т.п",
        "т.к",
        "др",
        "пр",
        "см",
        "стр",
        "рис",
        "им",
        "ул",
        "гг",
        "г",
        "в",
        "вв",
        "тыс",
        "млн",
        "млрд",
        "руб",
    }
)
_ABBREVIATION_RE = re.compile(
    r"(?<!\w)(?:"
    + "|".join(re.escape(a) for a in sorted(_ABBREVIATIONS, key=len, reverse=True))
    + r"|[A-ZА-ЯЁ])\."
)
_MASKED_PERIOD = "\x00"


@dataclass(frozen=True)
class _Unit:
    """Smallest piece the packer moves around.

    ``separator`` is placed in front of the text when the unit is not the
    first one in its chunk.
    """

    text: str
    weight: float
    separator: str


class AdaptiveChunker:
    """Splits text into token-bounded chunks using a per-format strategy.

    Parameters
    ----------
    estimator:
        Token estimator used for budgets and the reported ``token_count``.
        A fresh :class:`TokenEstimator` is used when omitted.
    """

    def __init__(self, estimator: TokenEstimator | None = None) -> None:
        self._estimator = estimator or TokenEstimator()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def chunk(self, text: str, format: DocumentFormat, config: ChunkingConfig) -> list[Chunk]:  # noqa: A002
        """Split *text* into ordered chunks for *format* under *config*.

        Parameters
        ----------
        text:
            Extracted (and already length-guarded) document text.
        format:
            Source format; selects the splitting strategy.
        config:
            Token budget and overlap.  Never modified.

        Returns
        -------
        list[Chunk]
            Trimmed, non-empty chunks with contiguous indices from 0.
            Whitespace-only input returns an empty list.
        """
        stripped = text.strip()
        if not stripped:
            return []

        strategy = self.strategy_for(format, config)
        if strategy is ChunkingStrategy.CHAPTER_AWARE:
            pieces = self._chunk_by_chapters(stripped, config)
        elif strategy is ChunkingStrategy.PARAGRAPH_AWARE:
            pieces = self._chunk_by_paragraphs(stripped, config)
        else:
            pieces = self._token_window(stripped, config)

        chunks = self._finalize(pieces)
        logger.info(
            "chunking_complete",
            format=format.value,
            strategy=strategy.value,
            chunks=len(chunks),
            avg_tokens=self._avg_tokens(chunks),
            chunk_size_tokens=config.chunk_size_tokens,
        )
        return chunks

    @staticmethod
    def strategy_for(format: DocumentFormat, config: ChunkingConfig) -> ChunkingStrategy:  # noqa: A002
        """Return the strategy :meth:`chunk` will use for *format*."""
        if not config.preserve_structure:
            return ChunkingStrategy.TOKEN_WINDOW
        return _STRATEGY_BY_FORMAT.get(format, ChunkingStrategy.TOKEN_WINDOW)

    def describe(self, config: ChunkingConfig) -> dict[str, Any]:
        """Summarise *config* for status output."""
        return {
            "chunk_size_tokens": config.chunk_size_tokens,
            "overlap_tokens": config.overlap_tokens,
            "preserve_structure": config.preserve_structure,
            "estimated_chars_per_chunk": self._estimator.estimate_chars_per_chunk(
                config.chunk_size_tokens
            ),
        }

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    def _chunk_by_chapters(self, text: str, config: ChunkingConfig) -> list[str]:
        if len(text) > _MAX_MARKER_SCAN_CHARS:
            logger.debug("chapter_scan_skipped", length=len(text))
            return self._token_window(text, config)

        segments = self._split_chapters(text)
        if len(segments) < 2:
            logger.debug("chapter_markers_unusable", segments=len(segments))
            return self._token_window(text, config)

        pieces: list[str] = []
        for segment in segments:
            if self._weight(segment) > config.chunk_size_tokens:
                pieces.extend(self._token_window(segment, config))
            else:
                pieces.append(segment)
        return pieces

    def _chunk_by_paragraphs(self, text: str, config: ChunkingConfig) -> list[str]:
        if self._fits(text, config):
            return [text]

        paragraphs = [p for p in self._split_paragraphs(text) if len(p) >= _MIN_PARAGRAPH_CHARS]
        if len(paragraphs) < 2:
            return self._token_window(text, config)

        units: list[_Unit] = []
        for para in paragraphs:
            units.extend(self._paragraph_units(para, config))
        return self._pack(units, config)

    def _token_window(self, text: str, config: ChunkingConfig) -> list[str]:
        if self._fits(text, config):
            return [text]

        units: list[_Unit] = []
        if config.preserve_structure:
            for para in self._split_paragraphs(text):
                for i, sentence in enumerate(self._split_sentences(para)):
                    separator = " " if i else "\n\n"
                    units.extend(self._bounded_units(sentence, separator, config))
        else:
            for word in text.split():
                units.extend(self._bounded_units(word, " ", config))
        return self._pack(units, config)

    # ------------------------------------------------------------------
    # Splitting
    # ------------------------------------------------------------------

    @staticmethod
    def _split_chapters(text: str) -> list[str]:
        """Cut *text* at chapter markers, merging segments that are too short.

        A short segment is folded into the one after it; a short final
        segment is folded into the one before.
        """
        starts = [m.start() for m in _CHAPTER_MARKER.finditer(text)]
        if not starts:
            return [text]

        bounds = [0, *starts, len(text)]
        raw = [text[a:b].strip() for a, b in zip(bounds, bounds[1:])]

        merged: list[str] = []
        carry = ""
        for segment in raw:
            if not segment:
                continue
            if carry:
                segment = f"{carry}\n\n{segment}"
                carry = ""
            if len(segment) < _MIN_SEGMENT_CHARS:
                carry = segment
                continue
            merged.append(segment)

        if carry:
            if merged:
                merged[-1] = f"{merged[-1]}\n\n{carry}"
            else:
                merged.append(carry)
        return merged

    @staticmethod
    def _split_paragraphs(text: str) -> list[str]:
        """Split *text* on blank lines, discarding blanks."""
        return [p.strip() for p in _PARAGRAPH_BREAK.split(text) if p.strip()]

    @staticmethod
    def _split_sentences(text: str) -> list[str]:
        """Split *text* at sentence boundaries while respecting abbreviations.

        Periods that belong to known abbreviations and single-letter initials
        are masked first (same length, so indices stay aligned with *text*).
        """
        masked = _ABBREVIATION_RE.sub(lambda m: m.group(0).replace(".", _MASKED_PERIOD), text)

        sentences: list[str] = []
        last = 0
        for match in _SENTENCE_END.finditer(masked):
            end = match.end()
            sentence = text[last:end].strip()
            if sentence:
                sentences.append(sentence)
            last = end

        remainder = text[last:].strip()
        if remainder:
            sentences.append(remainder)

        return sentences if sentences else [text]

    # ------------------------------------------------------------------
    # Units
    # ------------------------------------------------------------------

    def _weight(self, text: str) -> float:
        return max(self._estimator.weigh(text), len(text) / _CHARS_PER_TOKEN_FLOOR)

    def _paragraph_units(self, paragraph: str, config: ChunkingConfig) -> list[_Unit]:
        """A paragraph as one unit, or as sentence units when it is too large."""
        weight = self._weight(paragraph)
        if weight <= config.chunk_size_tokens:
            return [_Unit(paragraph, weight, "\n\n")]

        units: list[_Unit] = []
        for i, sentence in enumerate(self._split_sentences(paragraph)):
            units.extend(self._bounded_units(sentence, " " if i else "\n\n", config))
        return units

    def _bounded_units(self, text: str, separator: str, config: ChunkingConfig) -> list[_Unit]:
        """Return *text* as units that each fit the budget.

        Oversized text is split into words; an oversized single word is
        halved until the pieces fit.
        """
        weight = self._weight(text)
        if weight <= config.chunk_size_tokens:
            return [_Unit(text, weight, separator)]

        words = text.split()
        if len(words) > 1:
            units: list[_Unit] = []
            for i, word in enumerate(words):
                units.extend(self._bounded_units(word, " " if i else separator, config))
            return units

        if len(text) <= 1:
            return [_Unit(text, weight, separator)]
        middle = len(text) // 2
        return [
            *self._bounded_units(text[:middle], separator, config),
            *self._bounded_units(text[middle:], "", config),
        ]

    # ------------------------------------------------------------------
    # Packing
    # ------------------------------------------------------------------

    def _pack(self, units: list[_Unit], config: ChunkingConfig) -> list[str]:
        """Greedily pack *units* into chunks of at most ``chunk_size_tokens``.

        When a chunk is flushed the next one starts with its tail units
        (up to ``overlap_tokens``), trimmed from the front until the
        incoming unit fits.
        """
        budget = config.chunk_size_tokens
        pieces: list[str] = []
        current: list[_Unit] = []
        current_weight = 0.0

        for unit in units:
            if current and current_weight + unit.weight > budget:
                pieces.append(self._join(current))
                current = self._build_overlap(current, config.overlap_tokens)
                while current and sum(u.weight for u in current) + unit.weight > budget:
                    current.pop(0)
                current_weight = sum(u.weight for u in current)

            current.append(unit)
            current_weight += unit.weight

        if current:
            pieces.append(self._join(current))
        return pieces

    @staticmethod
    def _build_overlap(parts: list[_Unit], overlap_tokens: int) -> list[_Unit]:
        """Return tail units from *parts* whose combined weight <= *overlap_tokens*.

        Never returns all of *parts*; a chunk is not repeated whole.
        """
        overlap: list[_Unit] = []
        total = 0.0
        for unit in reversed(parts[1:]):
            if total + unit.weight > overlap_tokens:
                break
            overlap.insert(0, unit)
            total += unit.weight
        return overlap

    @staticmethod
    def _join(units: list[_Unit]) -> str:
        return units[0].text + "".join(u.separator + u.text for u in units[1:])

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _fits(self, text: str, config: ChunkingConfig) -> bool:
        return self._weight(text) <= config.chunk_size_tokens

    def _finalize(self, pieces: list[str]) -> list[Chunk]:
        chunks: list[Chunk] = []
        for piece in pieces:
            content = piece.strip()
            if not content:
                continue
            chunks.append(
                Chunk(
                    content=content,
                    index=len(chunks),
                    token_count=self._estimator.estimate(content),
                )
            )
        return chunks

    @staticmethod
    def _avg_tokens(chunks: list[Chunk]) -> int:
        if not chunks:
            return 0
        return sum(c.token_count for c in chunks) // len(chunks)
