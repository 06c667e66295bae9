"""Heuristic title and page-count metadata for extracted documents.

Most formats carry no reliable title field, so the title is guessed from the
first lines of the extracted text:

- **Books** (FB2, EPUB): the first line of 6-99 characters.
- **Word documents** (DOCX, DOC): the first line, if shorter than 100
  characters.
- **PDF / TXT**: the first of the first five lines that has 6-99
  characters and contains no period (a period suggests a sentence, not a
  heading).

A title reported by the parser itself (FB2 ``<book-title>``, EPUB
``dc:title``, PDF document info) always wins over the heuristic.

Page counts come from the parser when it knows them (PDF); otherwise they
are estimated at 500 words per page.
"""

from __future__ import annotations

import math

from src.models.document import DocumentFormat, ExtractedText

WORDS_PER_PAGE = 500

_BOOK_FORMATS = frozenset({DocumentFormat.FB2, DocumentFormat.EPUB})
_WORD_FORMATS = frozenset({DocumentFormat.DOCX, DocumentFormat.DOC})

_MIN_TITLE_CHARS = 6
_MAX_TITLE_CHARS = 100
_HEADING_SCAN_LINES = 5


def _is_title_length(line: str) -> bool:
    return _MIN_TITLE_CHARS <= len(line) < _MAX_TITLE_CHARS


def guess_title(text: str, format: DocumentFormat) -> str | None:  # noqa: A002
    """Return a title guessed from the first lines of *text*, or ``None``."""
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    if not lines:
        return None

    if format in _BOOK_FORMATS:
        return next((line for line in lines if _is_title_length(line)), None)

    if format in _WORD_FORMATS:
        first = lines[0]
        return first if len(first) < _MAX_TITLE_CHARS else None

    for line in lines[:_HEADING_SCAN_LINES]:
        if _is_title_length(line) and "." not in line:
            return line
    return None


def estimate_pages(text: str) -> int:
    """Estimated page count at :data:`WORDS_PER_PAGE` words per page."""
    words = len(text.split())
    return math.ceil(words / WORDS_PER_PAGE)


def resolve_title(extracted: ExtractedText) -> str | None:
    return extracted.title or guess_title(extracted.text, extracted.format)


def resolve_pages(extracted: ExtractedText) -> int:
    if extracted.pages is not None:
        return extracted.pages
    return estimate_pages(extracted.text)
