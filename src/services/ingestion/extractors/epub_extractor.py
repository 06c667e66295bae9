"""Text extractor for EPUB books.

Walks the EPUB spine (the ordered reading flow) with ebooklib, strips the
XHTML of each chapter with BeautifulSoup, and joins chapters with blank
lines.  A chapter that cannot be read is logged, recorded as a warning and
skipped; it never fails the whole book.
"""

from __future__ import annotations

import os
import re
import tempfile

import ebooklib
import structlog
from bs4 import BeautifulSoup
from ebooklib import epub

from src.interfaces.document_extractor import IDocumentExtractor
from src.models.document import DocumentFormat, ExtractedText

logger = structlog.get_logger(logger_name=__name__)

_ZIP_MAGIC = b"PK\x03\x04"

# Collapse whitespace while preserving paragraph breaks.
_SPACE_RUN = re.compile(r"[ \t\r\f\v\xa0]+")
_NEWLINE_RUN = re.compile(r"\s*\n\s*\n\s*")


def _is_nav(item) -> bool:
    """True for the EPUB3 navigation document (manifest ``properties="nav"``)."""
    if "nav" in (getattr(item, "properties", None) or []):
        return True
    is_chapter = getattr(item, "is_chapter", None)
    return is_chapter is not None and not is_chapter()


class EPUBExtractor(IDocumentExtractor):
    """Extracts chapter text in spine order; reports per-chapter failures."""

    format = DocumentFormat.EPUB
    mime_types = ("application/epub+zip",)
    extensions = (".epub",)

    def validate(self, data: bytes) -> bool:
        try:
            return bytes(data[: len(_ZIP_MAGIC)]) == _ZIP_MAGIC
        except Exception:  # noqa: BLE001
            return False

    def extract_text(self, data: bytes, path: str | None = None) -> str:
        text, _, _ = self._read(data, path)
        return text

    def _extract(self, data: bytes, path: str | None) -> ExtractedText:
        text, title, warnings = self._read(data, path)
        return ExtractedText(
            text=text,
            format=self.format,
            extractor_name=self.name,
            title=title,
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _read(self, data: bytes, path: str | None) -> tuple[str, str | None, list[str]]:
        """Return ``(text, title, warnings)`` for the book."""
        book = self._open_book(data, path)

        chapters: list[str] = []
        warnings: list[str] = []
        for item in self._chapter_items(book):
            chapter_id = item.get_id() if hasattr(item, "get_id") else "?"
            try:
                text = self._chapter_text(item.get_content())
            except Exception as exc:  # noqa: BLE001
                logger.warning("epub_chapter_failed", chapter=chapter_id, error=str(exc))
                warnings.append(f"chapter {chapter_id} could not be read: {exc}")
                continue
            if text:
                chapters.append(text)

        return "\n\n".join(chapters), self._title(book), warnings

    @staticmethod
    def _open_book(data: bytes, path: str | None) -> epub.EpubBook:
        """Read the book from *path*, or from a temporary copy of *data*."""
        if path:
            return epub.read_epub(path, options={"ignore_ncx": True})

        fd, tmp_path = tempfile.mkstemp(suffix=".epub")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            return epub.read_epub(tmp_path, options={"ignore_ncx": True})
        finally:
            os.unlink(tmp_path)

    @staticmethod
    def _chapter_items(book: epub.EpubBook) -> list:
        """Document items in reading order.

        Follows the spine; falls back to manifest order when the spine
        references nothing readable.  The EPUB3 navigation document is
        never a chapter.
        """
        items = []
        for entry in book.spine:
            idref = entry[0] if isinstance(entry, tuple) else entry
            item = book.get_item_with_id(idref)
            if item is not None and item.get_type() == ebooklib.ITEM_DOCUMENT and not _is_nav(item):
                items.append(item)
        if not items:
            items = [i for i in book.get_items_of_type(ebooklib.ITEM_DOCUMENT) if not _is_nav(i)]
        return items

    @staticmethod
    def _chapter_text(content: bytes) -> str:
        html = content.decode("utf-8", errors="replace")
        soup = BeautifulSoup(html, "html.parser")
        for tag in soup(["script", "style"]):
            tag.decompose()

        text = soup.get_text(separator="\n")
        lines = [_SPACE_RUN.sub(" ", line).strip() for line in text.split("\n")]
        text = "\n".join(lines)
        return _NEWLINE_RUN.sub("\n\n", text).strip()

    @staticmethod
    def _title(book: epub.EpubBook) -> str | None:
        try:
            entries = book.get_metadata("DC", "title")
        except Exception:  # noqa: BLE001
            return None
        if entries:
            title = str(entries[0][0]).strip()
            return title or None
        return None
