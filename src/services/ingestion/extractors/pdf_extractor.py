"""Text extractor for PDF documents.

Reads the text layer with PyMuPDF (fitz) page by page, in document order.
Layout and positioning are discarded; pages without a text layer (pure
scans) contribute nothing.
"""

from __future__ import annotations

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

from src.interfaces.document_extractor import IDocumentExtractor
from src.models.document import DocumentFormat, ExtractedText

logger = structlog.get_logger(logger_name=__name__)

_PDF_MAGIC = b"%PDF"


class PDFExtractor(IDocumentExtractor):
    """Extracts the PDF text layer; reports page count and metadata title."""

    format = DocumentFormat.PDF
    mime_types = ("application/pdf",)
    extensions = (".pdf",)

    def validate(self, data: bytes) -> bool:
        try:
            return bytes(data[: len(_PDF_MAGIC)]) == _PDF_MAGIC
        except Exception:  # noqa: BLE001
            return False

    def extract_text(self, data: bytes, path: str | None = None) -> str:
        text, _, _ = self._read(data)
        return text

    def _extract(self, data: bytes, path: str | None) -> ExtractedText:
        text, page_count, title = self._read(data)
        return ExtractedText(
            text=text,
            format=self.format,
            extractor_name=self.name,
            title=title,
            pages=page_count,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _read(data: bytes) -> tuple[str, int, str | None]:
        """Return ``(text, page_count, metadata_title)`` for the PDF in *data*."""
        doc = fitz.open(stream=data, filetype="pdf")
        try:
            page_count = len(doc)
            pages: list[str] = []
            for page_num in range(page_count):
                page_text = doc[page_num].get_text("text").strip()
                if page_text:
                    pages.append(page_text)
            metadata = doc.metadata or {}
            title = (metadata.get("title") or "").strip() or None
        finally:
            doc.close()

        if not pages:
            logger.warning("pdf_no_text_layer", pages=page_count)

        return "\n\n".join(pages), page_count, title
