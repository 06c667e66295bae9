"""Text extractor for plain UTF-8 text files."""

from __future__ import annotations

from src.interfaces.document_extractor import IDocumentExtractor
from src.models.document import DocumentFormat


class TXTExtractor(IDocumentExtractor):
    """Decodes the buffer as strict UTF-8 (a leading BOM is dropped).

    Unlike the binary formats there is no magic prefix, so validation is a
    full decode attempt.
    """

    format = DocumentFormat.TXT
    mime_types = ("text/plain", "text/txt", "application/txt")
    extensions = (".txt",)

    def validate(self, data: bytes) -> bool:
        try:
            bytes(data).decode("utf-8-sig")
        except (UnicodeDecodeError, TypeError, ValueError):
            return False
        return True

    def extract_text(self, data: bytes, path: str | None = None) -> str:
        text = bytes(data).decode("utf-8-sig")
        return text.replace("\r\n", "\n").replace("\r", "\n")
