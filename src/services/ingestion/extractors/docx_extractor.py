"""Text extractor for Office Open XML (DOCX) documents.

python-docx reads the XML inside the DOCX zip archive.  Paragraph and table
text is kept in body order; styling is discarded.
"""

from __future__ import annotations

import io

from docx import Document
from docx.table import Table

from src.interfaces.document_extractor import IDocumentExtractor
from src.models.document import DocumentFormat

_ZIP_MAGIC = b"PK\x03\x04"


class DOCXExtractor(IDocumentExtractor):
    format = DocumentFormat.DOCX
    mime_types = ("application/vnd.openxmlformats-officedocument.wordprocessingml.document",)
    extensions = (".docx",)

    def validate(self, data: bytes) -> bool:
        try:
            return bytes(data[: len(_ZIP_MAGIC)]) == _ZIP_MAGIC
        except Exception:  # noqa: BLE001
            return False

    def extract_text(self, data: bytes, path: str | None = None) -> str:
        document = Document(io.BytesIO(data))

        blocks: list[str] = []
        for block in document.iter_inner_content():
            if isinstance(block, Table):
                text = self._table_text(block)
            else:
                text = block.text.strip()
            if text:
                blocks.append(text)
        return "\n\n".join(blocks)

    @staticmethod
    def _table_text(table: Table) -> str:
        """One line per row, cells separated by tabs."""
        rows: list[str] = []
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells]
            if any(cells):
                rows.append("\t".join(cells))
        return "\n".join(rows)
