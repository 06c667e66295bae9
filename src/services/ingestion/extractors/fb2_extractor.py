"""Text extractor for FictionBook 2 (FB2) e-books.

FB2 is a single XML document.  The body is walked in order and the text of
every paragraph-level element is emitted as its own paragraph; section
titles keep each of their lines separate so chapter headings such as
"Глава 1" start a line of their own.  Title and authors come from
``<description>/<title-info>`` and are prefixed to the body as a short
header block.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET

from src.interfaces.document_extractor import IDocumentExtractor
from src.models.document import DocumentFormat, ExtractedText
from src.utils.errors import ExtractionFailedError

# The root tag must appear within this many leading bytes.
_SNIFF_BYTES = 1024

_PARAGRAPH_TAGS = frozenset({"p", "v", "subtitle", "text-author"})
_CONTAINER_TAGS = frozenset({"body", "section", "poem", "stanza", "cite", "epigraph"})

TITLE_LABEL = "Название"
AUTHOR_LABEL = "Автор"


def _local(tag: object) -> str:
    """Strip the ``{namespace}`` prefix ElementTree puts on tag names."""
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def _flat_text(elem: ET.Element) -> str:
    return " ".join("".join(elem.itertext()).split())


class FB2Extractor(IDocumentExtractor):
    format = DocumentFormat.FB2
    mime_types = ("application/x-fictionbook+xml", "text/xml", "application/xml")
    extensions = (".fb2",)

    def validate(self, data: bytes) -> bool:
        try:
            head = bytes(data[:_SNIFF_BYTES])
        except Exception:  # noqa: BLE001
            return False
        return b"<FictionBook" in head

    def extract_text(self, data: bytes, path: str | None = None) -> str:
        return self._read(data)[0]

    def _extract(self, data: bytes, path: str | None) -> ExtractedText:
        text, title = self._read(data)
        return ExtractedText(text=text, format=self.format, extractor_name=self.name, title=title)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _read(self, data: bytes) -> tuple[str, str | None]:
        """Return ``(text_with_header, book_title)``."""
        root = ET.fromstring(data)
        if _local(root.tag) != "FictionBook":
            raise ExtractionFailedError(message=f"Root element is <{_local(root.tag)}>, not <FictionBook>")

        title, authors = self._description(root)
        blocks: list[str] = []
        for child in root:
            if _local(child.tag) == "body":
                self._walk(child, blocks)
        body = "\n\n".join(blocks)

        header: list[str] = []
        if title:
            header.append(f"{TITLE_LABEL}: {title}")
        if authors:
            header.append(f"{AUTHOR_LABEL}: {', '.join(authors)}")
        if header:
            return "\n".join(header) + "\n\n" + body, title
        return body, title

    def _walk(self, elem: ET.Element, blocks: list[str]) -> None:
        for child in elem:
            tag = _local(child.tag)
            if tag in _PARAGRAPH_TAGS:
                text = _flat_text(child)
                if text:
                    blocks.append(text)
            elif tag == "title":
                lines = [_flat_text(p) for p in child if _local(p.tag) == "p"]
                heading = "\n".join(line for line in lines if line) or _flat_text(child)
                if heading:
                    blocks.append(heading)
            elif tag in _CONTAINER_TAGS:
                self._walk(child, blocks)

    @staticmethod
    def _description(root: ET.Element) -> tuple[str | None, list[str]]:
        """Return ``(book_title, ["First Last", ...])`` from ``<title-info>``."""
        title_info = None
        for elem in root.iter():
            if _local(elem.tag) == "title-info":
                title_info = elem
                break
        if title_info is None:
            return None, []

        title: str | None = None
        authors: list[str] = []
        for child in title_info:
            tag = _local(child.tag)
            if tag == "book-title" and title is None:
                title = _flat_text(child) or None
            elif tag == "author":
                parts = {_local(p.tag): _flat_text(p) for p in child}
                name = " ".join(
                    part for part in (parts.get("first-name"), parts.get("last-name")) if part
                ) or parts.get("nickname", "")
                if name:
                    authors.append(name)
        return title, authors
