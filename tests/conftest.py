"""Shared pytest fixtures for the document ingestion test suite."""

from __future__ import annotations

import io
import struct
from pathlib import Path

import pytest
from docx import Document

from src.models.document import ChunkingConfig, RawDocument
from src.providers.dedup.memory_dedup_store import MemoryDedupStore

# ---------------------------------------------------------------------------
# Sample texts
# ---------------------------------------------------------------------------

_RUSSIAN_CHAPTER_BODY = (
    "Снег шёл всю ночь, и к утру город стал тихим и белым. "
    "Старый смотритель маяка долго стоял у окна, вспоминая прошлую зиму. "
    "Потом он заварил чай и сел писать письмо сестре."
)


@pytest.fixture
def russian_chapters_text() -> str:
    """Three chapters, each well above the minimum segment length."""
    return "\n\n".join(f"Глава {n}\n\n{_RUSSIAN_CHAPTER_BODY}" for n in (1, 2, 3))


@pytest.fixture
def english_sentences_text() -> str:
    """Four hundred short, numbered sentences split into paragraphs of ten."""
    paragraphs = []
    for p in range(40):
        sentences = [f"Sentence number {p * 10 + s} is here." for s in range(10)]
        paragraphs.append(" ".join(sentences))
    return "\n\n".join(paragraphs)


@pytest.fixture
def small_config() -> ChunkingConfig:
    return ChunkingConfig(chunk_size_tokens=100, overlap_tokens=20)


# ---------------------------------------------------------------------------
# Document bytes
# ---------------------------------------------------------------------------

FB2_NAMESPACE = "http://www.gribuser.ru/xml/fictionbook/2.0"


def make_fb2(chapters: int = 3, with_namespace: bool = True) -> bytes:
    """Build a small FictionBook 2 document with *chapters* sections."""
    xmlns = f' xmlns="{FB2_NAMESPACE}"' if with_namespace else ""
    sections = "".join(
        f"<section><title><p>Глава {n}</p></title>"
        f"<p>{_RUSSIAN_CHAPTER_BODY}</p>"
        f"<p>Конец главы {n}.</p></section>"
        for n in range(1, chapters + 1)
    )
    xml = (
        '<?xml version="1.0" encoding="utf-8"?>'
        f"<FictionBook{xmlns}>"
        "<description><title-info>"
        "<author><first-name>Иван</first-name><last-name>Петров</last-name></author>"
        "<book-title>Зимний маяк</book-title>"
        "</title-info></description>"
        f"<body>{sections}</body>"
        "</FictionBook>"
    )
    return xml.encode("utf-8")


def make_docx(paragraphs: list[str], table: list[list[str]] | None = None) -> bytes:
    """Build a real DOCX file in memory with python-docx."""
    document = Document()
    for text in paragraphs:
        document.add_paragraph(text)
    if table:
        grid = document.add_table(rows=len(table), cols=len(table[0]))
        for r, row in enumerate(table):
            for c, value in enumerate(row):
                grid.cell(r, c).text = value
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


# Byte offset of the text piece inside the synthetic WordDocument stream.
_DOC_TEXT_OFFSET = 1024


def make_word_streams(
    main: str,
    footnotes: str = "",
    endnotes: str = "",
    compressed: bool = True,
    encrypted: bool = False,
) -> dict[str, bytes]:
    """Build ``WordDocument`` and ``1Table`` streams holding one text piece.

    The FIB carries just the fields a Word 97 reader needs: ``wIdent``,
    flags, ``ccp*`` counts and the ``fcClx``/``lcbClx`` pair.
    """
    full = main + footnotes + endnotes
    encoded = full.encode("cp1252") if compressed else full.encode("utf-16-le")

    word = bytearray(_DOC_TEXT_OFFSET + len(encoded))
    flags = 0x0200 | (0x0100 if encrypted else 0)
    struct.pack_into("<H", word, 0, 0xA5EC)
    struct.pack_into("<H", word, 0x0A, flags)
    struct.pack_into("<H", word, 32, 14)  # csw
    struct.pack_into("<H", word, 62, 22)  # cslw
    struct.pack_into("<6i", word, 64 + 12, len(main), len(footnotes), 0, 0, 0, len(endnotes))
    struct.pack_into("<H", word, 64 + 22 * 4, 93)  # cbRgFcLcb
    word[_DOC_TEXT_OFFSET:] = encoded

    fc = (_DOC_TEXT_OFFSET * 2) | 0x40000000 if compressed else _DOC_TEXT_OFFSET
    plc = struct.pack("<2i", 0, len(full)) + struct.pack("<HIH", 0, fc, 0)
    clx = b"\x02" + struct.pack("<I", len(plc)) + plc
    struct.pack_into("<II", word, 64 + 22 * 4 + 2 + 33 * 8, 0, len(clx))

    return {"WordDocument": bytes(word), "1Table": clx}


@pytest.fixture
def fb2_bytes() -> bytes:
    return make_fb2()


@pytest.fixture
def raw_txt() -> RawDocument:
    return RawDocument(
        data=b"Scenario A: a tiny plain-text upload, fifty chars.",
        filename="note.txt",
        declared_mime_type="text/plain",
    )


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------


@pytest.fixture
def memory_dedup_store() -> MemoryDedupStore:
    return MemoryDedupStore()


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


# Builders exposed as fixtures so test modules need no conftest import.


@pytest.fixture
def fb2_factory():
    return make_fb2


@pytest.fixture
def docx_factory():
    return make_docx


@pytest.fixture
def word_streams_factory():
    return make_word_streams
