"""Unit tests for title and page-count heuristics."""

from __future__ import annotations

import pytest

from src.models.document import DocumentFormat, ExtractedText
from src.services.ingestion.metadata_extractor import (
    estimate_pages,
    guess_title,
    resolve_pages,
    resolve_title,
)


class TestGuessTitle:
    def test_book_uses_first_line_of_title_length(self) -> None:
        text = "I\n\nЗимний маяк\n\nГлава 1"
        assert guess_title(text, DocumentFormat.FB2) == "Зимний маяк"

    def test_word_document_uses_first_line(self) -> None:
        assert guess_title("Memo\n\nBody text.", DocumentFormat.DOCX) == "Memo"
        assert guess_title("x" * 120 + "\nBody", DocumentFormat.DOC) is None

    @pytest.mark.parametrize("fmt", [DocumentFormat.PDF, DocumentFormat.TXT])
    def test_plain_formats_skip_sentences(self, fmt: DocumentFormat) -> None:
        text = "Page 1\nThis line is a sentence.\nAnnual Report 2024\nBody."
        assert guess_title(text, fmt) == "Page 1"
        assert guess_title("Short\nA full sentence here.\nQuarterly Results", fmt) == "Quarterly Results"

    def test_plain_format_looks_at_first_five_lines_only(self) -> None:
        text = "\n".join(["a.", "b.", "c.", "d.", "e.", "Late Heading"])
        assert guess_title(text, DocumentFormat.TXT) is None

    def test_empty_text(self) -> None:
        assert guess_title("   \n", DocumentFormat.EPUB) is None


class TestPages:
    def test_estimate_pages_at_500_words(self) -> None:
        assert estimate_pages("") == 0
        assert estimate_pages("word " * 500) == 1
        assert estimate_pages("word " * 501) == 2

    def test_parser_pages_win(self) -> None:
        extracted = ExtractedText(text="one two", format=DocumentFormat.PDF, extractor_name="PDFExtractor", pages=9)
        assert resolve_pages(extracted) == 9

    def test_estimated_pages_when_unknown(self) -> None:
        extracted = ExtractedText(text="one two", format=DocumentFormat.TXT, extractor_name="TXTExtractor")
        assert resolve_pages(extracted) == 1


class TestResolveTitle:
    def test_format_title_wins(self) -> None:
        extracted = ExtractedText(
            text="Heading Line\nBody.", format=DocumentFormat.EPUB, extractor_name="EPUBExtractor", title="Real Title"
        )
        assert resolve_title(extracted) == "Real Title"

    def test_heuristic_when_missing(self) -> None:
        extracted = ExtractedText(text="Heading Line\nBody.", format=DocumentFormat.TXT, extractor_name="TXTExtractor")
        assert resolve_title(extracted) == "Heading Line"
