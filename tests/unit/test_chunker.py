"""Unit tests for the AdaptiveChunker -- per-format, token-bounded chunking."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from src.models.document import ChunkingConfig, DocumentFormat
from src.services.ingestion.chunker import AdaptiveChunker, ChunkingStrategy
from src.services.ingestion.token_estimator import TokenEstimator

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_ENGLISH_BODY = (
    "The keeper climbed the stairs every evening to light the lamp. "
    "Ships passed in the dark and nobody on board ever knew his name."
)
_RUSSIAN_BODY = (
    "Снег шёл всю ночь, и к утру город стал тихим и белым. "
    "Старый смотритель маяка долго стоял у окна, вспоминая прошлую зиму."
)


def _config(size: int = 100, overlap: int = 20, preserve: bool = True) -> ChunkingConfig:
    return ChunkingConfig(chunk_size_tokens=size, overlap_tokens=overlap, preserve_structure=preserve)


def _assert_well_formed(chunks, budget: int) -> None:
    estimator = TokenEstimator()
    assert [c.index for c in chunks] == list(range(len(chunks)))
    for chunk in chunks:
        assert chunk.content == chunk.content.strip()
        assert chunk.content
        assert chunk.token_count == estimator.estimate(chunk.content)
        assert chunk.token_count <= budget


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestShortInput:
    """Text that fits the budget comes back as a single trimmed chunk."""

    @pytest.mark.parametrize("fmt", list(DocumentFormat))
    def test_short_text_is_one_chunk_for_every_format(self, fmt: DocumentFormat) -> None:
        text = "  Scenario A: a tiny plain-text upload, fifty chars.\n"
        chunks = AdaptiveChunker().chunk(text, fmt, ChunkingConfig())

        assert len(chunks) == 1
        assert chunks[0].content == text.strip()
        assert chunks[0].index == 0

    @pytest.mark.parametrize("text", ["", "   ", "\n\t\n"])
    def test_blank_input_yields_no_chunks(self, text: str) -> None:
        assert AdaptiveChunker().chunk(text, DocumentFormat.TXT, ChunkingConfig()) == []


class TestStrategySelection:
    @pytest.mark.parametrize(
        ("fmt", "expected"),
        [
            (DocumentFormat.FB2, ChunkingStrategy.CHAPTER_AWARE),
            (DocumentFormat.EPUB, ChunkingStrategy.CHAPTER_AWARE),
            (DocumentFormat.DOCX, ChunkingStrategy.PARAGRAPH_AWARE),
            (DocumentFormat.DOC, ChunkingStrategy.PARAGRAPH_AWARE),
            (DocumentFormat.PDF, ChunkingStrategy.TOKEN_WINDOW),
            (DocumentFormat.TXT, ChunkingStrategy.TOKEN_WINDOW),
        ],
    )
    def test_strategy_by_format(self, fmt: DocumentFormat, expected: ChunkingStrategy) -> None:
        assert AdaptiveChunker.strategy_for(fmt, ChunkingConfig()) is expected

    def test_structure_off_forces_token_window(self) -> None:
        config = _config(preserve=False)
        for fmt in DocumentFormat:
            assert AdaptiveChunker.strategy_for(fmt, config) is ChunkingStrategy.TOKEN_WINDOW

    def test_describe_reports_budget(self) -> None:
        info = AdaptiveChunker().describe(ChunkingConfig())
        assert info == {
            "chunk_size_tokens": 1000,
            "overlap_tokens": 200,
            "preserve_structure": True,
            "estimated_chars_per_chunk": 3500,
        }


class TestTokenWindow:
    def test_chunks_respect_budget(self, english_sentences_text: str) -> None:
        chunks = AdaptiveChunker().chunk(english_sentences_text, DocumentFormat.TXT, _config())

        assert len(chunks) > 5
        _assert_well_formed(chunks, budget=100)

    def test_boundaries_fall_on_sentence_ends(self, english_sentences_text: str) -> None:
        chunks = AdaptiveChunker().chunk(english_sentences_text, DocumentFormat.PDF, _config())

        for chunk in chunks:
            assert chunk.content.startswith("Sentence number")
            assert chunk.content.endswith("is here.")

    def test_consecutive_chunks_overlap(self, english_sentences_text: str) -> None:
        chunks = AdaptiveChunker().chunk(english_sentences_text, DocumentFormat.TXT, _config())

        for previous, current in zip(chunks, chunks[1:]):
            first_sentence = current.content.split(".", 1)[0] + "."
            assert first_sentence in previous.content
            assert not current.content.startswith(previous.content)

    def test_zero_overlap_shares_nothing(self, english_sentences_text: str) -> None:
        chunks = AdaptiveChunker().chunk(english_sentences_text, DocumentFormat.TXT, _config(overlap=0))

        first_sentences = [c.content.split(".", 1)[0] for c in chunks]
        for previous, sentence in zip(chunks, first_sentences[1:]):
            assert f"{sentence}." not in previous.content

    def test_larger_budget_gives_fewer_chunks(self, english_sentences_text: str) -> None:
        chunker = AdaptiveChunker()
        small = chunker.chunk(english_sentences_text, DocumentFormat.TXT, _config(100, 20))
        large = chunker.chunk(english_sentences_text, DocumentFormat.TXT, _config(500, 50))
        assert len(small) > len(large)

    def test_word_window_without_structure(self) -> None:
        words = ["alpha", "beta", "gamma", "delta"] * 150
        chunks = AdaptiveChunker().chunk(" ".join(words), DocumentFormat.DOCX, _config(overlap=0, preserve=False))

        assert len(chunks) > 1
        _assert_well_formed(chunks, budget=100)
        rebuilt = " ".join(c.content for c in chunks).split()
        assert rebuilt == words

    def test_oversized_sentence_is_split_into_words(self) -> None:
        text = " ".join(["lighthouse"] * 500)
        chunks = AdaptiveChunker().chunk(text, DocumentFormat.TXT, _config(overlap=0))

        assert len(chunks) > 1
        _assert_well_formed(chunks, budget=100)
        assert sum(len(c.content.split()) for c in chunks) == 500

    def test_oversized_single_word_is_halved(self) -> None:
        text = "я" * 3000
        chunks = AdaptiveChunker().chunk(text, DocumentFormat.TXT, _config(overlap=0))

        assert len(chunks) > 1
        _assert_well_formed(chunks, budget=100)
        assert "".join(c.content for c in chunks) == text


class TestUncountedScripts:
    """Text the estimator barely counts is still bounded by length."""

    @staticmethod
    def _assert_length_bounded(chunks, budget: int) -> None:
        for chunk in chunks:
            spaces = sum(ch.isspace() for ch in chunk.content)
            assert len(chunk.content) - spaces <= budget * 8

    def test_cjk_text_is_split(self) -> None:
        text = "这是一个很长的中文句子没有英文单词" * 2000
        chunks = AdaptiveChunker().chunk(text, DocumentFormat.TXT, _config())

        assert len(chunks) > 1
        self._assert_length_bounded(chunks, budget=100)
        assert [c.index for c in chunks] == list(range(len(chunks)))

    def test_long_latin_word_is_split(self) -> None:
        text = "a" * 3000
        chunks = AdaptiveChunker().chunk(text, DocumentFormat.TXT, _config(overlap=0))

        assert len(chunks) > 1
        self._assert_length_bounded(chunks, budget=100)
        assert "".join(c.content for c in chunks) == text

    def test_greek_docx_paragraph_is_split(self) -> None:
        text = " ".join(["θάλασσα"] * 2000)
        chunks = AdaptiveChunker().chunk(text, DocumentFormat.DOCX, _config())

        assert len(chunks) > 1
        self._assert_length_bounded(chunks, budget=100)

    def test_oversized_cjk_chapter_is_split(self) -> None:
        body = "灯塔守护者每晚都爬上楼梯点亮灯火" * 200
        text = f"Глава 1\n\n{body}\n\nГлава 2\n\n{body}"
        chunks = AdaptiveChunker().chunk(text, DocumentFormat.FB2, _config())

        assert len(chunks) > 2
        self._assert_length_bounded(chunks, budget=100)


class TestParagraphAware:
    _PARAGRAPHS = [
        f"Paragraph {i} covers the quarterly report and the findings of the audit team."
        for i in range(12)
    ]

    def test_paragraphs_are_not_split(self) -> None:
        text = "\n\n".join(self._PARAGRAPHS)
        chunks = AdaptiveChunker().chunk(text, DocumentFormat.DOCX, _config())

        assert len(chunks) > 1
        _assert_well_formed(chunks, budget=100)
        for chunk in chunks:
            for part in chunk.content.split("\n\n"):
                assert part in self._PARAGRAPHS

    def test_short_noise_paragraphs_are_dropped(self) -> None:
        paragraphs = [*self._PARAGRAPHS[:6], "XYZ-17", *self._PARAGRAPHS[6:]]
        chunks = AdaptiveChunker().chunk("\n\n".join(paragraphs), DocumentFormat.DOC, _config())

        assert all("XYZ-17" not in c.content for c in chunks)

    def test_short_document_keeps_everything(self) -> None:
        text = "Memo\n\nXYZ-17\n\nShort body."
        chunks = AdaptiveChunker().chunk(text, DocumentFormat.DOCX, ChunkingConfig())
        assert [c.content for c in chunks] == [text]

    def test_single_long_paragraph_uses_token_window(self) -> None:
        text = " ".join(f"Sentence number {i} is here." for i in range(100))
        chunks = AdaptiveChunker().chunk(text, DocumentFormat.DOCX, _config())

        assert len(chunks) > 1
        _assert_well_formed(chunks, budget=100)


class TestChapterAware:
    def test_chunks_align_with_russian_chapters(self, russian_chapters_text: str) -> None:
        chunks = AdaptiveChunker().chunk(russian_chapters_text, DocumentFormat.FB2, _config())

        assert len(chunks) == 3
        for n, chunk in enumerate(chunks, start=1):
            assert chunk.content.startswith(f"Глава {n}")

    def test_chapters_split_even_when_whole_book_fits(self, russian_chapters_text: str) -> None:
        chunks = AdaptiveChunker().chunk(russian_chapters_text, DocumentFormat.FB2, ChunkingConfig())
        assert len(chunks) == 3

    def test_english_chapter_markers(self) -> None:
        text = "\n\n".join(f"Chapter {n}\n\n{_ENGLISH_BODY}" for n in range(1, 4))
        chunks = AdaptiveChunker().chunk(text, DocumentFormat.EPUB, ChunkingConfig())

        assert [c.content.split("\n", 1)[0] for c in chunks] == ["Chapter 1", "Chapter 2", "Chapter 3"]

    def test_bare_number_markers(self) -> None:
        text = "\n\n".join(f"{n}.\n\n{_RUSSIAN_BODY}" for n in range(1, 4))
        chunks = AdaptiveChunker().chunk(text, DocumentFormat.FB2, ChunkingConfig())

        assert len(chunks) == 3
        assert chunks[1].content.startswith("2.")

    def test_numbered_list_items_are_not_markers(self) -> None:
        text = "1. Apples from the north orchard\n2. Pears from the south orchard\n3. Plums"
        chunks = AdaptiveChunker().chunk(text, DocumentFormat.FB2, ChunkingConfig())
        assert len(chunks) == 1

    def test_short_segment_merges_into_next(self) -> None:
        text = f"Глава 1\n\nКоротко.\n\nГлава 2\n\n{_RUSSIAN_BODY}\n\nГлава 3\n\n{_RUSSIAN_BODY}"
        chunks = AdaptiveChunker().chunk(text, DocumentFormat.FB2, ChunkingConfig())

        assert len(chunks) == 2
        assert chunks[0].content.startswith("Глава 1")
        assert "Глава 2" in chunks[0].content
        assert chunks[1].content.startswith("Глава 3")

    def test_oversized_chapter_falls_back_to_token_window(self) -> None:
        big = " ".join(f"Предложение номер {i} здесь." for i in range(200))
        text = f"Глава 1\n\n{_RUSSIAN_BODY}\n\nГлава 2\n\n{big}\n\nГлава 3\n\n{_RUSSIAN_BODY}"
        chunks = AdaptiveChunker().chunk(text, DocumentFormat.FB2, _config())

        assert len(chunks) > 3
        _assert_well_formed(chunks, budget=100)
        assert chunks[0].content.startswith("Глава 1")
        assert chunks[-1].content.startswith("Глава 3")

    def test_marker_scan_skipped_for_long_text(self) -> None:
        text = "Глава 1\n\n" + "слово " * 6000 + "\n\nГлава 2\n\n" + _RUSSIAN_BODY
        chunker = AdaptiveChunker()
        with patch.object(AdaptiveChunker, "_split_chapters") as mock_split:
            chunks = chunker.chunk(text, DocumentFormat.EPUB, ChunkingConfig())

        mock_split.assert_not_called()
        assert len(chunks) > 1

    def test_no_markers_falls_back_to_token_window(self, english_sentences_text: str) -> None:
        chunks = AdaptiveChunker().chunk(english_sentences_text, DocumentFormat.EPUB, _config())

        assert len(chunks) > 1
        _assert_well_formed(chunks, budget=100)


class TestSentenceSplitting:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Dr. Smith arrived. He left.", ["Dr. Smith arrived.", "He left."]),
            (
                "Он купил хлеб и т.д. на рынке. Потом ушёл.",
                ["Он купил хлеб и т.д. на рынке.", "Потом ушёл."],
            ),
            ("Wait… Then go.", ["Wait…", "Then go."]),
            ('He said "stop." Then left.', ['He said "stop."', "Then left."]),
            ("J. R. R. Tolkien wrote books. Fine.", ["J. R. R. Tolkien wrote books.", "Fine."]),
            ("No terminal punctuation", ["No terminal punctuation"]),
        ],
    )
    def test_split_sentences(self, text: str, expected: list[str]) -> None:
        assert AdaptiveChunker._split_sentences(text) == expected
