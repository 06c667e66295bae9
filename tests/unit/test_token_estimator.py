"""Unit tests for the heuristic TokenEstimator."""

from __future__ import annotations

from src.services.ingestion.token_estimator import TokenEstimator, estimate_tokens


class TestEstimate:
    def test_empty_string_is_zero(self) -> None:
        assert TokenEstimator().estimate("") == 0

    def test_english_words(self) -> None:
        # 2 words * 0.75 = 1.5 -> ceil 2
        assert TokenEstimator().estimate("Hello world") == 2

    def test_cyrillic_characters(self) -> None:
        # 6 Cyrillic characters / 2.5 = 2.4 -> ceil 3
        assert TokenEstimator().estimate("привет") == 3

    def test_numbers_and_punctuation(self) -> None:
        assert TokenEstimator().estimate("123") == 1
        assert TokenEstimator().estimate("...") == 1

    def test_mixed_text(self) -> None:
        # Глава (5/2.5 = 2) + Hello (0.75) + 1 (1) + "." and "!" (2 * 0.5)
        assert TokenEstimator().estimate("Глава 1. Hello!") == 5

    def test_non_empty_input_is_at_least_one(self) -> None:
        assert TokenEstimator().estimate("漢字") == 1

    def test_deterministic(self) -> None:
        estimator = TokenEstimator()
        text = "Снег шёл всю ночь. It snowed all night, 24 hours!"
        assert estimator.estimate(text) == estimator.estimate(text)

    def test_module_level_helper_matches_instance(self) -> None:
        text = "Chapter 12: the lighthouse keeper"
        assert estimate_tokens(text) == TokenEstimator().estimate(text)


class TestWeigh:
    def test_weigh_is_additive_over_whitespace_pieces(self) -> None:
        estimator = TokenEstimator()
        left, right = "Снег шёл всю ночь.", "Then 42 ships sailed!"
        combined = estimator.weigh(f"{left} {right}")
        assert abs(combined - (estimator.weigh(left) + estimator.weigh(right))) < 1e-9

    def test_weigh_is_raw_sum(self) -> None:
        assert TokenEstimator().weigh("Hello world") == 1.5

    def test_ascii_run_of_accented_word_counts_as_word(self) -> None:
        assert TokenEstimator().weigh("café") == 0.75

    def test_cyrillic_is_not_counted_as_english_words(self) -> None:
        assert TokenEstimator().weigh("привет") == 6 / 2.5


class TestCharsPerChunk:
    def test_estimate_chars_per_chunk(self) -> None:
        assert TokenEstimator().estimate_chars_per_chunk(1000) == 3500
        assert TokenEstimator().estimate_chars_per_chunk(100) == 350
