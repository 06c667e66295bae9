"""Heuristic token counting without a real tokenizer.

The embedding provider's tokenizer is not available inside the ingestion
engine, so chunk budgets are measured with a weighted character/word count
calibrated against OpenAI's BPE tokenizers on mixed Russian/English text:

    Cyrillic letters   ÷ 2.5   (~2.5 letters per token)
    English words      × 0.75
    numeric runs       × 1.0
    punctuation runs   × 0.5

The weighted sum is rounded up, with a floor of 1 for any non-empty input.
Whitespace contributes nothing.  This is an approximation: text in other
scripts (CJK, Greek, accented Latin) is undercounted.
"""

from __future__ import annotations

import math
import re

_CYRILLIC = re.compile(r"[а-яё]", re.IGNORECASE)
# With re.ASCII every non-ASCII letter is a word boundary, so only the ASCII
# run of a mixed word counts ("café" weighs as the word "caf").
_ENGLISH_WORD = re.compile(r"\b[a-z]+\b", re.IGNORECASE | re.ASCII)
_NUMBER = re.compile(r"[0-9]+")
_PUNCTUATION = re.compile(r"""[.,!?;:()\[\]{}"'`~@#$%^&*+=<>/\\|_\-…«»—–]+""")

_CYRILLIC_CHARS_PER_TOKEN = 2.5
_TOKENS_PER_ENGLISH_WORD = 0.75
_TOKENS_PER_NUMBER = 1.0
_TOKENS_PER_PUNCTUATION_RUN = 0.5

# Average characters per token across the calibration corpus.
_CHARS_PER_TOKEN = 3.5


class TokenEstimator:
    """Pure, deterministic token-count estimator.

    Stateless; a single instance can be shared freely between threads and
    documents.
    """

    def weigh(self, text: str) -> float:
        """Return the unrounded weighted count behind :meth:`estimate`.

        The weights are additive over whitespace-separated pieces, so the
        chunker can sum per-unit weights instead of re-estimating joined text.
        """
        return (
            len(_CYRILLIC.findall(text)) / _CYRILLIC_CHARS_PER_TOKEN
            + len(_ENGLISH_WORD.findall(text)) * _TOKENS_PER_ENGLISH_WORD
            + len(_NUMBER.findall(text)) * _TOKENS_PER_NUMBER
            + len(_PUNCTUATION.findall(text)) * _TOKENS_PER_PUNCTUATION_RUN
        )

    def estimate(self, text: str) -> int:
        """Return the estimated token count of *text* (``0`` for ``""``)."""
        if not text:
            return 0
        return max(1, math.ceil(self.weigh(text)))

    def estimate_chars_per_chunk(self, chunk_size_tokens: int) -> int:
        """Rough character length of a chunk holding *chunk_size_tokens* tokens."""
        return int(chunk_size_tokens * _CHARS_PER_TOKEN)


_DEFAULT_ESTIMATOR = TokenEstimator()


def estimate_tokens(text: str) -> int:
    """Module-level shortcut for :meth:`TokenEstimator.estimate`."""
    return _DEFAULT_ESTIMATOR.estimate(text)
