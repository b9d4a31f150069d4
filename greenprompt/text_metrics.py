"""
Text measurement helpers for prompt analysis.

Plain functions over a raw string. Every one of them accepts empty or
whitespace-only input and returns zero-valued results for it.
"""

from __future__ import annotations

import math
import re
from collections import Counter

from greenprompt.models import TextMetrics

_SENTENCE_END_RE = re.compile(r"[.!?]+")
_ASCII_LETTER_RE = re.compile(r"[A-Za-z]")
_SYLLABLE_RE = re.compile(r"[aeiouy]+", re.IGNORECASE)
_BIGRAM_TOKEN_RE = re.compile(r"\b[a-z0-9'-]+\b")

TOKENS_PER_WORD = 0.75
ENGLISH_ASCII_RATIO = 0.85
REPEATED_BIGRAM_MIN = 3


def _words(text: str) -> list[str]:
    return (text or "").split()


def word_count(text: str) -> int:
    """Count whitespace-delimited words."""
    return len(_words(text))


def sentence_count(text: str) -> int:
    """
    Count runs of terminal punctuation ("?!" is one sentence end).

    Non-empty text without any terminal punctuation is one sentence.
    """
    text = text or ""
    ends = len(_SENTENCE_END_RE.findall(text))
    if ends:
        return ends
    return 1 if text.strip() else 0


def average_sentence_length(text: str) -> float:
    sentences = sentence_count(text)
    return word_count(text) / sentences if sentences else 0.0


def long_word_ratio(text: str, threshold: float = 14) -> float:
    """Fraction of words at least `threshold` characters long."""
    words = _words(text)
    if not words:
        return 0.0
    return sum(1 for w in words if len(w) >= threshold) / len(words)


def estimate_tokens(text: str) -> int:
    """Linear word-count proxy for tokens, rounded half up."""
    return int(math.floor(word_count(text) * TOKENS_PER_WORD + 0.5))


def guess_language(text: str) -> str:
    """'en' when ASCII letters make up most non-whitespace characters."""
    text = text or ""
    letters = len(_ASCII_LETTER_RE.findall(text))
    total = len(re.sub(r"\s", "", text)) or 1
    return "en" if letters / total >= ENGLISH_ASCII_RATIO else "unknown"


def _syllables(word: str) -> int:
    return len(_SYLLABLE_RE.findall(word)) or 1


def readability_score(text: str) -> float:
    """Flesch Reading Ease with vowel-run syllable counting."""
    words = _words(text)
    if not words:
        return 0.0
    w = len(words)
    s = sentence_count(text) or 1
    syllables = sum(_syllables(word) for word in words) or w
    fre = 206.835 - 1.015 * (w / s) - 84.6 * (syllables / w)
    return round(fre, 1)


def repeated_bigram_count(text: str) -> int:
    """Number of distinct word pairs that occur three or more times."""
    tokens = _BIGRAM_TOKEN_RE.findall((text or "").lower())
    bigrams = Counter(zip(tokens, tokens[1:]))
    return sum(1 for n in bigrams.values() if n >= REPEATED_BIGRAM_MIN)


def compute_metrics(text: str, long_word_len: float = 14) -> TextMetrics:
    return TextMetrics(
        language=guess_language(text),
        word_count=word_count(text),
        sentence_count=sentence_count(text),
        token_estimate=estimate_tokens(text),
        average_sentence_length=average_sentence_length(text),
        long_word_ratio=long_word_ratio(text, long_word_len),
        readability_score=readability_score(text),
        repeated_bigram_count=repeated_bigram_count(text),
    )
