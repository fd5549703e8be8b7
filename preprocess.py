"""
Text Preprocessing Utilities.

This module provides the normalization and tokenization steps shared by the
similarity engine, the claim validator and the repetition checker. Every
comparison in the project runs on text that went through `normalize_text`, so
two fragments that differ only in case, punctuation or spacing compare equal.
"""

from __future__ import annotations

import re
from functools import lru_cache

from nltk.tokenize import RegexpTokenizer

NON_WORD_PATTERN = re.compile(r"[^\w\s]")
WHITESPACE_PATTERN = re.compile(r"\s+")
SENTENCE_PATTERN = re.compile(r"[^.!?]+[.!?]+")

WORD_TOKENIZER = RegexpTokenizer(r"\w+")


@lru_cache(maxsize=1024)
def normalize_text(text: str) -> str:
    """
    Lowercase a text, turn punctuation into whitespace and collapse runs of whitespace.

    Args:
        text (str): The input text string.

    Returns:
        str: The normalized text. Returns an empty string if input is not a string.
    """
    if not isinstance(text, str):
        return ""
    lowered = text.lower()
    without_punctuation = NON_WORD_PATTERN.sub(" ", lowered)
    return WHITESPACE_PATTERN.sub(" ", without_punctuation).strip()


@lru_cache(maxsize=1024)
def tokenize_words(text: str) -> tuple[str, ...]:
    """
    Split an already normalized text into word tokens.

    Args:
        text (str): A normalized text string.

    Returns:
        tuple[str, ...]: The word tokens, in order. Empty for empty input.
    """
    if not text:
        return ()
    return tuple(WORD_TOKENIZER.tokenize(text))


def normalized_words(text: str) -> tuple[str, ...]:
    """Normalize a raw text and return its word tokens."""
    return tokenize_words(normalize_text(text))


def word_ngrams(words: tuple[str, ...], n: int) -> list[str]:
    """
    Build space-joined word n-grams from a token sequence.

    Args:
        words (tuple[str, ...]): Word tokens.
        n (int): The n-gram size.

    Returns:
        list[str]: The n-grams in text order. Empty when there are fewer than `n` words.
    """
    if n <= 0:
        return []
    return [" ".join(words[i : i + n]) for i in range(len(words) - n + 1)]


def split_sentences(text: str) -> list[str]:
    """
    Split a raw text into sentences ending in '.', '!' or '?'.

    Sentences are stripped of surrounding whitespace. Trailing text without
    terminal punctuation is not returned.
    """
    if not isinstance(text, str):
        return []
    return [sentence.strip() for sentence in SENTENCE_PATTERN.findall(text)]
