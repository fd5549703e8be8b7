"""
Provides text similarity, overlap and fuzzy containment utilities.

The engine compares two text fragments in one of two ways:
- Short texts (either side under `short_text_threshold` normalized characters)
  are compared by word-set Jaccard overlap.
- Longer texts are compared by cosine similarity of their TF-IDF vectors, with
  the two texts forming the whole corpus and only each document's top
  `top_terms` weighted terms taking part.

It also extracts word n-gram phrases shared by two texts (for repetition
reports) and decides whether a claim is contained in a text, either verbatim
after normalization or by the share of its words the text contains.

All functions here are pure: degenerate input (empty strings, texts with no
words) yields zero scores or empty lists instead of raising.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence

import numpy as np
from sklearn.feature_extraction.text import TfidfVectorizer

from app_types import Severity, SimilarityResult
from config import SimilarityConfig, get_settings
from preprocess import normalize_text, normalized_words, split_sentences, tokenize_words, word_ngrams

logger = logging.getLogger(__name__)


def _config() -> SimilarityConfig:
    return get_settings().similarity


def similarity_severity(score: float, config: SimilarityConfig | None = None) -> Severity:
    """
    Categorize a similarity score into a severity bucket.

    Args:
        score (float): A similarity score in [0, 1].
        config (SimilarityConfig | None): Threshold source; defaults to application settings.

    Returns:
        Severity: "critical", "major", "minor" or "none".
    """
    cfg = config or _config()
    if score >= cfg.critical_threshold:
        return "critical"
    if score >= cfg.major_threshold:
        return "major"
    if score >= cfg.minor_threshold:
        return "minor"
    return "none"


def jaccard_word_overlap(normalized_a: str, normalized_b: str) -> float:
    """
    Word-set Jaccard overlap of two normalized texts.

    Returns 0.0 when neither text has any words.
    """
    words_a = set(tokenize_words(normalized_a))
    words_b = set(tokenize_words(normalized_b))
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)


def _build_vectorizer(config: SimilarityConfig) -> TfidfVectorizer:
    return TfidfVectorizer(
        tokenizer=tokenize_words,
        token_pattern=None,
        lowercase=False,
        stop_words="english" if config.remove_stop_words else None,
        norm=None,
        smooth_idf=True,
        sublinear_tf=False,
    )


def _top_terms(weights: np.ndarray, count: int) -> dict[int, float]:
    """
    Select the `count` highest weighted term indices of one TF-IDF row.

    Ties keep vocabulary (alphabetical) order so the selection does not depend on document order.
    """
    order = np.argsort(-weights, kind="stable")
    return {int(i): float(weights[i]) for i in order[:count] if weights[i] > 0}


def _cosine(terms_a: dict[int, float], terms_b: dict[int, float]) -> float:
    magnitude_a = math.sqrt(sum(v * v for v in terms_a.values()))
    magnitude_b = math.sqrt(sum(v * v for v in terms_b.values()))
    if magnitude_a == 0 or magnitude_b == 0:
        return 0.0
    # Summed in term order so that swapping the documents gives a bit-identical result.
    dot_product = sum(terms_a.get(term, 0.0) * terms_b.get(term, 0.0) for term in sorted(terms_a.keys() | terms_b.keys()))
    return dot_product / (magnitude_a * magnitude_b)


def tfidf_cosine_similarity(normalized_a: str, normalized_b: str, config: SimilarityConfig | None = None) -> float:
    """
    Cosine similarity of two normalized texts over their top TF-IDF terms.

    The two texts are the whole corpus, so document frequency is 1 or 2 for every term.
    Each document keeps its `top_terms` highest-weighted terms; the cosine is taken over
    the union of both selections, with terms missing from one side counting as zero.

    Returns:
        float: Similarity in [0, 1]; 0.0 when either vector is empty.
    """
    cfg = config or _config()
    vectorizer = _build_vectorizer(cfg)
    try:
        matrix = vectorizer.fit_transform([normalized_a, normalized_b])
    except ValueError:
        # Raised by scikit-learn when no document yields a single term.
        logger.debug("TF-IDF vocabulary is empty for the given pair; similarity is 0.")
        return 0.0
    dense = matrix.toarray()
    terms_a = _top_terms(dense[0], cfg.top_terms)
    terms_b = _top_terms(dense[1], cfg.top_terms)
    return min(1.0, max(0.0, _cosine(terms_a, terms_b)))


def calculate_text_similarity(text1: str, text2: str, config: SimilarityConfig | None = None) -> float:
    """Similarity score in [0, 1] between two raw texts; see `similarity` for the method selection."""
    return similarity(text1, text2, config=config).score


def similarity(text1: str, text2: str, config: SimilarityConfig | None = None) -> SimilarityResult:
    """
    Compare two text fragments.

    Args:
        text1 (str): First text.
        text2 (str): Second text.
        config (SimilarityConfig | None): Engine configuration; defaults to application settings.

    Returns:
        SimilarityResult: Score in [0, 1], its severity bucket and the method used.
    """
    cfg = config or _config()
    normalized1 = normalize_text(text1)
    normalized2 = normalize_text(text2)

    if len(normalized1) < cfg.short_text_threshold or len(normalized2) < cfg.short_text_threshold:
        score = jaccard_word_overlap(normalized1, normalized2)
        method = "jaccard"
    else:
        score = tfidf_cosine_similarity(normalized1, normalized2, cfg)
        method = "tfidf_cosine"

    severity = similarity_severity(score, cfg)
    logger.debug(
        "Similarity %.4f (%s, %s) for texts of %d and %d chars.",
        score,
        method,
        severity,
        len(normalized1),
        len(normalized2),
    )
    return SimilarityResult(score=score, severity=severity, method=method)


def extract_overlap(
    text1: str,
    text2: str,
    min_length: int | None = None,
    config: SimilarityConfig | None = None,
) -> list[str]:
    """
    Extract word n-gram phrases that occur in both texts.

    Sizes `ngram_min` through `ngram_max` (3 to 8 by default) are searched over the
    normalized word sequences. Phrases shorter than `min_length` characters are dropped.

    Args:
        text1 (str): First text.
        text2 (str): Second text.
        min_length (int | None): Minimum phrase length in characters; defaults to `overlap_min_length`.
        config (SimilarityConfig | None): Engine configuration; defaults to application settings.

    Returns:
        list[str]: Unique shared phrases, longest first; equal lengths keep discovery order.
    """
    cfg = config or _config()
    minimum = cfg.overlap_min_length if min_length is None else min_length
    words1 = normalized_words(text1)
    words2 = normalized_words(text2)

    overlaps: dict[str, None] = {}
    for n in range(cfg.ngram_min, cfg.ngram_max + 1):
        ngrams2 = set(word_ngrams(words2, n))
        if not ngrams2:
            continue
        for ngram in word_ngrams(words1, n):
            if len(ngram) >= minimum and ngram in ngrams2:
                overlaps.setdefault(ngram, None)

    return sorted(overlaps, key=len, reverse=True)


def claim_word_overlap(claim: str, text: str) -> float:
    """
    Fraction of the claim's words (with repeats) that occur anywhere in the text.

    Returns 0.0 for a claim without words.
    """
    claim_words = normalized_words(claim)
    if not claim_words:
        return 0.0
    text_words = set(normalized_words(text))
    matched = sum(1 for word in claim_words if word in text_words)
    return matched / len(claim_words)


def contains_normalized(claim: str, text: str) -> bool:
    """True if the normalized claim is a non-empty substring of the normalized text."""
    normalized_claim = normalize_text(claim)
    return bool(normalized_claim) and normalized_claim in normalize_text(text)


def fuzzy_contains(claim: str, text: str, threshold: float = 0.6) -> bool:
    """
    Check whether a claim appears in a text, exactly or approximately.

    Args:
        claim (str): The assertion to look for.
        text (str): The text to search.
        threshold (float): Minimum share of claim words found in the text for a fuzzy match.

    Returns:
        bool: True on an exact normalized substring match or when the word overlap reaches
              `threshold`. A claim with no words never matches.
    """
    if contains_normalized(claim, text):
        return True
    if not normalized_words(claim):
        return False
    return claim_word_overlap(claim, text) >= threshold


def extract_key_topics(text: str, count: int = 10, config: SimilarityConfig | None = None) -> list[str]:
    """
    Return the highest TF-IDF weighted terms of a single text.

    With one document every term has the same inverse document frequency, so the
    ranking follows term frequency; ties keep alphabetical order.
    """
    cfg = config or _config()
    normalized = normalize_text(text)
    if not normalized or count <= 0:
        return []
    vectorizer = _build_vectorizer(cfg)
    try:
        matrix = vectorizer.fit_transform([normalized])
    except ValueError:
        return []
    vocabulary = vectorizer.get_feature_names_out()
    top = _top_terms(matrix.toarray()[0], count)
    return [str(vocabulary[i]) for i in top]


def extract_sentences_with_keywords(text: str, keywords: Iterable[str]) -> list[str]:
    """
    Return the sentences of `text` that contain any of the keywords after normalization.

    Empty keywords are ignored.
    """
    normalized_keywords = [k for k in (normalize_text(keyword) for keyword in keywords) if k]
    if not normalized_keywords:
        return []
    return [
        sentence
        for sentence in split_sentences(text)
        if any(keyword in normalize_text(sentence) for keyword in normalized_keywords)
    ]


def best_overlap(claim: str, sources: Sequence[str]) -> tuple[int | None, float]:
    """
    Find the source text that best contains a claim.

    An exact normalized containment scores 1.0, otherwise the claim word overlap is used.
    Ties resolve to the earliest source.

    Returns:
        tuple[int | None, float]: The best source index (None for no sources) and its confidence.
    """
    best_index: int | None = None
    best_confidence = 0.0
    for index, source in enumerate(sources):
        confidence = 1.0 if contains_normalized(claim, source) else claim_word_overlap(claim, source)
        if best_index is None or confidence > best_confidence:
            best_index, best_confidence = index, confidence
    return best_index, best_confidence
