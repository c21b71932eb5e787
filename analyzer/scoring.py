"""
Similarity between a paragraph and a candidate quote: a blend of word-set
Jaccard and trigram Jaccard, weighted towards trigrams since shared
three-word runs mean the text was actually quoted.
"""
from typing import AbstractSet

from analyzer.config import NGRAM_WEIGHT, WORD_WEIGHT
from analyzer.normalize import TRIGRAM, ngrams, word_set


def jaccard(a: AbstractSet[str], b: AbstractSet[str]) -> float:
    # Empty union counts as 1 so two empty sets score 0, not NaN.
    union = len(a | b) or 1
    return len(a & b) / union


def check_weights(word_weight: float, ngram_weight: float):
    if word_weight < 0 or ngram_weight < 0:
        raise ValueError(f"Score weights must be non-negative, got {word_weight}/{ngram_weight}")
    if word_weight + ngram_weight > 1.0 + 1e-9:
        raise ValueError(f"Score weights must sum to at most 1, got {word_weight + ngram_weight}")


def match_score(a: str, b: str, word_weight: float = WORD_WEIGHT, ngram_weight: float = NGRAM_WEIGHT) -> float:
    """Returns 0..1 based on overlap of words and trigrams. Symmetric in (a, b)."""
    check_weights(word_weight, ngram_weight)
    words = jaccard(word_set(a), word_set(b))
    tris = jaccard(ngrams(a, TRIGRAM), ngrams(b, TRIGRAM))
    return word_weight * words + ngram_weight * tris
