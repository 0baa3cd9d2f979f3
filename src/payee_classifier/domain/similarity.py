"""String similarity scores for fuzzy keyword matching.

All scores are percentages in [0, 100].

Usage example:
    from payee_classifier.domain.similarity import combined_similarity

    scores = combined_similarity("WALMART", "WAL MART")
    assert scores.combined > 80
"""

from __future__ import annotations

from dataclasses import dataclass

from rapidfuzz import fuzz
from rapidfuzz.distance import JaroWinkler, Levenshtein

_LEVENSHTEIN_WEIGHT = 0.25
_JARO_WINKLER_WEIGHT = 0.35
_DICE_WEIGHT = 0.25
_TOKEN_SORT_WEIGHT = 0.15


@dataclass(frozen=True)
class SimilarityScores:
    levenshtein: float
    jaro_winkler: float
    dice: float
    token_sort: float
    combined: float


def _bigrams(text: str) -> list[str]:
    compact = text.replace(" ", "")
    return [compact[i : i + 2] for i in range(len(compact) - 1)]


def dice_coefficient(left: str, right: str) -> float:
    """Sørensen-Dice coefficient over character bigrams, as a percentage."""
    if left == right:
        return 100.0
    left_bigrams = _bigrams(left)
    right_bigrams = _bigrams(right)
    if not left_bigrams or not right_bigrams:
        return 0.0

    remaining = list(right_bigrams)
    overlap = 0
    for bigram in left_bigrams:
        if bigram in remaining:
            remaining.remove(bigram)
            overlap += 1
    return 200.0 * overlap / (len(left_bigrams) + len(right_bigrams))


def combined_similarity(left: str, right: str) -> SimilarityScores:
    """Return the individual and weighted-combined similarity of two strings."""
    levenshtein = Levenshtein.normalized_similarity(left, right) * 100.0
    jaro_winkler = JaroWinkler.normalized_similarity(left, right) * 100.0
    dice = dice_coefficient(left, right)
    token_sort = float(fuzz.token_sort_ratio(left, right))
    combined = (
        levenshtein * _LEVENSHTEIN_WEIGHT
        + jaro_winkler * _JARO_WINKLER_WEIGHT
        + dice * _DICE_WEIGHT
        + token_sort * _TOKEN_SORT_WEIGHT
    )
    return SimilarityScores(
        levenshtein=levenshtein,
        jaro_winkler=jaro_winkler,
        dice=dice,
        token_sort=token_sort,
        combined=combined,
    )
