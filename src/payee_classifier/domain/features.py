"""Feature flags derived from a normalized payee name.

Usage example:
    from payee_classifier.domain.features import extract_features

    flags = extract_features("ABC CONSTRUCTION LLC")
    assert flags.has_business_suffix
    assert flags.token_count == 3
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .lexicons import (
    BUSINESS_KEYWORDS,
    BUSINESS_SUFFIXES,
    FIRST_NAMES,
    GENERATION_SUFFIXES,
    HONORIFICS,
    TAX_ID_RE,
)


@dataclass(frozen=True)
class FeatureFlags:
    """Signals extracted from one normalized name."""

    has_business_suffix: bool
    has_honorific: bool
    has_generation_suffix: bool
    has_ampersand_or_and: bool
    contains_business_keyword: bool
    has_first_name_match: bool
    looks_like_tax_id: bool
    token_count: int

    @property
    def has_business_flag(self) -> bool:
        return self.has_business_suffix or self.contains_business_keyword


def tokenize(normalized: str) -> list[str]:
    """Split a normalized name on whitespace, dropping empty tokens."""
    return normalized.split()


def _contains_phrase(tokens: Sequence[str], phrase: str) -> bool:
    parts = phrase.split()
    width = len(parts)
    if width == 1:
        return parts[0] in tokens
    return any(list(tokens[i : i + width]) == parts for i in range(len(tokens) - width + 1))


def _matches_any(tokens: Sequence[str], lexicon: frozenset[str]) -> bool:
    return any(_contains_phrase(tokens, entry) for entry in lexicon)


def _ends_with_any(normalized: str, lexicon: frozenset[str]) -> bool:
    return any(normalized == entry or normalized.endswith(f" {entry}") for entry in lexicon)


def extract_features(normalized: str) -> FeatureFlags:
    """Compute feature flags for a normalized name.

    A flag holds when any token (or whole-token phrase) matches its lexicon; the
    suffix flags also hold when the name ends with the suffix.

    Args:
        normalized: Output of `normalize_payee_name`.

    Returns:
        FeatureFlags; all false with `token_count == 0` for an empty name.
    """
    tokens = tokenize(normalized)
    return FeatureFlags(
        has_business_suffix=_matches_any(tokens, BUSINESS_SUFFIXES)
        or _ends_with_any(normalized, BUSINESS_SUFFIXES),
        has_honorific=_matches_any(tokens, HONORIFICS),
        has_generation_suffix=_matches_any(tokens, GENERATION_SUFFIXES)
        or _ends_with_any(normalized, GENERATION_SUFFIXES),
        has_ampersand_or_and="AND" in tokens,
        contains_business_keyword=_matches_any(tokens, BUSINESS_KEYWORDS),
        has_first_name_match=_matches_any(tokens, FIRST_NAMES),
        looks_like_tax_id=TAX_ID_RE.search(" ".join(tokens)) is not None,
        token_count=len(tokens),
    )
