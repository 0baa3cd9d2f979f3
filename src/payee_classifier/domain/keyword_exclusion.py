"""Keyword exclusion: a lexicon check that overrides the scoring decision.

A payee matching any configured exclusion keyword is forced to `Business`
regardless of its score.

Usage example:
    from payee_classifier.domain.keyword_exclusion import KeywordExclusionChecker

    checker = KeywordExclusionChecker(("WALMART", "BANK OF AMERICA"))
    result = checker.check("Walmart Supercenter #123")
    assert result.is_excluded and result.confidence == 100
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from .features import tokenize
from .normalization import normalize_payee_name
from .similarity import SimilarityScores, combined_similarity

EXACT_MATCH_CONFIDENCE = 100.0
FUZZY_TOKEN_THRESHOLD = 90.0
NO_KEYWORDS_REASONING = "No exclusion keywords configured"
NO_MATCH_REASONING = "No exclusion keywords matched"


@dataclass(frozen=True)
class KeywordExclusionResult:
    is_excluded: bool
    matched_keywords: tuple[str, ...] = ()
    confidence: float = 0.0
    reasoning: str = NO_MATCH_REASONING
    similarity_scores: SimilarityScores | None = None


@dataclass(frozen=True)
class _FuzzyMatch:
    keyword: str
    scores: SimilarityScores


def _contains_phrase(tokens: list[str], phrase_tokens: list[str]) -> bool:
    width = len(phrase_tokens)
    return any(tokens[i : i + width] == phrase_tokens for i in range(len(tokens) - width + 1))


@dataclass(frozen=True)
class KeywordExclusionChecker:
    """Match payee names against a configured exclusion keyword list.

    Matching is on normalized names: a keyword matches exactly when its tokens
    appear as a contiguous token run in the name (confidence 100). Single-token
    keywords additionally match fuzzily when a name token reaches a combined
    similarity of at least 90 (confidence is that similarity).
    """

    keywords: tuple[str, ...] = ()
    fuzzy_threshold: float = FUZZY_TOKEN_THRESHOLD
    _normalized: tuple[tuple[str, str], ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        pairs = tuple(
            (keyword, normalize_payee_name(keyword))
            for keyword in self.keywords
            if normalize_payee_name(keyword)
        )
        object.__setattr__(self, "_normalized", pairs)

    @classmethod
    def from_keywords(cls, keywords: Iterable[str]) -> KeywordExclusionChecker:
        return cls(tuple(keywords))

    def check(self, payee_name: str) -> KeywordExclusionResult:
        if not self._normalized:
            return KeywordExclusionResult(is_excluded=False, reasoning=NO_KEYWORDS_REASONING)

        tokens = tokenize(normalize_payee_name(payee_name))
        exact: list[str] = []
        fuzzy: list[_FuzzyMatch] = []

        for keyword, normalized_keyword in self._normalized:
            keyword_tokens = normalized_keyword.split()
            if _contains_phrase(tokens, keyword_tokens):
                exact.append(keyword)
                continue
            if len(keyword_tokens) != 1:
                continue
            best = self._best_token_match(tokens, normalized_keyword)
            if best is not None:
                fuzzy.append(_FuzzyMatch(keyword=keyword, scores=best))

        if not exact and not fuzzy:
            return KeywordExclusionResult(is_excluded=False)

        matched = tuple(exact) + tuple(match.keyword for match in fuzzy)
        candidates = [match.scores.combined for match in fuzzy]
        if exact:
            candidates.append(EXACT_MATCH_CONFIDENCE)
        confidence = max(candidates)
        best_fuzzy = max(fuzzy, key=lambda match: match.scores.combined) if fuzzy else None
        return KeywordExclusionResult(
            is_excluded=True,
            matched_keywords=matched,
            confidence=confidence,
            reasoning=_build_reasoning(exact, fuzzy),
            similarity_scores=best_fuzzy.scores if best_fuzzy else None,
        )

    def _best_token_match(self, tokens: list[str], keyword: str) -> SimilarityScores | None:
        best: SimilarityScores | None = None
        for token in tokens:
            scores = combined_similarity(token, keyword)
            if scores.combined >= self.fuzzy_threshold and (
                best is None or scores.combined > best.combined
            ):
                best = scores
        return best


def _build_reasoning(exact: list[str], fuzzy: list[_FuzzyMatch]) -> str:
    parts: list[str] = []
    if exact:
        parts.append(f"Exact matches: {', '.join(exact)}")
    if fuzzy:
        described = ", ".join(
            f"{match.keyword} ({match.scores.combined:.1f}% similar)" for match in fuzzy
        )
        parts.append(f"Fuzzy matches: {described}")
    return f"Excluded due to keyword matches - {'; '.join(parts)}"
