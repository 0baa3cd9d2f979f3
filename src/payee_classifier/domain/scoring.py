"""Weighted scoring of feature flags into a business/individual decision.

Usage example:
    from payee_classifier.domain.features import extract_features
    from payee_classifier.domain.scoring import LibrarySimulation, score_features

    result = score_features(extract_features("ABC CONSTRUCTION LLC"), LibrarySimulation())
    assert result.entity_type is EntityType.BUSINESS
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from .features import FeatureFlags


class EntityType(StrEnum):
    """Binary classification outcome."""

    BUSINESS = "Business"
    INDIVIDUAL = "Individual"


@dataclass(frozen=True)
class LibrarySimulation:
    """Named-entity probabilities supplied by an NER signal provider."""

    spacy_org_prob: float = 0.0
    spacy_person_prob: float = 0.0


@dataclass(frozen=True)
class ScoringWeights:
    """Tuned scoring constants.

    The values carry no documented derivation; keep them configurable rather
    than re-deriving them.
    """

    business_suffix: float = 0.70
    business_keyword: float = 0.50
    ampersand_or_and: float = 0.25
    org_probability: float = 0.22
    tax_id: float = 0.15
    first_name: float = -0.60
    honorific: float = -0.45
    person_probability: float = -0.32
    generation_suffix: float = -0.22
    two_tokens: float = -0.18
    decision_threshold: float = 0.25
    tie_break_max_tokens: int = 3
    confidence_floor: float = 0.62
    confidence_slope: float = 0.33
    ner_signal_threshold: float = 0.6
    max_rationale_signals: int = 4


DEFAULT_WEIGHTS = ScoringWeights()
FALLBACK_RATIONALE = "Token patterns and library analysis."


@dataclass(frozen=True)
class DeterministicResult:
    """Decision from the scoring engine. Confidence is calibrated to [0, 1]."""

    entity_type: EntityType
    confidence: float
    rationale: str
    score: float


def weighted_score(
    features: FeatureFlags,
    library: LibrarySimulation,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> float:
    """Sum the ten signed scoring terms."""
    return (
        weights.business_suffix * features.has_business_suffix
        + weights.business_keyword * features.contains_business_keyword
        + weights.ampersand_or_and * features.has_ampersand_or_and
        + weights.org_probability * library.spacy_org_prob
        + weights.tax_id * features.looks_like_tax_id
        + weights.first_name * features.has_first_name_match
        + weights.honorific * features.has_honorific
        + weights.person_probability * library.spacy_person_prob
        + weights.generation_suffix * features.has_generation_suffix
        + weights.two_tokens * (features.token_count == 2)
    )


def decide(
    score: float,
    features: FeatureFlags,
    library: LibrarySimulation,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> EntityType:
    """Apply the threshold rule, falling back to the tie-break heuristics."""
    if score >= weights.decision_threshold:
        return EntityType.BUSINESS
    if score <= -weights.decision_threshold:
        return EntityType.INDIVIDUAL

    if (
        features.has_first_name_match
        and features.token_count <= weights.tie_break_max_tokens
        and not features.has_business_flag
    ):
        return EntityType.INDIVIDUAL
    if features.has_business_flag:
        return EntityType.BUSINESS
    if library.spacy_org_prob > library.spacy_person_prob:
        return EntityType.BUSINESS
    return EntityType.INDIVIDUAL


def calibrate_confidence(score: float, weights: ScoringWeights = DEFAULT_WEIGHTS) -> float:
    """Map the decision margin to a confidence in [floor, 1.0]."""
    return min(1.0, weights.confidence_floor + weights.confidence_slope * abs(score))


def fired_signals(
    features: FeatureFlags,
    library: LibrarySimulation,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> list[str]:
    """Return the names of fired signals in rationale priority order."""
    candidates = (
        ("business suffix", features.has_business_suffix),
        ("business keyword", features.contains_business_keyword),
        ("first name match", features.has_first_name_match),
        ("honorific title", features.has_honorific),
        ("AND/& operator", features.has_ampersand_or_and),
        ("ORG NER detection", library.spacy_org_prob > weights.ner_signal_threshold),
        ("PERSON NER detection", library.spacy_person_prob > weights.ner_signal_threshold),
        ("generation suffix", features.has_generation_suffix),
        ("tax ID pattern", features.looks_like_tax_id),
    )
    return [label for label, fired in candidates if fired]


def build_rationale(
    features: FeatureFlags,
    library: LibrarySimulation,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> str:
    signals = fired_signals(features, library, weights)[: weights.max_rationale_signals]
    if not signals:
        return FALLBACK_RATIONALE
    return f"{', '.join(signals)} detected."


def score_features(
    features: FeatureFlags,
    library: LibrarySimulation,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> DeterministicResult:
    """Fuse feature flags and NER probabilities into a decision.

    Pure: identical inputs always produce an identical result.

    Args:
        features: Flags from `extract_features`.
        library: NER probabilities from the configured signal provider.
        weights: Scoring constants.

    Returns:
        DeterministicResult with decision, calibrated confidence and rationale.
    """
    score = weighted_score(features, library, weights)
    return DeterministicResult(
        entity_type=decide(score, features, library, weights),
        confidence=calibrate_confidence(score, weights),
        rationale=build_rationale(features, library, weights),
        score=score,
    )
