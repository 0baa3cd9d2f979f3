"""Tests for the deterministic scoring engine."""

import pytest

from payee_classifier.domain.features import FeatureFlags, extract_features
from payee_classifier.domain.normalization import normalize_payee_name
from payee_classifier.domain.scoring import (
    DEFAULT_WEIGHTS,
    FALLBACK_RATIONALE,
    EntityType,
    LibrarySimulation,
    ScoringWeights,
    build_rationale,
    calibrate_confidence,
    decide,
    score_features,
    weighted_score,
)

NO_LIBRARY = LibrarySimulation()


def _flags(**overrides: object) -> FeatureFlags:
    values: dict[str, object] = {
        "has_business_suffix": False,
        "has_honorific": False,
        "has_generation_suffix": False,
        "has_ampersand_or_and": False,
        "contains_business_keyword": False,
        "has_first_name_match": False,
        "looks_like_tax_id": False,
        "token_count": 3,
    }
    values.update(overrides)
    return FeatureFlags(**values)  # type: ignore[arg-type]


def _score(raw: str, library: LibrarySimulation = NO_LIBRARY):
    return score_features(extract_features(normalize_payee_name(raw)), library)


def test_business_suffix_and_keyword_is_business() -> None:
    result = _score("ABC Construction LLC")

    assert result.entity_type is EntityType.BUSINESS
    assert result.score == pytest.approx(1.2)
    assert result.confidence >= 0.62
    assert result.confidence == 1.0
    assert result.rationale == "business suffix, business keyword detected."


def test_first_name_with_surname_is_individual() -> None:
    result = _score("John Smith")

    assert result.entity_type is EntityType.INDIVIDUAL
    assert result.score == pytest.approx(-0.78)
    assert result.confidence == pytest.approx(0.62 + 0.33 * 0.78)
    assert result.rationale == "first name match detected."


def test_ampersand_alone_reaches_business_threshold() -> None:
    result = _score("Smith & Jones")

    assert result.entity_type is EntityType.BUSINESS
    assert result.score == pytest.approx(0.25)


def test_tie_break_prefers_business_flag_over_first_name() -> None:
    result = _score("Andrew Co")

    assert -0.25 < result.score < 0.25
    assert result.entity_type is EntityType.BUSINESS


def test_tie_break_first_name_without_business_flag() -> None:
    flags = _flags(has_first_name_match=True, token_count=3)
    library = LibrarySimulation(spacy_org_prob=0.9)

    assert decide(0.0, flags, library) is EntityType.INDIVIDUAL


def test_tie_break_falls_back_to_library_probabilities() -> None:
    flags = _flags(token_count=1)

    assert decide(0.0, flags, LibrarySimulation(spacy_org_prob=0.6)) is EntityType.BUSINESS
    assert decide(0.0, flags, LibrarySimulation(spacy_person_prob=0.6)) is (
        EntityType.INDIVIDUAL
    )


def test_tie_without_signals_is_individual() -> None:
    result = _score("Acme")

    assert result.score == 0.0
    assert result.entity_type is EntityType.INDIVIDUAL
    assert result.confidence == pytest.approx(0.62)
    assert result.rationale == FALLBACK_RATIONALE


def test_library_probabilities_are_weighted() -> None:
    flags = _flags(token_count=1)
    library = LibrarySimulation(spacy_org_prob=1.0, spacy_person_prob=0.5)

    assert weighted_score(flags, library) == pytest.approx(0.22 - 0.16)


def test_confidence_is_capped_at_one() -> None:
    assert calibrate_confidence(5.0) == 1.0
    assert calibrate_confidence(-5.0) == 1.0
    assert calibrate_confidence(0.0) == pytest.approx(DEFAULT_WEIGHTS.confidence_floor)


def test_rationale_keeps_priority_order_and_limit() -> None:
    flags = _flags(
        has_business_suffix=True,
        contains_business_keyword=True,
        has_first_name_match=True,
        has_honorific=True,
        has_ampersand_or_and=True,
        looks_like_tax_id=True,
    )

    assert build_rationale(flags, NO_LIBRARY) == (
        "business suffix, business keyword, first name match, honorific title detected."
    )


def test_ner_signals_only_count_above_threshold() -> None:
    flags = _flags(token_count=1)

    assert build_rationale(flags, LibrarySimulation(spacy_org_prob=0.6)) == FALLBACK_RATIONALE
    assert build_rationale(flags, LibrarySimulation(spacy_org_prob=0.61)) == (
        "ORG NER detection detected."
    )


def test_scoring_is_pure() -> None:
    flags = extract_features(normalize_payee_name("Dr. Jane Doe Jr."))
    library = LibrarySimulation(spacy_org_prob=0.1, spacy_person_prob=0.85)

    assert score_features(flags, library) == score_features(flags, library)


def test_custom_weights_change_decision() -> None:
    weights = ScoringWeights(ampersand_or_and=0.1)
    flags = extract_features(normalize_payee_name("Smith & Jones"))

    result = score_features(flags, NO_LIBRARY, weights)

    assert result.score == pytest.approx(0.1)
    assert result.entity_type is EntityType.INDIVIDUAL
