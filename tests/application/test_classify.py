"""Tests for single-name classification."""

from payee_classifier.application.classify import PayeeClassifier
from payee_classifier.domain.classification import (
    DETERMINISTIC_METHOD,
    KEYWORD_EXCLUSION_METHOD,
    Classification,
    ProcessingTier,
)
from payee_classifier.domain.keyword_exclusion import KeywordExclusionChecker


def test_business_suffix_classifies_as_business() -> None:
    result = PayeeClassifier().classify("ABC Construction LLC")

    assert result.classification is Classification.BUSINESS
    assert result.confidence >= 62
    assert result.processing_tier is ProcessingTier.RULE_BASED
    assert result.processing_method == DETERMINISTIC_METHOD
    assert result.matching_rules


def test_person_name_classifies_as_individual() -> None:
    result = PayeeClassifier().classify("John Smith")

    assert result.classification is Classification.INDIVIDUAL
    assert result.confidence >= 62
    assert result.keyword_exclusion.is_excluded is False


def test_exclusion_keyword_overrides_scoring(
    exclusion_checker: KeywordExclusionChecker,
) -> None:
    classifier = PayeeClassifier(exclusion=exclusion_checker)

    result = classifier.classify("Walmart Supercenter #123")

    assert result.classification is Classification.BUSINESS
    assert result.processing_tier is ProcessingTier.EXCLUDED
    assert result.processing_method == KEYWORD_EXCLUSION_METHOD
    assert result.confidence == 100
    assert result.matching_rules == ("keyword:WALMART",)


def test_exclusion_applies_to_person_like_names(
    exclusion_checker: KeywordExclusionChecker,
) -> None:
    result = PayeeClassifier(exclusion=exclusion_checker).classify("Bank of America")

    assert result.classification is Classification.BUSINESS
    assert result.keyword_exclusion.matched_keywords == ("BANK OF AMERICA",)


def test_blank_name_yields_failed_placeholder() -> None:
    result = PayeeClassifier().classify("   ")

    assert result.processing_tier is ProcessingTier.FAILED
    assert result.classification is Classification.INDIVIDUAL
    assert result.confidence == 0
    assert result.reasoning == "Processing Error: Empty payee name"


def test_classification_is_deterministic() -> None:
    classifier = PayeeClassifier()

    assert classifier.classify("Mary O'Neil") == classifier.classify("Mary O'Neil")
