"""Tests for classification result types."""

from datetime import UTC, datetime

from payee_classifier.domain.classification import (
    FAILED_METHOD,
    KEYWORD_EXCLUSION_METHOD,
    BatchProcessingResult,
    Classification,
    ClassificationResult,
    PayeeClassification,
    ProcessingTier,
    RawBatchResult,
    excluded_result,
)
from payee_classifier.domain.keyword_exclusion import KeywordExclusionResult

TIMESTAMP = datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)


def _item(index: int, result: ClassificationResult) -> PayeeClassification:
    return PayeeClassification(
        id=f"t-{index}",
        payee_name=f"Payee {index}",
        result=result,
        timestamp=TIMESTAMP,
        row_index=index,
    )


def test_confidence_is_clamped() -> None:
    high = ClassificationResult(Classification.BUSINESS, 140, "", ProcessingTier.RULE_BASED)
    low = ClassificationResult(Classification.BUSINESS, -5, "", ProcessingTier.RULE_BASED)

    assert high.confidence == 100
    assert low.confidence == 0


def test_failed_result_is_individual_with_zero_confidence() -> None:
    result = ClassificationResult.failed("timeout")

    assert result.classification is Classification.INDIVIDUAL
    assert result.confidence == 0
    assert result.reasoning == "Processing Error: timeout"
    assert result.processing_tier is ProcessingTier.FAILED
    assert result.processing_method == FAILED_METHOD


def test_excluded_result_overrides_to_business() -> None:
    exclusion = KeywordExclusionResult(
        is_excluded=True,
        matched_keywords=("WALMART",),
        confidence=100.0,
        reasoning="Excluded due to keyword matches - Exact matches: WALMART",
    )

    result = excluded_result(exclusion)

    assert result.classification is Classification.BUSINESS
    assert result.confidence == 100
    assert result.processing_tier is ProcessingTier.EXCLUDED
    assert result.processing_method == KEYWORD_EXCLUSION_METHOD
    assert result.matching_rules == ("keyword:WALMART",)


def test_with_exclusion_keeps_result_when_not_excluded() -> None:
    base = ClassificationResult(Classification.INDIVIDUAL, 80, "x", ProcessingTier.AI_ASSISTED)
    exclusion = KeywordExclusionResult(is_excluded=False)

    assert base.with_exclusion(exclusion).processing_tier is ProcessingTier.AI_ASSISTED


def test_raw_batch_result_ok() -> None:
    assert RawBatchResult(index=0, classification=Classification.BUSINESS).ok is True
    assert RawBatchResult(index=0, error="No result found").ok is False
    assert RawBatchResult(index=0).ok is False


def test_batch_result_counts_failures() -> None:
    ok = ClassificationResult(Classification.BUSINESS, 90, "x", ProcessingTier.RULE_BASED)
    failed = ClassificationResult.failed("boom")

    batch = BatchProcessingResult.from_results(
        [_item(0, ok), _item(1, failed), _item(2, ok)],
        original_file_data=[{"a": 1}, {"a": 2}, {"a": 3}],
    )

    assert batch.success_count == 2
    assert batch.failure_count == 1
    assert batch.original_file_data == ({"a": 1}, {"a": 2}, {"a": 3})
    assert [item.row_index for item in batch.results] == [0, 1, 2]
