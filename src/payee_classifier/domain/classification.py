"""Classification result types shared by the realtime and batch paths."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import StrEnum

from .keyword_exclusion import KeywordExclusionResult
from .scoring import EntityType
from .similarity import SimilarityScores

type CellValue = str | int | float | bool | date | datetime | None
type Row = Mapping[str, CellValue]

Classification = EntityType


class ProcessingTier(StrEnum):
    RULE_BASED = "Rule-Based"
    AI_ASSISTED = "AI-Assisted"
    EXCLUDED = "Excluded"
    FAILED = "Failed"
    DEFAULT = "Default"


KEYWORD_EXCLUSION_METHOD = "Keyword Exclusion"
DETERMINISTIC_METHOD = "Deterministic Scoring"
AI_METHOD = "AI Classification"
BATCH_METHOD = "Batch AI Classification"
FAILED_METHOD = "Processing Error"
FAILED_REASONING_PREFIX = "Processing Error: "
UNRESOLVED_ROW_INDEX = -1


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome for one payee name.

    `confidence` is a percentage in [0, 100]; `classification` is always set,
    failed rows carry `Individual` with confidence 0.
    """

    classification: Classification
    confidence: int
    reasoning: str
    processing_tier: ProcessingTier
    matching_rules: tuple[str, ...] = ()
    keyword_exclusion: KeywordExclusionResult = field(
        default_factory=lambda: KeywordExclusionResult(is_excluded=False)
    )
    processing_method: str = DETERMINISTIC_METHOD
    similarity_scores: SimilarityScores | None = None

    def __post_init__(self) -> None:
        clamped = max(0, min(100, round(self.confidence)))
        if clamped != self.confidence:
            object.__setattr__(self, "confidence", clamped)

    @classmethod
    def failed(
        cls, detail: str, *, keyword_exclusion: KeywordExclusionResult | None = None
    ) -> ClassificationResult:
        return cls(
            classification=Classification.INDIVIDUAL,
            confidence=0,
            reasoning=f"{FAILED_REASONING_PREFIX}{detail}",
            processing_tier=ProcessingTier.FAILED,
            keyword_exclusion=keyword_exclusion or KeywordExclusionResult(is_excluded=False),
            processing_method=FAILED_METHOD,
        )

    def with_exclusion(self, exclusion: KeywordExclusionResult) -> ClassificationResult:
        """Apply a keyword-exclusion override on top of this result."""
        if not exclusion.is_excluded:
            return replace(self, keyword_exclusion=exclusion)
        return excluded_result(exclusion)


def excluded_result(exclusion: KeywordExclusionResult) -> ClassificationResult:
    return ClassificationResult(
        classification=Classification.BUSINESS,
        confidence=round(exclusion.confidence),
        reasoning=exclusion.reasoning,
        processing_tier=ProcessingTier.EXCLUDED,
        matching_rules=tuple(f"keyword:{keyword}" for keyword in exclusion.matched_keywords),
        keyword_exclusion=exclusion,
        processing_method=KEYWORD_EXCLUSION_METHOD,
        similarity_scores=exclusion.similarity_scores,
    )


@dataclass(frozen=True)
class PayeeClassification:
    """A classified payee bound to its source row position."""

    id: str
    payee_name: str
    result: ClassificationResult
    timestamp: datetime
    row_index: int


@dataclass(frozen=True)
class RawBatchResult:
    """One line of batch job output, already mapped to its request index."""

    index: int
    classification: Classification | None = None
    confidence: int = 0
    reasoning: str = ""
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.classification is not None


@dataclass(frozen=True)
class BatchProcessingResult:
    """Ordered results for a batch, aligned 1:1 with `original_file_data` when present."""

    results: tuple[PayeeClassification, ...]
    success_count: int
    failure_count: int
    original_file_data: tuple[Row, ...] | None = None
    processing_time: float | None = None

    @classmethod
    def from_results(
        cls,
        results: Sequence[PayeeClassification],
        *,
        original_file_data: Sequence[Row] | None = None,
        processing_time: float | None = None,
    ) -> BatchProcessingResult:
        failures = sum(
            1 for item in results if item.result.processing_tier is ProcessingTier.FAILED
        )
        return cls(
            results=tuple(results),
            success_count=len(results) - failures,
            failure_count=failures,
            original_file_data=None if original_file_data is None else tuple(original_file_data),
            processing_time=processing_time,
        )
