"""Pure classification logic: no IO, no network, no clocks."""

from .batch_job import (
    BatchJob,
    BatchJobStatus,
    RequestCounts,
    StoredBatchJob,
    advance_status,
    is_valid_batch_job_id,
)
from .classification import (
    BatchProcessingResult,
    Classification,
    ClassificationResult,
    PayeeClassification,
    ProcessingTier,
    RawBatchResult,
    Row,
)
from .features import FeatureFlags, extract_features
from .keyword_exclusion import KeywordExclusionChecker, KeywordExclusionResult
from .normalization import name_match_key, normalize_payee_name
from .scoring import (
    DEFAULT_WEIGHTS,
    DeterministicResult,
    EntityType,
    LibrarySimulation,
    ScoringWeights,
    score_features,
)
from .similarity import SimilarityScores, combined_similarity

__all__ = [
    "DEFAULT_WEIGHTS",
    "BatchJob",
    "BatchJobStatus",
    "BatchProcessingResult",
    "Classification",
    "ClassificationResult",
    "DeterministicResult",
    "EntityType",
    "FeatureFlags",
    "KeywordExclusionChecker",
    "KeywordExclusionResult",
    "LibrarySimulation",
    "PayeeClassification",
    "ProcessingTier",
    "RawBatchResult",
    "RequestCounts",
    "Row",
    "ScoringWeights",
    "SimilarityScores",
    "StoredBatchJob",
    "advance_status",
    "combined_similarity",
    "extract_features",
    "is_valid_batch_job_id",
    "name_match_key",
    "normalize_payee_name",
    "score_features",
]
