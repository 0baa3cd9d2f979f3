"""Single-name classification: exclusion check, then deterministic scoring.

Usage example:
    from payee_classifier.application.classify import PayeeClassifier

    classifier = PayeeClassifier()
    result = classifier.classify("ABC Construction LLC")
    assert result.classification == "Business"
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..domain.classification import (
    DETERMINISTIC_METHOD,
    ClassificationResult,
    ProcessingTier,
    excluded_result,
)
from ..domain.features import extract_features
from ..domain.keyword_exclusion import KeywordExclusionChecker
from ..domain.library_signals import ZeroSignalProvider
from ..domain.normalization import normalize_payee_name
from ..domain.scoring import DEFAULT_WEIGHTS, ScoringWeights, fired_signals, score_features
from ..protocols import NerSignalProvider

EMPTY_NAME_DETAIL = "Empty payee name"


@dataclass(frozen=True)
class PayeeClassifier:
    """Deterministic classifier with keyword-exclusion override.

    Never raises: a blank name yields a `Failed` placeholder so that batch
    positions stay aligned.
    """

    signal_provider: NerSignalProvider = field(default_factory=ZeroSignalProvider)
    exclusion: KeywordExclusionChecker = field(default_factory=KeywordExclusionChecker)
    weights: ScoringWeights = DEFAULT_WEIGHTS

    def classify(self, payee_name: str) -> ClassificationResult:
        exclusion = self.exclusion.check(payee_name)
        if exclusion.is_excluded:
            return excluded_result(exclusion)

        normalized = normalize_payee_name(payee_name)
        if not normalized:
            return ClassificationResult.failed(EMPTY_NAME_DETAIL, keyword_exclusion=exclusion)

        features = extract_features(normalized)
        library = self.signal_provider.signals(normalized)
        decision = score_features(features, library, self.weights)
        return ClassificationResult(
            classification=decision.entity_type,
            confidence=round(decision.confidence * 100),
            reasoning=decision.rationale,
            processing_tier=ProcessingTier.RULE_BASED,
            matching_rules=tuple(fired_signals(features, library, self.weights)),
            keyword_exclusion=exclusion,
            processing_method=DETERMINISTIC_METHOD,
        )
