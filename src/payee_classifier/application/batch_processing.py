"""Batch orchestration: realtime classification or submission as an async job.

Usage example:
    orchestrator = BatchOrchestrator(classifier=PayeeClassifier(), tracker=tracker)
    result = await orchestrator.process_batch(names, ProcessingMode.REALTIME)
    handle = await orchestrator.process_batch(
        names, ProcessingMode.BATCH, original_file_data=rows
    )
"""

from __future__ import annotations

import asyncio
import time
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum

from ..domain.batch_job import StoredBatchJob
from ..domain.classification import (
    AI_METHOD,
    BatchProcessingResult,
    ClassificationResult,
    PayeeClassification,
    ProcessingTier,
    Row,
    excluded_result,
)
from ..domain.normalization import normalize_payee_name
from ..exceptions import (
    AlignmentError,
    BatchJobCreationError,
    EmptyBatchError,
    PayeeClassifierError,
    ValidationError,
)
from ..observability import get_logger
from ..protocols import ProgressCallback, RealtimeAiClassifier
from .classify import EMPTY_NAME_DETAIL, PayeeClassifier
from .job_lifecycle import JobLifecycleTracker

logger = get_logger("payee_classifier.batch")

PAYEE_NAME_COLUMN = "Payee_Name"


class ProcessingMode(StrEnum):
    REALTIME = "realtime"
    BATCH = "batch"


@dataclass(frozen=True)
class BatchJobHandle:
    """The persisted job returned by the batch path."""

    job: StoredBatchJob
    payee_count: int

    @property
    def id(self) -> str:
        return self.job.id


class BatchOrchestratorNotConfiguredError(ValidationError):
    """Raised when batch mode is requested without a job lifecycle tracker."""

    def __init__(self) -> None:
        super().__init__("Batch mode requires a configured batch job service.")


def group_duplicate_names(names: Sequence[str]) -> list[list[int]]:
    """Group input positions whose names normalize to the same text.

    Groups are ordered by first occurrence. Blank names are never grouped, so
    each keeps its own failed result.
    """
    by_key: dict[str, list[int]] = {}
    ordered: list[list[int]] = []
    for index, name in enumerate(names):
        key = normalize_payee_name(name)
        if key and key in by_key:
            by_key[key].append(index)
            continue
        group = [index]
        ordered.append(group)
        if key:
            by_key[key] = group
    return ordered


def _percentage(current: int, total: int) -> int:
    return 100 if total == 0 else (current * 100) // total


class BatchOrchestrator:
    """Choose realtime or async execution for a list of payee names.

    Output positions always follow input positions: the result at index `i`
    carries `row_index == i` and belongs to `original_file_data[i]`.
    """

    def __init__(
        self,
        *,
        classifier: PayeeClassifier,
        tracker: JobLifecycleTracker | None = None,
        ai_classifier: RealtimeAiClassifier | None = None,
        max_concurrency: int = 8,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self.classifier = classifier
        self.tracker = tracker
        self.ai_classifier = ai_classifier
        self.max_concurrency = max(1, max_concurrency)
        self._clock = clock

    async def process_batch(
        self,
        names: Sequence[str],
        mode: ProcessingMode,
        on_progress: ProgressCallback | None = None,
        original_file_data: Sequence[Row] | None = None,
        description: str | None = None,
    ) -> BatchProcessingResult | BatchJobHandle:
        """Classify `names` in `mode`, reporting `(current, total, percentage)` progress.

        Raises:
            EmptyBatchError: If `names` is empty.
            AlignmentError: If `original_file_data` is given with a different length.
            BatchJobCreationError: If the batch path cannot create a job.
        """
        if not names:
            raise EmptyBatchError()
        if original_file_data is not None and len(original_file_data) != len(names):
            raise AlignmentError(payee_count=len(names), row_count=len(original_file_data))

        if mode is ProcessingMode.BATCH:
            return await self._submit(names, on_progress, original_file_data, description)
        return await self._run_realtime(names, on_progress, original_file_data)

    async def _submit(
        self,
        names: Sequence[str],
        on_progress: ProgressCallback | None,
        original_file_data: Sequence[Row] | None,
        description: str | None,
    ) -> BatchJobHandle:
        if self.tracker is None:
            raise BatchOrchestratorNotConfiguredError()
        rows = (
            list(original_file_data)
            if original_file_data is not None
            else [{PAYEE_NAME_COLUMN: name} for name in names]
        )
        label = description or f"Payee classification batch: {len(names)} payees"
        try:
            stored = await self.tracker.submit(names, rows, label)
        except (ValidationError, AlignmentError):
            raise
        except PayeeClassifierError as exc:
            logger.error("Batch job creation failed: %s", exc)
            raise BatchJobCreationError(exc) from exc

        if on_progress is not None:
            on_progress(len(names), len(names), 100)
        return BatchJobHandle(job=stored, payee_count=len(names))

    async def _run_realtime(
        self,
        names: Sequence[str],
        on_progress: ProgressCallback | None,
        original_file_data: Sequence[Row] | None,
    ) -> BatchProcessingResult:
        started = time.perf_counter()
        total = len(names)
        batch_id = uuid.uuid4().hex[:8]
        semaphore = asyncio.Semaphore(self.max_concurrency)
        groups = group_duplicate_names(names)
        slots: list[PayeeClassification | None] = [None] * total
        completed = 0

        async def run_group(indexes: list[int]) -> None:
            nonlocal completed
            async with semaphore:
                result = await self._classify_one(names[indexes[0]])
            timestamp = self._clock()
            for index in indexes:
                slots[index] = PayeeClassification(
                    id=f"{batch_id}-{index}",
                    payee_name=names[index],
                    result=result,
                    timestamp=timestamp,
                    row_index=index,
                )
            completed += len(indexes)
            if on_progress is not None:
                on_progress(completed, total, _percentage(completed, total))

        if len(groups) < total:
            logger.info(
                "Realtime batch %s: %d unique names among %d payees",
                batch_id,
                len(groups),
                total,
            )
        await asyncio.gather(*(run_group(indexes) for indexes in groups))
        results = [item for item in slots if item is not None]
        batch = BatchProcessingResult.from_results(
            results,
            original_file_data=original_file_data,
            processing_time=time.perf_counter() - started,
        )
        logger.info(
            "Realtime batch %s: %d classified, %d failed in %.2fs",
            batch_id,
            batch.success_count,
            batch.failure_count,
            batch.processing_time or 0.0,
        )
        return batch

    async def _classify_one(self, name: str) -> ClassificationResult:
        if self.ai_classifier is None:
            return self.classifier.classify(name)

        exclusion = self.classifier.exclusion.check(name)
        if exclusion.is_excluded:
            return excluded_result(exclusion)
        if not name.strip():
            return ClassificationResult.failed(EMPTY_NAME_DETAIL, keyword_exclusion=exclusion)
        try:
            result = await self.ai_classifier.classify(name)
        except (PayeeClassifierError, OSError) as exc:
            logger.warning("AI classification failed for %r: %s", name, exc)
            return ClassificationResult.failed(str(exc), keyword_exclusion=exclusion)
        if result.processing_tier is ProcessingTier.FAILED:
            return result.with_exclusion(exclusion)
        return ClassificationResult(
            classification=result.classification,
            confidence=result.confidence,
            reasoning=result.reasoning,
            processing_tier=ProcessingTier.AI_ASSISTED,
            matching_rules=result.matching_rules,
            keyword_exclusion=exclusion,
            processing_method=result.processing_method or AI_METHOD,
            similarity_scores=result.similarity_scores,
        )
