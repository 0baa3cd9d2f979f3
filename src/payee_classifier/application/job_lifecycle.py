"""Batch job lifecycle: submit, poll, cancel and reconcile persisted jobs.

Usage example:
    tracker = JobLifecycleTracker(client=client, store=store)
    stored = await tracker.submit(names, rows, "Vendor master refresh")
    stored = await tracker.poll_until_terminal(stored.id)
    result = await tracker.complete(stored.id)
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Sequence
from dataclasses import replace
from datetime import UTC, datetime

from ..domain.batch_job import (
    BatchJob,
    BatchJobStatus,
    StoredBatchJob,
    is_forward_transition,
    is_valid_batch_job_id,
    merge_reported,
)
from ..domain.classification import (
    BATCH_METHOD,
    BatchProcessingResult,
    ClassificationResult,
    PayeeClassification,
    ProcessingTier,
    RawBatchResult,
    Row,
    excluded_result,
)
from ..domain.keyword_exclusion import KeywordExclusionChecker
from ..exceptions import (
    AlignmentError,
    InvalidJobIdError,
    JobNotCompletedError,
    NotFoundError,
    PayeeClassifierError,
    RetryExhaustedError,
    StoreError,
    TransientError,
)
from ..infrastructure.resilience import RetryController
from ..observability import get_logger
from ..protocols import BatchJobClient, JobStore, Sleeper

logger = get_logger("payee_classifier.jobs")

type JobUpdateCallback = Callable[[StoredBatchJob], None]


class JobLifecycleTracker:
    """Drive external batch jobs through their status lifecycle.

    Every network call runs under a fresh `RetryController`, so concurrent jobs
    never share retry state. The store is the source of truth between calls:
    payee names and original rows are read back from it whenever results are
    reconciled.
    """

    def __init__(
        self,
        *,
        client: BatchJobClient,
        store: JobStore,
        exclusion: KeywordExclusionChecker | None = None,
        max_retries: int = 3,
        base_delay_seconds: float = 1.0,
        poll_interval_seconds: float = 5.0,
        max_consecutive_poll_failures: int = 3,
        sleep: Sleeper = asyncio.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.client = client
        self.store = store
        self.exclusion = exclusion or KeywordExclusionChecker()
        self.max_retries = max_retries
        self.base_delay_seconds = base_delay_seconds
        self.poll_interval_seconds = poll_interval_seconds
        self.max_consecutive_poll_failures = max_consecutive_poll_failures
        self._sleep = sleep
        self._clock = clock

    def _retry(self) -> RetryController:
        return RetryController(
            max_retries=self.max_retries,
            base_delay_seconds=self.base_delay_seconds,
            sleep=self._sleep,
        )

    async def _prune(self, job_id: str, reason: str) -> None:
        logger.warning("Pruning job %s from storage: %s", job_id, reason)
        await asyncio.to_thread(self.store.remove, job_id)

    async def _require_valid_id(self, job_id: str) -> None:
        if not is_valid_batch_job_id(job_id):
            await self._prune(job_id, "invalid job id")
            raise InvalidJobIdError(job_id)

    async def list_jobs(self) -> list[StoredBatchJob]:
        """Return stored jobs, pruning any whose id fails validation."""
        jobs = await asyncio.to_thread(self.store.load)
        valid: list[StoredBatchJob] = []
        for job in jobs:
            if is_valid_batch_job_id(job.id):
                valid.append(job)
            else:
                await self._prune(job.id, "invalid job id")
        return valid

    async def get(self, job_id: str) -> StoredBatchJob:
        await self._require_valid_id(job_id)
        for job in await asyncio.to_thread(self.store.load):
            if job.id == job_id:
                return job
        raise NotFoundError(job_id)

    async def submit(
        self, names: Sequence[str], rows: Sequence[Row], description: str
    ) -> StoredBatchJob:
        """Submit names as one job and persist it with its rows.

        If the created job cannot be recorded, a cancel is requested for it
        before the error is re-raised, so no remote job is left untracked.

        Raises:
            AlignmentError: If names and rows differ in length, or the service
                reports a request count that disagrees with the names.
            StoreError: If the job store rejects the new record.
        """
        if len(names) != len(rows) or not names:
            raise AlignmentError(payee_count=len(names), row_count=len(rows))
        job = await self._retry().run(self.client.submit_job, list(names), description)
        try:
            stored = StoredBatchJob.create(
                job, names, rows, created_at_ms=int(self._clock() * 1000)
            )
            await asyncio.to_thread(self.store.save, stored)
        except (AlignmentError, StoreError):
            logger.error("Job %s was created but could not be stored", job.id)
            await self._cancel_untracked(job.id)
            raise
        logger.info("Submitted batch job %s with %d payees", job.id, len(names))
        return stored

    async def _cancel_untracked(self, job_id: str) -> None:
        try:
            await self.client.cancel_job(job_id)
        except PayeeClassifierError as exc:
            logger.error("Could not cancel untracked job %s: %s", job_id, exc)
            return
        logger.warning("Cancelled untracked job %s", job_id)

    async def refresh(self, job_id: str) -> StoredBatchJob:
        """Poll the service once and persist any forward status change.

        Terminal jobs are returned from storage without a network call. A
        report that would move the status backwards is ignored.
        """
        stored = await self.get(job_id)
        if stored.status.is_terminal:
            return stored

        try:
            reported = await self._retry().run(self.client.poll_job, job_id)
        except NotFoundError:
            await self._prune(job_id, "not found by the batch service")
            raise

        if reported.status != stored.status and not is_forward_transition(
            stored.status, reported.status
        ):
            logger.warning(
                "Ignoring backward status report for job %s: %s -> %s",
                job_id,
                stored.status,
                reported.status,
            )
        merged = merge_reported(stored.job, reported)
        if merged != stored.job:
            await asyncio.to_thread(self.store.update, merged)
            if merged.status != stored.status:
                logger.info("Job %s is now %s", job_id, merged.status)
        return stored.with_job(merged)

    async def poll_until_terminal(
        self, job_id: str, on_update: JobUpdateCallback | None = None
    ) -> StoredBatchJob:
        """Refresh until the job reaches a terminal state.

        Stops after `max_consecutive_poll_failures` consecutive failed refreshes,
        re-raising the last error.
        """
        failures = 0
        while True:
            try:
                stored = await self.refresh(job_id)
            except (TransientError, RetryExhaustedError) as exc:
                failures += 1
                logger.warning(
                    "Polling job %s failed (%d/%d): %s",
                    job_id,
                    failures,
                    self.max_consecutive_poll_failures,
                    exc,
                )
                if failures >= self.max_consecutive_poll_failures:
                    logger.error("Stopped polling job %s after %d failures", job_id, failures)
                    raise
                await self._sleep(self.poll_interval_seconds)
                continue

            failures = 0
            if on_update is not None:
                on_update(stored)
            if stored.status.is_terminal:
                return stored
            await self._sleep(self.poll_interval_seconds)

    async def cancel(self, job_id: str) -> StoredBatchJob:
        """Request cancellation and mark the job `Cancelled` locally.

        When the service reports that the job already finished as `Completed`,
        `Failed` or `Expired`, that status is kept and its results stay
        retrievable.
        """
        stored = await self.get(job_id)
        if stored.status.is_terminal:
            logger.info("Job %s is already %s; nothing to cancel", job_id, stored.status)
            return stored

        try:
            reported = await self._retry().run(self.client.cancel_job, job_id)
        except NotFoundError:
            await self._prune(job_id, "not found by the batch service")
            raise

        merged = merge_reported(stored.job, reported)
        if merged.status.is_terminal and merged.status is not BatchJobStatus.CANCELLED:
            if merged != stored.job:
                await asyncio.to_thread(self.store.update, merged)
            logger.info(
                "Job %s finished as %s before it could be cancelled", job_id, merged.status
            )
            return stored.with_job(merged)

        cancelled: BatchJob = replace(
            merged,
            status=BatchJobStatus.CANCELLED,
            cancelled_at=merged.cancelled_at or int(self._clock()),
        )
        await asyncio.to_thread(self.store.update, cancelled)
        logger.info("Cancelled job %s", job_id)
        return stored.with_job(cancelled)

    async def fetch_results(self, stored: StoredBatchJob) -> list[RawBatchResult]:
        """Download raw results for a completed job, aligned to its payee names.

        Raises:
            AlignmentError: If the stored record is corrupted, or the service
                returned a different number of results.
            JobNotCompletedError: If the job is not `Completed`.
        """
        stored.validate_alignment()
        if stored.status is not BatchJobStatus.COMPLETED:
            raise JobNotCompletedError(stored.id, stored.status.value)

        try:
            raw = await self._retry().run(
                self.client.fetch_results, stored.job, list(stored.payee_names)
            )
        except NotFoundError:
            await self._prune(stored.id, "not found by the batch service")
            raise
        if len(raw) != len(stored.payee_names):
            raise AlignmentError(
                payee_count=len(stored.payee_names), row_count=len(raw), job_id=stored.id
            )
        return raw

    async def complete(self, job_id: str) -> BatchProcessingResult:
        """Fetch results for a completed job and reconcile them with its stored rows."""
        started = time.perf_counter()
        stored = await self.refresh(job_id)
        raw = await self.fetch_results(stored)
        timestamp = datetime.now(UTC)

        results = [
            PayeeClassification(
                id=f"{stored.id}-{index}",
                payee_name=name,
                result=self._result_for(name, item),
                timestamp=timestamp,
                row_index=index,
            )
            for index, (name, item) in enumerate(zip(stored.payee_names, raw, strict=True))
        ]
        batch = BatchProcessingResult.from_results(
            results,
            original_file_data=stored.original_file_data,
            processing_time=time.perf_counter() - started,
        )
        logger.info(
            "Reconciled job %s: %d succeeded, %d failed",
            job_id,
            batch.success_count,
            batch.failure_count,
        )
        return batch

    async def remove(self, job_id: str) -> None:
        await asyncio.to_thread(self.store.remove, job_id)
        logger.info("Removed job %s from storage", job_id)

    def _result_for(self, name: str, item: RawBatchResult) -> ClassificationResult:
        exclusion = self.exclusion.check(name)
        if exclusion.is_excluded:
            return excluded_result(exclusion)
        if not item.ok or item.classification is None:
            return ClassificationResult.failed(
                item.error or "No result returned", keyword_exclusion=exclusion
            )
        return ClassificationResult(
            classification=item.classification,
            confidence=item.confidence,
            reasoning=item.reasoning,
            processing_tier=ProcessingTier.AI_ASSISTED,
            keyword_exclusion=exclusion,
            processing_method=BATCH_METHOD,
        )
