"""Batch job state machine and the persisted job record.

Usage example:
    from payee_classifier.domain.batch_job import BatchJobStatus, advance_status

    assert advance_status(BatchJobStatus.FINALIZING, BatchJobStatus.IN_PROGRESS) is (
        BatchJobStatus.FINALIZING
    )
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from enum import StrEnum

from ..exceptions import AlignmentError
from .classification import Row

_JOB_ID_RE = re.compile(r"^batch_[A-Za-z0-9_-]+$")
_MIN_JOB_ID_LENGTH = 15


class BatchJobStatus(StrEnum):
    VALIDATING = "validating"
    IN_PROGRESS = "in_progress"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    FAILED = "failed"
    EXPIRED = "expired"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]


TERMINAL_STATUSES = frozenset(
    {
        BatchJobStatus.COMPLETED,
        BatchJobStatus.FAILED,
        BatchJobStatus.EXPIRED,
        BatchJobStatus.CANCELLED,
    }
)

_STATUS_RANK = {
    BatchJobStatus.VALIDATING: 0,
    BatchJobStatus.IN_PROGRESS: 1,
    BatchJobStatus.FINALIZING: 2,
    BatchJobStatus.COMPLETED: 3,
    BatchJobStatus.FAILED: 3,
    BatchJobStatus.EXPIRED: 3,
    BatchJobStatus.CANCELLED: 3,
}


def is_forward_transition(current: BatchJobStatus, reported: BatchJobStatus) -> bool:
    """Return True when `reported` is a legal next state after `current`.

    Terminal states are absorbing; a repeated status is not a transition.
    """
    if current.is_terminal:
        return False
    return reported.rank > current.rank


def advance_status(current: BatchJobStatus, reported: BatchJobStatus) -> BatchJobStatus:
    """Return the status to keep after a poll reported `reported`."""
    return reported if is_forward_transition(current, reported) else current


def is_valid_batch_job_id(job_id: str) -> bool:
    """Check a job id against the batch id pattern before any network call."""
    return len(job_id) >= _MIN_JOB_ID_LENGTH and _JOB_ID_RE.match(job_id) is not None


@dataclass(frozen=True)
class RequestCounts:
    total: int = 0
    completed: int = 0
    failed: int = 0


@dataclass(frozen=True)
class BatchJob:
    """Snapshot of an external batch job. Timestamps are epoch seconds."""

    id: str
    status: BatchJobStatus
    created_at: int
    request_counts: RequestCounts = field(default_factory=RequestCounts)
    in_progress_at: int | None = None
    finalizing_at: int | None = None
    completed_at: int | None = None
    failed_at: int | None = None
    expired_at: int | None = None
    cancelled_at: int | None = None
    errors: tuple[str, ...] = ()
    output_file_id: str | None = None
    metadata: Mapping[str, str] = field(default_factory=dict)


def merge_reported(current: BatchJob, reported: BatchJob) -> BatchJob:
    """Fold a polled snapshot into the known job without moving status backwards.

    Counts, timestamps, errors and the output file id are taken from the report
    only when the reported status is a forward transition or unchanged.
    """
    if reported.status != current.status and not is_forward_transition(
        current.status, reported.status
    ):
        return current
    return replace(reported, id=current.id, metadata=current.metadata or reported.metadata)


@dataclass(frozen=True)
class StoredBatchJob:
    """A batch job plus the exact names and rows submitted with it.

    `payee_names` and `original_file_data` are fixed at submission and drive
    reconciliation whenever results are fetched, possibly after a restart.
    """

    job: BatchJob
    payee_names: tuple[str, ...]
    original_file_data: tuple[Row, ...]
    created_at_ms: int

    @classmethod
    def create(
        cls,
        job: BatchJob,
        payee_names: Sequence[str],
        original_file_data: Sequence[Row],
        created_at_ms: int,
    ) -> StoredBatchJob:
        """Build a record, rejecting any length disagreement at creation."""
        total = job.request_counts.total
        if total and total != len(payee_names):
            raise AlignmentError(payee_count=len(payee_names), row_count=total, job_id=job.id)
        stored = cls(
            job=job,
            payee_names=tuple(payee_names),
            original_file_data=tuple(dict(row) for row in original_file_data),
            created_at_ms=created_at_ms,
        )
        stored.validate_alignment()
        return stored

    @property
    def id(self) -> str:
        return self.job.id

    @property
    def status(self) -> BatchJobStatus:
        return self.job.status

    def validate_alignment(self) -> None:
        """Raise `AlignmentError` unless names and rows are non-empty and equal in length."""
        payee_count = len(self.payee_names)
        row_count = len(self.original_file_data)
        if payee_count == 0 or payee_count != row_count:
            raise AlignmentError(payee_count=payee_count, row_count=row_count, job_id=self.id)

    def with_job(self, job: BatchJob) -> StoredBatchJob:
        return replace(self, job=job)
