"""Pydantic contracts for persisted batch job records.

Records are plain JSON objects shared by the local file store and the remote
REST store. Loading validates shape and status but never alignment: corrupted
records must still load so that consumers can reject them explicitly.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..domain.batch_job import BatchJob, BatchJobStatus, RequestCounts, StoredBatchJob
from ..domain.classification import CellValue, Row

JsonCell = str | int | float | bool | None


class IncomingRecordError(ValueError):
    """Raised when a persisted job record fails validation."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Invalid batch job record: {detail}")


class _RequestCountsIO(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    total: int = 0
    completed: int = 0
    failed: int = 0


class BatchJobIO(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    status: BatchJobStatus
    created_at: int
    request_counts: _RequestCountsIO = Field(default_factory=_RequestCountsIO)
    in_progress_at: int | None = None
    finalizing_at: int | None = None
    completed_at: int | None = None
    failed_at: int | None = None
    expired_at: int | None = None
    cancelled_at: int | None = None
    errors: list[str] = Field(default_factory=list)
    output_file_id: str | None = None
    metadata: dict[str, str] = Field(default_factory=dict)


class StoredBatchJobIO(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    job: BatchJobIO
    payee_names: list[str]
    original_file_data: list[dict[str, JsonCell]]
    created_at_ms: int


def _cell_to_json(value: CellValue) -> JsonCell:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _row_to_json(row: Row) -> dict[str, JsonCell]:
    return {str(key): _cell_to_json(value) for key, value in row.items()}


def job_to_record(job: BatchJob) -> dict[str, object]:
    return {
        "id": job.id,
        "status": job.status.value,
        "created_at": job.created_at,
        "request_counts": {
            "total": job.request_counts.total,
            "completed": job.request_counts.completed,
            "failed": job.request_counts.failed,
        },
        "in_progress_at": job.in_progress_at,
        "finalizing_at": job.finalizing_at,
        "completed_at": job.completed_at,
        "failed_at": job.failed_at,
        "expired_at": job.expired_at,
        "cancelled_at": job.cancelled_at,
        "errors": list(job.errors),
        "output_file_id": job.output_file_id,
        "metadata": dict(job.metadata),
    }


def stored_job_to_record(stored: StoredBatchJob) -> dict[str, object]:
    return {
        "job": job_to_record(stored.job),
        "payee_names": list(stored.payee_names),
        "original_file_data": [_row_to_json(row) for row in stored.original_file_data],
        "created_at_ms": stored.created_at_ms,
    }


def _job_from_io(io: BatchJobIO) -> BatchJob:
    return BatchJob(
        id=io.id,
        status=io.status,
        created_at=io.created_at,
        request_counts=RequestCounts(
            total=io.request_counts.total,
            completed=io.request_counts.completed,
            failed=io.request_counts.failed,
        ),
        in_progress_at=io.in_progress_at,
        finalizing_at=io.finalizing_at,
        completed_at=io.completed_at,
        failed_at=io.failed_at,
        expired_at=io.expired_at,
        cancelled_at=io.cancelled_at,
        errors=tuple(io.errors),
        output_file_id=io.output_file_id,
        metadata=dict(io.metadata),
    )


def job_from_record(payload: Mapping[str, object]) -> BatchJob:
    try:
        io = BatchJobIO.model_validate(payload)
    except ValidationError as exc:
        raise IncomingRecordError(str(exc.errors()[0].get("msg", "invalid"))) from exc
    return _job_from_io(io)


def stored_job_from_record(payload: object) -> StoredBatchJob:
    """Rebuild a stored job without checking alignment."""
    try:
        io = StoredBatchJobIO.model_validate(payload)
    except ValidationError as exc:
        raise IncomingRecordError(str(exc.errors()[0].get("msg", "invalid"))) from exc
    return StoredBatchJob(
        job=_job_from_io(io.job),
        payee_names=tuple(io.payee_names),
        original_file_data=tuple(dict(row) for row in io.original_file_data),
        created_at_ms=io.created_at_ms,
    )
