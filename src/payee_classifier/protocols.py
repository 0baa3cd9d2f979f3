"""Protocol definitions for dependency injection.

These protocols define the abstract interfaces the classifier and batch
orchestration depend on, enabling isolated unit testing with in-memory fakes.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    import pandas as pd

    from .domain.batch_job import BatchJob, StoredBatchJob
    from .domain.classification import ClassificationResult, RawBatchResult
    from .domain.scoring import LibrarySimulation

type ProgressCallback = Callable[[int, int, int], None]
type Sleeper = Callable[[float], Awaitable[None]]


@runtime_checkable
class NerSignalProvider(Protocol):
    """Supplies ORG/PERSON probabilities for a normalized name."""

    def signals(self, normalized: str) -> LibrarySimulation:
        """Return entity probabilities in [0, 1]."""
        ...


@runtime_checkable
class BatchJobClient(Protocol):
    """Abstract asynchronous batch classification service."""

    async def submit_job(self, names: Sequence[str], description: str) -> BatchJob:
        """Submit one classification request per name, in order.

        Raises:
            TransientError: On network, timeout, rate-limit or 5xx failures.
            AuthenticationError: If the service rejects the credentials.
        """
        ...

    async def poll_job(self, job_id: str) -> BatchJob:
        """Return the current job snapshot.

        Raises:
            NotFoundError: If the service has no record of the job.
            TransientError: On retryable failures.
        """
        ...

    async def fetch_results(self, job: BatchJob, names: Sequence[str]) -> list[RawBatchResult]:
        """Download results for a completed job.

        The returned list has exactly `len(names)` entries in request order;
        missing output lines are returned as error results.
        """
        ...

    async def cancel_job(self, job_id: str) -> BatchJob:
        """Request cancellation and return the updated snapshot."""
        ...


@runtime_checkable
class JobStore(Protocol):
    """Persistence for submitted batch jobs."""

    def save(self, job: StoredBatchJob) -> None:
        """Insert or replace a job record."""
        ...

    def load(self) -> list[StoredBatchJob]:
        """Return all stored jobs, newest first."""
        ...

    def update(self, job: BatchJob) -> None:
        """Replace the job snapshot of an existing record, keeping names and rows."""
        ...

    def remove(self, job_id: str) -> None:
        """Delete a job record. Removing an unknown id is not an error."""
        ...


@runtime_checkable
class RealtimeAiClassifier(Protocol):
    """Optional per-name AI classifier used by the realtime path."""

    async def classify(self, payee_name: str) -> ClassificationResult:
        """Classify one name.

        Raises:
            ClassificationFailure: When the name cannot be classified.
        """
        ...


@runtime_checkable
class TableIO(Protocol):
    """Read and write tabular files for the CLI."""

    def read_csv(self, path: Path) -> pd.DataFrame:
        """Read a CSV file into a DataFrame of strings."""
        ...

    def write_csv(self, df: pd.DataFrame, path: Path) -> None:
        """Write a DataFrame to CSV, creating parent directories."""
        ...


@runtime_checkable
class ProgressReporter(Protocol):
    """CLI-owned progress display for one run over payee names.

    `update` has the `ProgressCallback` signature, so a bound `update` can be
    handed straight to the orchestrator.
    """

    def start(self, label: str, total: int | None) -> None:
        """Begin a run, replacing any run still in progress."""
        ...

    def update(self, current: int, total: int, percentage: int) -> None:
        """Record that `current` of `total` payees are done."""
        ...

    def finish(self) -> None:
        """End the run. Calling it with no run in progress does nothing."""
        ...
