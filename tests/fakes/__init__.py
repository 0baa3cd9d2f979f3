"""Exports for test fakes."""

from .http import FakeResponse, FakeSession
from .jobs import FakeBatchJobClient, InMemoryJobStore, make_stored_job
from .progress import FakeProgressReporter
from .sleep import RecordingSleeper

__all__ = [
    "FakeBatchJobClient",
    "FakeProgressReporter",
    "FakeResponse",
    "FakeSession",
    "InMemoryJobStore",
    "RecordingSleeper",
    "make_stored_job",
]
