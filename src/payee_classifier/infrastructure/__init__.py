"""Concrete infrastructure implementations and shared helpers."""

from .batch_client import HttpBatchClient, OfflineBatchClient, build_request_lines, parse_results
from .filesystem import LocalTableIO, frame_to_rows, records_to_frame
from .job_store import DualJobStore, LocalJsonJobStore, RestJobStore
from .realtime_client import HttpRealtimeClassifier
from .resilience import RetryController, RetryState, with_retry

__all__ = [
    "DualJobStore",
    "HttpBatchClient",
    "HttpRealtimeClassifier",
    "LocalJsonJobStore",
    "LocalTableIO",
    "OfflineBatchClient",
    "RestJobStore",
    "RetryController",
    "RetryState",
    "build_request_lines",
    "frame_to_rows",
    "parse_results",
    "records_to_frame",
    "with_retry",
]
