"""Custom exceptions for the payee classifier.

Pure classification functions never raise; everything here belongs to the
orchestration and IO boundary. Messages carry enough context (job id suffix,
operation name) to be actionable without a stack trace.
"""

from __future__ import annotations


def job_suffix(job_id: str) -> str:
    """Return the short job id form used in user-facing messages."""
    return job_id[-8:]


class PayeeClassifierError(Exception):
    """Base exception for all classifier errors."""

    pass


class ValidationError(PayeeClassifierError):
    """Raised for malformed input. Never retried."""

    pass


class EmptyBatchError(ValidationError):
    """Raised when a batch contains no payee names."""

    def __init__(self) -> None:
        super().__init__("No payee names supplied. Nothing to classify.")


class InvalidJobIdError(ValidationError):
    """Raised when a job id does not match the batch job id pattern.

    Callers prune such ids from storage.
    """

    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        super().__init__(f"Job ID {job_id!r} is not a valid batch job ID.")


class AlignmentError(PayeeClassifierError):
    """Raised when names, original rows or results disagree in length.

    Fatal for the affected job. Never repaired silently.
    """

    def __init__(self, *, payee_count: int, row_count: int, job_id: str | None = None) -> None:
        self.payee_count = payee_count
        self.row_count = row_count
        self.job_id = job_id
        where = f" for job {job_suffix(job_id)}" if job_id else ""
        if payee_count == 0:
            message = f"No payee names found{where}. The job data may be corrupted."
        else:
            message = (
                f"Data alignment error{where}: {payee_count} payees but {row_count} "
                "original rows. Cannot proceed safely."
            )
        super().__init__(message)


class TransientError(PayeeClassifierError):
    """Raised for network, timeout, rate-limit and 5xx failures. Retried."""

    def __init__(self, operation: str, detail: str) -> None:
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation} failed transiently: {detail}")


class NotFoundError(PayeeClassifierError):
    """Raised when the job service has no record of a job. Triggers pruning."""

    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        super().__init__(
            f"Batch job {job_suffix(job_id)} was not found. It may have been deleted or expired."
        )


class AuthenticationError(PayeeClassifierError):
    """Raised when the job service rejects the API key (401)."""

    def __init__(self, message: str = "Batch API authentication failed") -> None:
        super().__init__(
            f"{message}\nPlease check BATCH_API_KEY in .env is correct and not expired."
        )


class JobNotCompletedError(PayeeClassifierError):
    """Raised when results are requested for a job that has not completed."""

    def __init__(self, job_id: str, status: str) -> None:
        self.job_id = job_id
        self.status = status
        super().__init__(f"Batch job {job_suffix(job_id)} is not completed (status: {status}).")


class BatchJobCreationError(PayeeClassifierError):
    """Raised when the batch path cannot create a job. Names the underlying cause."""

    def __init__(self, cause: Exception) -> None:
        self.cause = cause
        super().__init__(f"Failed to create batch job: {cause}")


class ClassificationFailure(PayeeClassifierError):
    """Raised by an AI-assisted classifier for a single name.

    The orchestrator records it as a failed row and keeps going.
    """

    def __init__(self, payee_name: str, detail: str) -> None:
        self.payee_name = payee_name
        self.detail = detail
        super().__init__(f"Classification failed for {payee_name!r}: {detail}")


class RetryExhaustedError(PayeeClassifierError):
    """Raised when a retried operation keeps failing after the final attempt."""

    def __init__(self, operation: str, attempts: int, last_error: Exception) -> None:
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"{operation} failed after {attempts} attempts: {last_error}")


class StoreError(PayeeClassifierError):
    """Raised by a job store when a read or write fails."""

    def __init__(self, store: str, detail: str) -> None:
        self.store = store
        super().__init__(f"{store} job store error: {detail}")


class LogLevelError(ValueError):
    """Raised when an unknown log level name is requested."""

    def __init__(self, level: str) -> None:
        super().__init__(f"Unknown log level: {level}")


class ConfigFileNotFoundError(FileNotFoundError):
    """Raised when the classifier config file path does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Config file not found: {path}")


class ConfigFileParseError(ValueError):
    """Raised when the classifier config file is not valid TOML."""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"Config file {path} could not be parsed: {detail}")


class ConfigFileValidationError(ValueError):
    """Raised when the classifier config file has invalid values."""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"Config file {path} is invalid: {detail}")


class NerProviderError(ValueError):
    """Raised when an unknown NER signal provider is configured."""

    def __init__(self, provider: str) -> None:
        super().__init__(f"NER_PROVIDER must be 'none' or 'heuristic', got {provider!r}.")


class BatchApiError(PayeeClassifierError):
    """Raised for non-retryable batch API responses other than 401 and 404."""

    def __init__(self, operation: str, status_code: int, detail: str) -> None:
        self.operation = operation
        self.status_code = status_code
        super().__init__(f"{operation} failed with status {status_code}: {detail}")
