"""Batch classification service clients.

`HttpBatchClient` talks to an OpenAI-compatible batch API over `requests`;
blocking calls run in a worker thread so the event loop stays free.
`OfflineBatchClient` runs jobs in-process with the deterministic classifier and
needs no network or API key.

Usage example:
    from payee_classifier.infrastructure.batch_client import HttpBatchClient

    client = HttpBatchClient(api_key="sk-...", base_url="https://api.openai.com/v1")
    job = await client.submit_job(["Acme LLC", "John Smith"], "Nightly payees")
"""

from __future__ import annotations

import asyncio
import json
import re
import time
import uuid
from collections.abc import Callable, Sequence
from typing import Literal, override

import requests
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..domain.batch_job import BatchJob, BatchJobStatus, RequestCounts
from ..domain.classification import (
    FAILED_REASONING_PREFIX,
    Classification,
    ClassificationResult,
    ProcessingTier,
    RawBatchResult,
)
from ..exceptions import (
    AuthenticationError,
    BatchApiError,
    JobNotCompletedError,
    NotFoundError,
    TransientError,
)
from ..observability import get_logger
from ..protocols import BatchJobClient

logger = get_logger("payee_classifier.batch_client")

_CUSTOM_ID_PREFIX = "payee-"
_TRANSIENT_STATUSES = frozenset({408, 409, 429, 500, 502, 503, 504})
_SYSTEM_PROMPT = (
    "You are an expert at classifying payee names as either 'Business' or 'Individual'. "
    "Analyze the given name and provide a classification with confidence level and reasoning."
)
_USER_PROMPT = (
    'Classify this payee name: "{name}"\n\n'
    "Respond with a JSON object containing:\n"
    '- classification: "Business" or "Individual"\n'
    "- confidence: number from 0-100\n"
    "- reasoning: brief explanation for your decision"
)
_REMOTE_STATUS = {
    "validating": BatchJobStatus.VALIDATING,
    "in_progress": BatchJobStatus.IN_PROGRESS,
    "finalizing": BatchJobStatus.FINALIZING,
    "completed": BatchJobStatus.COMPLETED,
    "failed": BatchJobStatus.FAILED,
    "expired": BatchJobStatus.EXPIRED,
    "cancelling": BatchJobStatus.CANCELLED,
    "cancelled": BatchJobStatus.CANCELLED,
}


class _RequestCountsIO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    total: int = 0
    completed: int = 0
    failed: int = 0


class _ErrorItemIO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: str = ""


class _ErrorListIO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    data: list[_ErrorItemIO] = Field(default_factory=list)


class _RemoteBatchIO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    status: str
    created_at: int
    request_counts: _RequestCountsIO | None = None
    in_progress_at: int | None = None
    finalizing_at: int | None = None
    completed_at: int | None = None
    failed_at: int | None = None
    expired_at: int | None = None
    cancelled_at: int | None = None
    errors: _ErrorListIO | None = None
    output_file_id: str | None = None
    metadata: dict[str, str] | None = None


class _MessageIO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: str | None = None


class _ChoiceIO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: _MessageIO


class _CompletionBodyIO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    choices: list[_ChoiceIO] = Field(default_factory=list)


class _ResponseIO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    status_code: int = 200
    body: _CompletionBodyIO | None = None


class _LineErrorIO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: str | None = None
    message: str = "Unknown error"


class _OutputLineIO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    custom_id: str
    response: _ResponseIO | None = None
    error: _LineErrorIO | None = None


class _ClassificationContentIO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    classification: Literal["Business", "Individual"]
    confidence: float = Field(ge=0, le=100)
    reasoning: str = ""


def chat_completion_body(name: str, model: str) -> dict[str, object]:
    """Build the chat-completion request body that classifies one name."""
    return {
        "model": model,
        "messages": [
            {"role": "system", "content": _SYSTEM_PROMPT},
            {"role": "user", "content": _USER_PROMPT.format(name=name)},
        ],
        "response_format": {"type": "json_object"},
        "temperature": 0.1,
        "max_tokens": 200,
    }


def completion_content(payload: object) -> str | None:
    """Return the first choice's message content from a chat-completion body."""
    try:
        body = _CompletionBodyIO.model_validate(payload)
    except ValidationError:
        return None
    return body.choices[0].message.content if body.choices else None


def parse_classification_content(content: str, index: int = 0) -> RawBatchResult:
    """Parse the model's JSON reply; an unparseable reply becomes an error result."""
    try:
        payload = _ClassificationContentIO.model_validate_json(content)
    except ValidationError:
        return RawBatchResult(index=index, error="Failed to parse classification result")
    return RawBatchResult(
        index=index,
        classification=Classification(payload.classification),
        confidence=round(payload.confidence),
        reasoning=payload.reasoning,
    )


def build_request_lines(names: Sequence[str], model: str) -> str:
    """Render one chat-completion request per name as JSONL, in input order."""
    lines = []
    for index, name in enumerate(names):
        request = {
            "custom_id": f"{_CUSTOM_ID_PREFIX}{index}",
            "method": "POST",
            "url": "/v1/chat/completions",
            "body": chat_completion_body(name, model),
        }
        lines.append(json.dumps(request, ensure_ascii=False))
    return "\n".join(lines)


def _parse_custom_id(custom_id: str) -> int | None:
    if not custom_id.startswith(_CUSTOM_ID_PREFIX):
        return None
    suffix = custom_id[len(_CUSTOM_ID_PREFIX) :]
    return int(suffix) if suffix.isdigit() else None


def _parse_output_line(line: str) -> RawBatchResult | None:
    try:
        parsed = _OutputLineIO.model_validate_json(line)
    except ValidationError:
        logger.warning("Skipping unparseable batch output line")
        return None
    index = _parse_custom_id(parsed.custom_id)
    if index is None:
        return None

    response = parsed.response
    content = (
        response.body.choices[0].message.content
        if response is not None and response.body is not None and response.body.choices
        else None
    )
    if content and response is not None and response.status_code < 400:
        return parse_classification_content(content, index)
    if parsed.error is not None:
        return RawBatchResult(index=index, error=parsed.error.message)
    return RawBatchResult(index=index, error="No response data")


def parse_results(text: str, expected: int) -> list[RawBatchResult]:
    """Map JSONL output lines onto request indexes.

    The result always has `expected` entries; indexes with no output line
    become error results.
    """
    by_index: dict[int, RawBatchResult] = {}
    for line in text.splitlines():
        if not line.strip():
            continue
        result = _parse_output_line(line)
        if result is not None and 0 <= result.index < expected:
            by_index[result.index] = result
    return [
        by_index.get(index, RawBatchResult(index=index, error="No result found"))
        for index in range(expected)
    ]


def _to_batch_job(payload: object) -> BatchJob:
    try:
        remote = _RemoteBatchIO.model_validate(payload)
    except ValidationError as exc:
        raise TransientError("parse batch job", str(exc.errors()[0].get("msg"))) from exc
    status = _REMOTE_STATUS.get(remote.status)
    if status is None:
        raise TransientError("parse batch job", f"unknown status {remote.status!r}")
    counts = remote.request_counts or _RequestCountsIO()
    return BatchJob(
        id=remote.id,
        status=status,
        created_at=remote.created_at,
        request_counts=RequestCounts(
            total=counts.total, completed=counts.completed, failed=counts.failed
        ),
        in_progress_at=remote.in_progress_at,
        finalizing_at=remote.finalizing_at,
        completed_at=remote.completed_at,
        failed_at=remote.failed_at,
        expired_at=remote.expired_at,
        cancelled_at=remote.cancelled_at,
        errors=tuple(item.message for item in remote.errors.data) if remote.errors else (),
        output_file_id=remote.output_file_id,
        metadata=remote.metadata or {},
    )


def response_details(response: requests.Response) -> str:
    """Return a compact body summary for error reporting."""
    try:
        body = response.text
    except (UnicodeDecodeError, ValueError, requests.RequestException):
        body = "<unreadable>"
    body = " ".join(body.split())
    if len(body) > 300:
        body = body[:300] + "..."
    return body


class HttpBatchClient(BatchJobClient):
    """OpenAI-compatible batch API client.

    Error mapping:
    - 401/403 raise AuthenticationError
    - 404 on a job endpoint raises NotFoundError
    - 408/409/429/5xx, timeouts and connection errors raise TransientError
    - other non-2xx responses raise BatchApiError
    """

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o-mini",
        timeout_seconds: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()
        self.session.headers.update({"Authorization": f"Bearer {api_key}"})

    def _request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        job_id: str | None = None,
        **kwargs: object,
    ) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method, url, timeout=self.timeout_seconds, **kwargs
            )
        except (requests.Timeout, requests.ConnectionError) as exc:
            raise TransientError(operation, str(exc)) from exc
        except requests.RequestException as exc:
            raise BatchApiError(operation, 0, str(exc)) from exc

        status = response.status_code
        if status in (401, 403):
            raise AuthenticationError(f"{operation} was rejected with status {status}")
        if status == 404 and job_id is not None:
            raise NotFoundError(job_id)
        if status in _TRANSIENT_STATUSES:
            raise TransientError(operation, f"status={status}, body={response_details(response)}")
        if status >= 400:
            raise BatchApiError(operation, status, response_details(response))
        return response

    def _json(self, response: requests.Response, operation: str) -> object:
        try:
            return response.json()
        except ValueError as exc:
            raise TransientError(operation, "response was not JSON") from exc

    def _submit(self, names: Sequence[str], description: str) -> BatchJob:
        content = build_request_lines(names, self.model).encode("utf-8")
        upload = self._request(
            "upload batch file",
            "POST",
            "/files",
            data={"purpose": "batch"},
            files={"file": ("batch_requests.jsonl", content, "application/jsonl")},
        )
        upload_payload = self._json(upload, "upload batch file")
        file_id = upload_payload.get("id") if isinstance(upload_payload, dict) else None
        if not isinstance(file_id, str):
            raise TransientError("upload batch file", "response had no file id")
        logger.info("Uploaded batch input file %s (%d requests)", file_id, len(names))

        created = self._request(
            "create batch job",
            "POST",
            "/batches",
            json={
                "input_file_id": file_id,
                "endpoint": "/v1/chat/completions",
                "completion_window": "24h",
                "metadata": {
                    "description": description,
                    "payee_count": str(len(names)),
                },
            },
        )
        job = _to_batch_job(self._json(created, "create batch job"))
        logger.info("Created batch job %s for %d payees", job.id, len(names))
        return job

    def _poll(self, job_id: str) -> BatchJob:
        response = self._request("poll batch job", "GET", f"/batches/{job_id}", job_id=job_id)
        return _to_batch_job(self._json(response, "poll batch job"))

    def _fetch(self, job: BatchJob, names: Sequence[str]) -> list[RawBatchResult]:
        if job.status is not BatchJobStatus.COMPLETED:
            raise JobNotCompletedError(job.id, job.status.value)
        if not job.output_file_id:
            raise BatchApiError("download batch results", 0, "batch job has no output file")
        response = self._request(
            "download batch results",
            "GET",
            f"/files/{job.output_file_id}/content",
            job_id=job.id,
        )
        results = parse_results(response.text, len(names))
        logger.info("Parsed %d results for job %s", len(results), job.id)
        return results

    def _cancel(self, job_id: str) -> BatchJob:
        response = self._request(
            "cancel batch job", "POST", f"/batches/{job_id}/cancel", job_id=job_id
        )
        return _to_batch_job(self._json(response, "cancel batch job"))

    @override
    async def submit_job(self, names: Sequence[str], description: str) -> BatchJob:
        return await asyncio.to_thread(self._submit, list(names), description)

    @override
    async def poll_job(self, job_id: str) -> BatchJob:
        return await asyncio.to_thread(self._poll, job_id)

    @override
    async def fetch_results(self, job: BatchJob, names: Sequence[str]) -> list[RawBatchResult]:
        return await asyncio.to_thread(self._fetch, job, list(names))

    @override
    async def cancel_job(self, job_id: str) -> BatchJob:
        return await asyncio.to_thread(self._cancel, job_id)


_OFFLINE_ID_RE = re.compile(r"^batch_offline_(?P<created>\d+)_(?P<total>\d+)_[0-9a-f]+$")
_OFFLINE_PROGRESSION = (
    BatchJobStatus.VALIDATING,
    BatchJobStatus.IN_PROGRESS,
    BatchJobStatus.FINALIZING,
    BatchJobStatus.COMPLETED,
)


class OfflineBatchClient(BatchJobClient):
    """In-process batch runner backed by a local classify function.

    Job state is derived from the job id (creation time and request count) and
    the clock: each `step_seconds` after creation the job moves one state along
    Validating, InProgress, Finalizing, Completed. No state is held between
    processes, so jobs survive restarts through the job store alone.
    """

    def __init__(
        self,
        classify: Callable[[str], ClassificationResult],
        *,
        step_seconds: float = 1.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._classify = classify
        self.step_seconds = step_seconds
        self._clock = clock

    def _parse_id(self, job_id: str) -> tuple[int, int]:
        match = _OFFLINE_ID_RE.match(job_id)
        if match is None:
            raise NotFoundError(job_id)
        return int(match["created"]), int(match["total"])

    def _snapshot(self, job_id: str) -> BatchJob:
        created_at, total = self._parse_id(job_id)
        elapsed = max(0.0, self._clock() - created_at)
        last_stage = len(_OFFLINE_PROGRESSION) - 1
        if self.step_seconds > 0:
            stage = min(int(elapsed // self.step_seconds), last_stage)
        else:
            stage = last_stage
        status = _OFFLINE_PROGRESSION[stage]

        def reached(step: int) -> int | None:
            return created_at + round(step * self.step_seconds) if stage >= step else None

        completed = status is BatchJobStatus.COMPLETED
        return BatchJob(
            id=job_id,
            status=status,
            created_at=created_at,
            request_counts=RequestCounts(total=total, completed=total if completed else 0),
            in_progress_at=reached(1),
            finalizing_at=reached(2),
            completed_at=reached(3),
            output_file_id=f"file-{job_id}" if completed else None,
            metadata={"payee_count": str(total)},
        )

    @override
    async def submit_job(self, names: Sequence[str], description: str) -> BatchJob:
        created_at = int(self._clock())
        job_id = f"batch_offline_{created_at}_{len(names)}_{uuid.uuid4().hex[:12]}"
        logger.info("Created offline batch job %s for %d payees", job_id, len(names))
        return BatchJob(
            id=job_id,
            status=BatchJobStatus.VALIDATING,
            created_at=created_at,
            request_counts=RequestCounts(total=len(names)),
            metadata={"description": description, "payee_count": str(len(names))},
        )

    @override
    async def poll_job(self, job_id: str) -> BatchJob:
        return self._snapshot(job_id)

    @override
    async def fetch_results(self, job: BatchJob, names: Sequence[str]) -> list[RawBatchResult]:
        if job.status is not BatchJobStatus.COMPLETED:
            raise JobNotCompletedError(job.id, job.status.value)
        results: list[RawBatchResult] = []
        for index, name in enumerate(names):
            outcome = self._classify(name)
            if outcome.processing_tier is ProcessingTier.FAILED:
                detail = outcome.reasoning.removeprefix(FAILED_REASONING_PREFIX)
                results.append(RawBatchResult(index=index, error=detail))
                continue
            results.append(
                RawBatchResult(
                    index=index,
                    classification=outcome.classification,
                    confidence=outcome.confidence,
                    reasoning=outcome.reasoning,
                )
            )
        return results

    @override
    async def cancel_job(self, job_id: str) -> BatchJob:
        job = self._snapshot(job_id)
        if job.status.is_terminal:
            return job
        return BatchJob(
            id=job.id,
            status=BatchJobStatus.CANCELLED,
            created_at=job.created_at,
            request_counts=job.request_counts,
            in_progress_at=job.in_progress_at,
            finalizing_at=job.finalizing_at,
            cancelled_at=int(self._clock()),
            metadata=job.metadata,
        )
