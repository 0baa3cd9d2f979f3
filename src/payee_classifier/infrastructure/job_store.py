"""Batch job persistence: local JSON file, remote REST table and their composition.

Usage example:
    from pathlib import Path

    from payee_classifier.infrastructure.job_store import DualJobStore, LocalJsonJobStore

    store = DualJobStore(local=LocalJsonJobStore(Path("data/jobs/batch_jobs.json")))
    store.save(stored_job)
    jobs = store.load()
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import override

import requests

from ..domain.batch_job import BatchJob, StoredBatchJob
from ..exceptions import StoreError
from ..observability import get_logger
from ..protocols import JobStore
from .job_records import (
    IncomingRecordError,
    job_to_record,
    stored_job_from_record,
    stored_job_to_record,
)

logger = get_logger("payee_classifier.jobs.store")


def _newest_first(jobs: list[StoredBatchJob]) -> list[StoredBatchJob]:
    return sorted(jobs, key=lambda job: job.created_at_ms, reverse=True)


class LocalJsonJobStore(JobStore):
    """Job store backed by a single JSON file (`{"jobs": [...]}`)."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _read_records(self) -> list[object]:
        if not self.path.exists():
            return []
        try:
            payload: object = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise StoreError("local", f"could not read {self.path}: {exc}") from exc
        if not isinstance(payload, dict) or not isinstance(payload.get("jobs"), list):
            raise StoreError("local", f"{self.path} must contain a 'jobs' list")
        return list(payload["jobs"])

    def _write(self, jobs: list[StoredBatchJob]) -> None:
        document = {"jobs": [stored_job_to_record(job) for job in _newest_first(jobs)]}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps(document, ensure_ascii=False, indent=2), encoding="utf-8"
            )
        except OSError as exc:
            raise StoreError("local", f"could not write {self.path}: {exc}") from exc

    @override
    def load(self) -> list[StoredBatchJob]:
        jobs: list[StoredBatchJob] = []
        for record in self._read_records():
            try:
                jobs.append(stored_job_from_record(record))
            except IncomingRecordError as exc:
                logger.warning("Skipping unreadable job record in %s: %s", self.path, exc)
        return _newest_first(jobs)

    @override
    def save(self, job: StoredBatchJob) -> None:
        jobs = [existing for existing in self.load() if existing.id != job.id]
        jobs.append(job)
        self._write(jobs)

    @override
    def update(self, job: BatchJob) -> None:
        jobs = self.load()
        found = False
        updated: list[StoredBatchJob] = []
        for existing in jobs:
            if existing.id == job.id:
                updated.append(existing.with_job(job))
                found = True
            else:
                updated.append(existing)
        if not found:
            logger.warning("Cannot update unknown job %s", job.id)
            return
        self._write(updated)

    @override
    def remove(self, job_id: str) -> None:
        jobs = self.load()
        remaining = [job for job in jobs if job.id != job_id]
        if len(remaining) != len(jobs):
            self._write(remaining)


class RestJobStore(JobStore):
    """Job store backed by a PostgREST-style `batch_jobs` table.

    Rows carry `id, job_data, payee_names, original_file_data, created_at_ms,
    status, is_archived`. Removal archives the row instead of deleting it.
    """

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        session: requests.Session | None = None,
        table: str = "batch_jobs",
        timeout_seconds: float = 15.0,
    ) -> None:
        self.url = f"{base_url.rstrip('/')}/rest/v1/{table}"
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            }
        )
        self.timeout_seconds = timeout_seconds

    def _request(
        self,
        method: str,
        *,
        params: dict[str, str] | None = None,
        body: dict[str, object] | None = None,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        try:
            response = self.session.request(
                method,
                self.url,
                params=params,
                json=body,
                headers=headers,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise StoreError("remote", f"{method} {self.url} failed: {exc}") from exc
        return response

    @override
    def save(self, job: StoredBatchJob) -> None:
        record = stored_job_to_record(job)
        self._request(
            "POST",
            params={"on_conflict": "id"},
            body={
                "id": job.id,
                "job_data": record["job"],
                "payee_names": record["payee_names"],
                "original_file_data": record["original_file_data"],
                "created_at_ms": job.created_at_ms,
                "status": job.status.value,
                "is_archived": False,
            },
            headers={"Prefer": "resolution=merge-duplicates"},
        )
        logger.info("Saved job %s to remote store", job.id)

    @override
    def load(self) -> list[StoredBatchJob]:
        response = self._request(
            "GET",
            params={"select": "*", "is_archived": "eq.false", "order": "created_at_ms.desc"},
        )
        try:
            rows: object = response.json()
        except ValueError as exc:
            raise StoreError("remote", "response was not JSON") from exc
        if not isinstance(rows, list):
            raise StoreError("remote", "expected a list of job rows")

        jobs: list[StoredBatchJob] = []
        for row in rows:
            if not isinstance(row, dict):
                continue
            try:
                jobs.append(
                    stored_job_from_record(
                        {
                            "job": row.get("job_data"),
                            "payee_names": row.get("payee_names"),
                            "original_file_data": row.get("original_file_data"),
                            "created_at_ms": row.get("created_at_ms"),
                        }
                    )
                )
            except IncomingRecordError as exc:
                logger.warning("Skipping unreadable remote job row %s: %s", row.get("id"), exc)
        return _newest_first(jobs)

    @override
    def update(self, job: BatchJob) -> None:
        self._request(
            "PATCH",
            params={"id": f"eq.{job.id}"},
            body={"job_data": job_to_record(job), "status": job.status.value},
        )

    @override
    def remove(self, job_id: str) -> None:
        self._request("PATCH", params={"id": f"eq.{job_id}"}, body={"is_archived": True})
        logger.info("Archived job %s in remote store", job_id)


class DualJobStore(JobStore):
    """Local store plus an optional remote store.

    Writes go to both; a remote failure is logged and never raised. Reads merge
    both sources with the remote copy winning on id conflicts, and the merged set
    is written back to the local store as an offline cache.
    """

    def __init__(self, *, local: JobStore, remote: JobStore | None = None) -> None:
        self.local = local
        self.remote = remote

    @override
    def save(self, job: StoredBatchJob) -> None:
        self.local.save(job)
        if self.remote is None:
            return
        try:
            self.remote.save(job)
        except StoreError as exc:
            logger.warning("Remote save failed for job %s: %s", job.id, exc)

    @override
    def load(self) -> list[StoredBatchJob]:
        local_jobs = self.local.load()
        if self.remote is None:
            return local_jobs
        try:
            remote_jobs = self.remote.load()
        except StoreError as exc:
            logger.warning("Remote load failed, using local jobs only: %s", exc)
            return local_jobs

        merged = {job.id: job for job in local_jobs}
        for job in remote_jobs:
            if merged.get(job.id) != job:
                self.local.save(job)
            merged[job.id] = job
        logger.info(
            "Synced %d jobs (%d remote, %d local)", len(merged), len(remote_jobs), len(local_jobs)
        )
        return _newest_first(list(merged.values()))

    @override
    def update(self, job: BatchJob) -> None:
        self.local.update(job)
        if self.remote is None:
            return
        try:
            self.remote.update(job)
        except StoreError as exc:
            logger.warning("Remote update failed for job %s: %s", job.id, exc)

    @override
    def remove(self, job_id: str) -> None:
        self.local.remove(job_id)
        if self.remote is None:
            return
        try:
            self.remote.remove(job_id)
        except StoreError as exc:
            logger.warning("Remote remove failed for job %s: %s", job_id, exc)
