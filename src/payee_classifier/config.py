"""Centralised, injectable configuration for the payee classifier."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Self

from dotenv import load_dotenv

from .config_file import ClassifierConfigFile
from .exceptions import NerProviderError

_NER_PROVIDERS = frozenset({"none", "heuristic"})


class PositiveIntegerEnvVarError(ValueError):
    """Raised when an environment variable must be a positive integer."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a positive integer.")


class NonNegativeNumberEnvVarError(ValueError):
    """Raised when an environment variable must be a non-negative number."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a non-negative number.")


@dataclass(frozen=True)
class ClassifierConfig:
    """Immutable configuration for classification and batch jobs.

    Load from environment with `ClassifierConfig.from_env()` or construct directly for testing.
    """

    # Batch API
    batch_api_key: str = ""
    batch_api_base_url: str = "https://api.openai.com/v1"
    batch_model: str = "gpt-4o-mini"
    batch_timeout_seconds: float = 30.0

    # Retry and polling
    retry_max_retries: int = 3
    retry_base_delay_seconds: float = 1.0
    poll_interval_seconds: float = 5.0
    max_poll_failures: int = 3

    # Job persistence
    job_store_path: str = "data/jobs/batch_jobs.json"
    remote_store_url: str = ""
    remote_store_key: str = ""

    # Classification
    exclusion_keywords: tuple[str, ...] = field(default_factory=tuple)
    ner_provider: str = "heuristic"
    classifier_max_concurrency: int = 8

    @property
    def has_batch_api(self) -> bool:
        return bool(self.batch_api_key)

    @property
    def has_remote_store(self) -> bool:
        return bool(self.remote_store_url and self.remote_store_key)

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> Self:
        """Load configuration from environment variables.

        Args:
            dotenv_path: Optional path to .env file. If None, uses default .env discovery.

        Returns:
            ClassifierConfig instance populated from environment.
        """
        load_dotenv(dotenv_path)

        return cls(
            batch_api_key=os.getenv("BATCH_API_KEY", "").strip(),
            batch_api_base_url=os.getenv("BATCH_API_BASE_URL", "https://api.openai.com/v1")
            .strip()
            .rstrip("/")
            or "https://api.openai.com/v1",
            batch_model=os.getenv("BATCH_MODEL", "gpt-4o-mini").strip() or "gpt-4o-mini",
            batch_timeout_seconds=_parse_non_negative_float(
                os.getenv("BATCH_TIMEOUT_SECONDS", "30"), env_name="BATCH_TIMEOUT_SECONDS"
            ),
            retry_max_retries=_parse_non_negative_int(
                os.getenv("RETRY_MAX_RETRIES", "3"), env_name="RETRY_MAX_RETRIES"
            ),
            retry_base_delay_seconds=_parse_non_negative_float(
                os.getenv("RETRY_BASE_DELAY_SECONDS", "1"), env_name="RETRY_BASE_DELAY_SECONDS"
            ),
            poll_interval_seconds=_parse_non_negative_float(
                os.getenv("POLL_INTERVAL_SECONDS", "5"), env_name="POLL_INTERVAL_SECONDS"
            ),
            max_poll_failures=_parse_positive_int(
                os.getenv("MAX_POLL_FAILURES", "3"), env_name="MAX_POLL_FAILURES"
            ),
            job_store_path=os.getenv("JOB_STORE_PATH", "data/jobs/batch_jobs.json").strip()
            or "data/jobs/batch_jobs.json",
            remote_store_url=os.getenv("REMOTE_STORE_URL", "").strip().rstrip("/"),
            remote_store_key=os.getenv("REMOTE_STORE_KEY", "").strip(),
            exclusion_keywords=_parse_list(os.getenv("EXCLUSION_KEYWORDS", "")),
            ner_provider=_parse_ner_provider(os.getenv("NER_PROVIDER", "heuristic")),
            classifier_max_concurrency=_parse_positive_int(
                os.getenv("CLASSIFIER_MAX_CONCURRENCY", "8"),
                env_name="CLASSIFIER_MAX_CONCURRENCY",
            ),
        )

    def with_overrides(
        self,
        *,
        exclusion_keywords: tuple[str, ...] | None = None,
        ner_provider: str | None = None,
        poll_interval_seconds: float | None = None,
        job_store_path: str | None = None,
    ) -> Self:
        """Return a new config with specified overrides (for CLI options)."""
        return replace(
            self,
            exclusion_keywords=self.exclusion_keywords
            if exclusion_keywords is None
            else exclusion_keywords,
            ner_provider=self.ner_provider
            if ner_provider is None
            else _parse_ner_provider(ner_provider),
            poll_interval_seconds=self.poll_interval_seconds
            if poll_interval_seconds is None
            else poll_interval_seconds,
            job_store_path=self.job_store_path if job_store_path is None else job_store_path,
        )

    def with_file_overrides(self, file_config: ClassifierConfigFile) -> Self:
        """Return a new config with config-file values overriding env/default values."""
        return replace(
            self,
            batch_api_base_url=self.batch_api_base_url
            if file_config.batch_api_base_url is None
            else file_config.batch_api_base_url,
            batch_model=self.batch_model
            if file_config.batch_model is None
            else file_config.batch_model,
            batch_timeout_seconds=self.batch_timeout_seconds
            if file_config.batch_timeout_seconds is None
            else file_config.batch_timeout_seconds,
            retry_max_retries=self.retry_max_retries
            if file_config.retry_max_retries is None
            else file_config.retry_max_retries,
            retry_base_delay_seconds=self.retry_base_delay_seconds
            if file_config.retry_base_delay_seconds is None
            else file_config.retry_base_delay_seconds,
            poll_interval_seconds=self.poll_interval_seconds
            if file_config.poll_interval_seconds is None
            else file_config.poll_interval_seconds,
            max_poll_failures=self.max_poll_failures
            if file_config.max_poll_failures is None
            else file_config.max_poll_failures,
            job_store_path=self.job_store_path
            if file_config.job_store_path is None
            else file_config.job_store_path,
            exclusion_keywords=self.exclusion_keywords
            if file_config.exclusion_keywords is None
            else file_config.exclusion_keywords,
            ner_provider=self.ner_provider
            if file_config.ner_provider is None
            else file_config.ner_provider,
            classifier_max_concurrency=self.classifier_max_concurrency
            if file_config.classifier_max_concurrency is None
            else file_config.classifier_max_concurrency,
        )


def _parse_list(s: str) -> tuple[str, ...]:
    """Parse comma-separated string into tuple of stripped values."""
    items = [item.strip() for item in s.split(",") if item.strip()]
    return tuple(items)


def _parse_ner_provider(value: str) -> str:
    provider = value.strip().lower() or "heuristic"
    if provider not in _NER_PROVIDERS:
        raise NerProviderError(value)
    return provider


def _parse_positive_int(value: str, *, env_name: str) -> int:
    try:
        parsed = int(value.strip())
    except ValueError as exc:
        raise PositiveIntegerEnvVarError(env_name) from exc
    if parsed < 1:
        raise PositiveIntegerEnvVarError(env_name)
    return parsed


def _parse_non_negative_int(value: str, *, env_name: str) -> int:
    try:
        parsed = int(value.strip())
    except ValueError as exc:
        raise NonNegativeNumberEnvVarError(env_name) from exc
    if parsed < 0:
        raise NonNegativeNumberEnvVarError(env_name)
    return parsed


def _parse_non_negative_float(value: str, *, env_name: str) -> float:
    try:
        parsed = float(value.strip())
    except ValueError as exc:
        raise NonNegativeNumberEnvVarError(env_name) from exc
    if parsed < 0:
        raise NonNegativeNumberEnvVarError(env_name)
    return parsed
