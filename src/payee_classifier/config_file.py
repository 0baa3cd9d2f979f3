"""Typed parsing and validation for classifier config files."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .exceptions import ConfigFileNotFoundError, ConfigFileParseError, ConfigFileValidationError

_SCHEMA_VERSION = 1


@dataclass(frozen=True)
class ClassifierConfigFile:
    """Validated classifier config values loaded from a TOML file."""

    batch_api_base_url: str | None = None
    batch_model: str | None = None
    batch_timeout_seconds: float | None = None
    retry_max_retries: int | None = None
    retry_base_delay_seconds: float | None = None
    poll_interval_seconds: float | None = None
    max_poll_failures: int | None = None
    job_store_path: str | None = None
    exclusion_keywords: tuple[str, ...] | None = None
    ner_provider: str | None = None
    classifier_max_concurrency: int | None = None


class _ClassifierSectionModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    batch_api_base_url: str | None = None
    batch_model: str | None = None
    batch_timeout_seconds: float | None = None
    retry_max_retries: int | None = None
    retry_base_delay_seconds: float | None = None
    poll_interval_seconds: float | None = None
    max_poll_failures: int | None = None
    job_store_path: str | None = None
    exclusion_keywords: tuple[str, ...] | None = None
    ner_provider: str | None = None
    classifier_max_concurrency: int | None = None

    @field_validator("batch_api_base_url", "batch_model", "job_store_path")
    @classmethod
    def _validate_non_empty_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = value.strip()
        if not text:
            raise ValueError
        return text

    @field_validator("ner_provider")
    @classmethod
    def _validate_ner_provider(cls, value: str | None) -> str | None:
        if value is None:
            return None
        provider = value.strip().lower()
        if provider not in {"none", "heuristic"}:
            raise ValueError
        return provider

    @field_validator("exclusion_keywords")
    @classmethod
    def _validate_keywords(cls, value: tuple[str, ...] | None) -> tuple[str, ...] | None:
        if value is None:
            return None
        return tuple(item.strip() for item in value if item.strip())

    @field_validator("max_poll_failures", "classifier_max_concurrency")
    @classmethod
    def _validate_positive_int(cls, value: int | None) -> int | None:
        if value is None:
            return None
        if value < 1:
            raise ValueError
        return value

    @field_validator(
        "retry_max_retries",
        "batch_timeout_seconds",
        "retry_base_delay_seconds",
        "poll_interval_seconds",
    )
    @classmethod
    def _validate_non_negative(cls, value: float | None) -> float | None:
        if value is None:
            return None
        if value < 0:
            raise ValueError
        return value


class _ConfigFileModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    schema_version: int
    classifier: _ClassifierSectionModel

    @field_validator("schema_version")
    @classmethod
    def _validate_schema_version(cls, value: int) -> int:
        if value != _SCHEMA_VERSION:
            raise ValueError
        return value


def _format_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ("<root>",)))
    message = str(first.get("msg", "invalid value"))
    return f"{location}: {message}"


def load_classifier_config_file(path: Path) -> ClassifierConfigFile:
    """Load and validate a classifier TOML config file.

    Expected layout:

        schema_version = 1

        [classifier]
        exclusion_keywords = ["WALMART", "BANK OF AMERICA"]
        ner_provider = "heuristic"
    """
    if not path.exists():
        raise ConfigFileNotFoundError(str(path))

    raw_payload = path.read_text(encoding="utf-8")
    try:
        payload: object = tomllib.loads(raw_payload)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigFileParseError(str(path), str(exc)) from exc

    try:
        model = _ConfigFileModel.model_validate(payload)
    except ValidationError as exc:
        raise ConfigFileValidationError(str(path), _format_validation_error(exc)) from exc

    section = model.classifier
    return ClassifierConfigFile(
        batch_api_base_url=section.batch_api_base_url,
        batch_model=section.batch_model,
        batch_timeout_seconds=section.batch_timeout_seconds,
        retry_max_retries=section.retry_max_retries,
        retry_base_delay_seconds=section.retry_base_delay_seconds,
        poll_interval_seconds=section.poll_interval_seconds,
        max_poll_failures=section.max_poll_failures,
        job_store_path=section.job_store_path,
        exclusion_keywords=section.exclusion_keywords,
        ner_provider=section.ner_provider,
        classifier_max_concurrency=section.classifier_max_concurrency,
    )
