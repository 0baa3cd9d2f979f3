"""Tests for ClassifierConfig behaviour."""

from pathlib import Path

import pytest

from payee_classifier.config import (
    ClassifierConfig,
    NonNegativeNumberEnvVarError,
    PositiveIntegerEnvVarError,
)
from payee_classifier.exceptions import NerProviderError


def test_defaults_have_no_batch_api_or_remote_store() -> None:
    config = ClassifierConfig()

    assert config.has_batch_api is False
    assert config.has_remote_store is False
    assert config.exclusion_keywords == ()
    assert config.ner_provider == "heuristic"


def test_from_env_reads_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BATCH_API_KEY", " sk-test ")
    monkeypatch.setenv("BATCH_API_BASE_URL", "https://batch.example.com/v1/")
    monkeypatch.setenv("RETRY_MAX_RETRIES", "5")
    monkeypatch.setenv("POLL_INTERVAL_SECONDS", "0.5")
    monkeypatch.setenv("REMOTE_STORE_URL", "https://store.example.com/rest/v1/")
    monkeypatch.setenv("REMOTE_STORE_KEY", "anon")
    monkeypatch.setenv("EXCLUSION_KEYWORDS", "WALMART, BANK OF AMERICA, ,AT&T")
    monkeypatch.setenv("NER_PROVIDER", "NONE")
    monkeypatch.setenv("CLASSIFIER_MAX_CONCURRENCY", "4")

    config = ClassifierConfig.from_env()

    assert config.batch_api_key == "sk-test"
    assert config.has_batch_api is True
    assert config.batch_api_base_url == "https://batch.example.com/v1"
    assert config.retry_max_retries == 5
    assert config.poll_interval_seconds == 0.5
    assert config.remote_store_url == "https://store.example.com/rest/v1"
    assert config.has_remote_store is True
    assert config.exclusion_keywords == ("WALMART", "BANK OF AMERICA", "AT&T")
    assert config.ner_provider == "none"
    assert config.classifier_max_concurrency == 4


def test_from_env_loads_dotenv_file(tmp_path: Path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("BATCH_MODEL=gpt-test\nJOB_STORE_PATH=jobs/store.json\n")

    config = ClassifierConfig.from_env(str(env_file))

    assert config.batch_model == "gpt-test"
    assert config.job_store_path == "jobs/store.json"


@pytest.mark.parametrize(
    ("env_name", "value", "error"),
    [
        ("MAX_POLL_FAILURES", "0", PositiveIntegerEnvVarError),
        ("CLASSIFIER_MAX_CONCURRENCY", "many", PositiveIntegerEnvVarError),
        ("RETRY_MAX_RETRIES", "-1", NonNegativeNumberEnvVarError),
        ("BATCH_TIMEOUT_SECONDS", "soon", NonNegativeNumberEnvVarError),
        ("NER_PROVIDER", "spacy", NerProviderError),
    ],
)
def test_from_env_rejects_invalid_values(
    monkeypatch: pytest.MonkeyPatch, env_name: str, value: str, error: type[Exception]
) -> None:
    monkeypatch.setenv(env_name, value)

    with pytest.raises(error, match=env_name):
        ClassifierConfig.from_env()


def test_with_overrides_preserves_fields() -> None:
    base = ClassifierConfig(
        batch_api_key="key",
        batch_model="gpt-base",
        retry_max_retries=7,
        exclusion_keywords=("WALMART",),
        ner_provider="none",
        poll_interval_seconds=9.0,
    )

    updated = base.with_overrides(exclusion_keywords=("ACME",), poll_interval_seconds=1.5)

    assert updated.exclusion_keywords == ("ACME",)
    assert updated.poll_interval_seconds == 1.5
    assert updated.ner_provider == "none"
    assert updated.batch_api_key == base.batch_api_key
    assert updated.batch_model == base.batch_model
    assert updated.retry_max_retries == base.retry_max_retries
    assert updated.job_store_path == base.job_store_path


def test_with_overrides_validates_ner_provider() -> None:
    with pytest.raises(NerProviderError):
        ClassifierConfig().with_overrides(ner_provider="bert")
