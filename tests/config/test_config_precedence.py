"""Tests for configuration precedence resolution."""

from payee_classifier.config import ClassifierConfig
from payee_classifier.config_file import ClassifierConfigFile


def test_with_file_overrides_applies_config_file_values() -> None:
    env_config = ClassifierConfig(
        batch_api_key="env-key",
        batch_model="env-model",
        retry_max_retries=3,
        poll_interval_seconds=5.0,
        exclusion_keywords=("WALMART",),
        ner_provider="heuristic",
        classifier_max_concurrency=8,
    )
    file_config = ClassifierConfigFile(
        batch_model="file-model",
        retry_max_retries=1,
        exclusion_keywords=("ACME", "BANK OF AMERICA"),
        ner_provider="none",
        classifier_max_concurrency=2,
    )

    resolved = env_config.with_file_overrides(file_config)

    assert resolved.batch_model == "file-model"
    assert resolved.retry_max_retries == 1
    assert resolved.exclusion_keywords == ("ACME", "BANK OF AMERICA")
    assert resolved.ner_provider == "none"
    assert resolved.classifier_max_concurrency == 2


def test_with_file_overrides_keeps_env_values_when_file_unset() -> None:
    env_config = ClassifierConfig(
        batch_api_key="env-key",
        poll_interval_seconds=1.0,
        job_store_path="env/jobs.json",
    )

    resolved = env_config.with_file_overrides(ClassifierConfigFile())

    assert resolved == env_config


def test_cli_overrides_win_over_file_values() -> None:
    file_config = ClassifierConfigFile(exclusion_keywords=("ACME",), poll_interval_seconds=30.0)

    resolved = (
        ClassifierConfig()
        .with_file_overrides(file_config)
        .with_overrides(exclusion_keywords=("WALMART",))
    )

    assert resolved.exclusion_keywords == ("WALMART",)
    assert resolved.poll_interval_seconds == 30.0
