"""Composition root for wiring CLI dependencies."""

from __future__ import annotations

from pathlib import Path

from .application.batch_processing import BatchOrchestrator
from .application.classify import PayeeClassifier
from .application.job_lifecycle import JobLifecycleTracker
from .cli import CliDependencies, create_app
from .cli_progress import CliProgressReporter
from .config import ClassifierConfig
from .domain.keyword_exclusion import KeywordExclusionChecker
from .domain.library_signals import build_signal_provider
from .infrastructure import (
    DualJobStore,
    HttpBatchClient,
    HttpRealtimeClassifier,
    LocalJsonJobStore,
    LocalTableIO,
    OfflineBatchClient,
    RestJobStore,
)
from .protocols import BatchJobClient, JobStore, RealtimeAiClassifier


def build_cli_dependencies(*, config: ClassifierConfig) -> CliDependencies:
    """Build concrete dependencies for CLI commands.

    With `BATCH_API_KEY` set, realtime runs classify each name through the chat
    API and batch jobs go to the batch API. Without it, realtime runs use the
    deterministic classifier and batch jobs run through the in-process offline
    client, so both workflows stay usable without network access.

    Args:
        config: Classifier configuration (used for client and store wiring).
    """
    exclusion = KeywordExclusionChecker.from_keywords(config.exclusion_keywords)
    classifier = PayeeClassifier(
        signal_provider=build_signal_provider(config.ner_provider),
        exclusion=exclusion,
    )

    client: BatchJobClient
    ai_classifier: RealtimeAiClassifier | None = None
    if config.has_batch_api:
        client = HttpBatchClient(
            api_key=config.batch_api_key,
            base_url=config.batch_api_base_url,
            model=config.batch_model,
            timeout_seconds=config.batch_timeout_seconds,
        )
        ai_classifier = HttpRealtimeClassifier(
            api_key=config.batch_api_key,
            base_url=config.batch_api_base_url,
            model=config.batch_model,
            timeout_seconds=config.batch_timeout_seconds,
        )
    else:
        client = OfflineBatchClient(classifier.classify)

    remote: JobStore | None = None
    if config.has_remote_store:
        remote = RestJobStore(base_url=config.remote_store_url, api_key=config.remote_store_key)
    store = DualJobStore(local=LocalJsonJobStore(Path(config.job_store_path)), remote=remote)

    tracker = JobLifecycleTracker(
        client=client,
        store=store,
        exclusion=exclusion,
        max_retries=config.retry_max_retries,
        base_delay_seconds=config.retry_base_delay_seconds,
        poll_interval_seconds=config.poll_interval_seconds,
        max_consecutive_poll_failures=config.max_poll_failures,
    )
    orchestrator = BatchOrchestrator(
        classifier=classifier,
        tracker=tracker,
        ai_classifier=ai_classifier,
        max_concurrency=config.classifier_max_concurrency,
    )
    return CliDependencies(
        classifier=classifier,
        tracker=tracker,
        orchestrator=orchestrator,
        table_io=LocalTableIO(),
        progress=CliProgressReporter(),
    )


app = create_app(build_cli_dependencies)
