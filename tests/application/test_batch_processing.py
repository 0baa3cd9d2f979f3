"""Tests for realtime and batch-mode orchestration."""

import asyncio
from dataclasses import dataclass, field
from typing import override

import pytest

from payee_classifier.application.batch_processing import (
    BatchJobHandle,
    BatchOrchestrator,
    BatchOrchestratorNotConfiguredError,
    ProcessingMode,
    group_duplicate_names,
)
from payee_classifier.application.classify import PayeeClassifier
from payee_classifier.application.job_lifecycle import JobLifecycleTracker
from payee_classifier.domain.classification import (
    AI_METHOD,
    BatchProcessingResult,
    Classification,
    ClassificationResult,
    ProcessingTier,
)
from payee_classifier.domain.keyword_exclusion import KeywordExclusionChecker
from payee_classifier.exceptions import (
    AlignmentError,
    AuthenticationError,
    BatchJobCreationError,
    ClassificationFailure,
    EmptyBatchError,
)
from payee_classifier.protocols import RealtimeAiClassifier
from tests.fakes import FakeBatchJobClient, InMemoryJobStore, RecordingSleeper

NAMES = ["ABC Construction LLC", "John Smith", "Acme Holdings Inc"]


@dataclass
class ScriptedAiClassifier(RealtimeAiClassifier):
    failing: set[str] = field(default_factory=set)
    errors: dict[str, Exception] = field(default_factory=dict)
    seen: list[str] = field(default_factory=list)

    @override
    async def classify(self, payee_name: str) -> ClassificationResult:
        self.seen.append(payee_name)
        await asyncio.sleep(0)
        if payee_name in self.failing:
            raise ClassificationFailure(payee_name, "model timeout")
        if payee_name in self.errors:
            raise self.errors[payee_name]
        return ClassificationResult(
            classification=Classification.BUSINESS,
            confidence=88,
            reasoning="Looks like a company",
            processing_tier=ProcessingTier.RULE_BASED,
            processing_method="",
        )


def _tracker(
    client: FakeBatchJobClient, store: InMemoryJobStore, sleeper: RecordingSleeper
) -> JobLifecycleTracker:
    return JobLifecycleTracker(client=client, store=store, sleep=sleeper, clock=lambda: 1_700.0)


def test_realtime_results_follow_input_order() -> None:
    orchestrator = BatchOrchestrator(classifier=PayeeClassifier(), max_concurrency=2)

    result = asyncio.run(orchestrator.process_batch(NAMES, ProcessingMode.REALTIME))

    assert isinstance(result, BatchProcessingResult)
    assert [item.payee_name for item in result.results] == NAMES
    assert [item.row_index for item in result.results] == [0, 1, 2]
    assert [item.result.classification for item in result.results] == [
        Classification.BUSINESS,
        Classification.INDIVIDUAL,
        Classification.BUSINESS,
    ]
    assert result.success_count == 3
    assert result.failure_count == 0
    assert result.original_file_data is None
    assert result.processing_time is not None


def test_realtime_ids_share_a_batch_prefix() -> None:
    orchestrator = BatchOrchestrator(classifier=PayeeClassifier())

    result = asyncio.run(orchestrator.process_batch(NAMES, ProcessingMode.REALTIME))

    prefixes = {item.id.rsplit("-", 1)[0] for item in result.results}
    assert len(prefixes) == 1
    assert [item.id.rsplit("-", 1)[1] for item in result.results] == ["0", "1", "2"]


def test_realtime_reports_progress_for_every_name() -> None:
    calls: list[tuple[int, int, int]] = []
    orchestrator = BatchOrchestrator(classifier=PayeeClassifier())

    asyncio.run(
        orchestrator.process_batch(
            NAMES, ProcessingMode.REALTIME, on_progress=lambda *args: calls.append(args)
        )
    )

    assert calls == [(1, 3, 33), (2, 3, 66), (3, 3, 100)]


def test_realtime_keeps_original_rows() -> None:
    rows = [{"Payee_Name": name, "Amount": str(i)} for i, name in enumerate(NAMES)]
    orchestrator = BatchOrchestrator(classifier=PayeeClassifier())

    result = asyncio.run(
        orchestrator.process_batch(NAMES, ProcessingMode.REALTIME, original_file_data=rows)
    )

    assert result.original_file_data == tuple(rows)


def test_blank_names_fail_without_shifting_positions() -> None:
    orchestrator = BatchOrchestrator(classifier=PayeeClassifier())

    result = asyncio.run(
        orchestrator.process_batch(["Acme LLC", "", "Jane Doe"], ProcessingMode.REALTIME)
    )

    tiers = [item.result.processing_tier for item in result.results]
    assert tiers[1] is ProcessingTier.FAILED
    assert result.results[2].payee_name == "Jane Doe"
    assert result.failure_count == 1


def test_empty_batch_is_rejected() -> None:
    orchestrator = BatchOrchestrator(classifier=PayeeClassifier())

    with pytest.raises(EmptyBatchError):
        asyncio.run(orchestrator.process_batch([], ProcessingMode.REALTIME))


def test_row_count_mismatch_is_rejected_before_work() -> None:
    calls: list[tuple[int, int, int]] = []
    orchestrator = BatchOrchestrator(classifier=PayeeClassifier())

    with pytest.raises(AlignmentError) as excinfo:
        asyncio.run(
            orchestrator.process_batch(
                NAMES,
                ProcessingMode.REALTIME,
                on_progress=lambda *args: calls.append(args),
                original_file_data=[{"Payee_Name": "ABC Construction LLC"}],
            )
        )

    assert excinfo.value.payee_count == 3
    assert excinfo.value.row_count == 1
    assert calls == []


def test_batch_mode_submits_and_persists_job(
    fake_client: FakeBatchJobClient,
    job_store: InMemoryJobStore,
    sleeper: RecordingSleeper,
) -> None:
    calls: list[tuple[int, int, int]] = []
    orchestrator = BatchOrchestrator(
        classifier=PayeeClassifier(), tracker=_tracker(fake_client, job_store, sleeper)
    )

    handle = asyncio.run(
        orchestrator.process_batch(
            NAMES, ProcessingMode.BATCH, on_progress=lambda *args: calls.append(args)
        )
    )

    assert isinstance(handle, BatchJobHandle)
    assert handle.id == fake_client.job_id
    assert handle.payee_count == 3
    assert fake_client.submitted == [NAMES]
    stored = job_store.jobs[handle.id]
    assert stored.original_file_data == tuple({"Payee_Name": name} for name in NAMES)
    assert stored.job.metadata["description"] == "Payee classification batch: 3 payees"
    assert calls == [(3, 3, 100)]


def test_batch_mode_uses_supplied_rows_and_description(
    fake_client: FakeBatchJobClient,
    job_store: InMemoryJobStore,
    sleeper: RecordingSleeper,
) -> None:
    rows = [{"Vendor": name, "Memo": "q3"} for name in NAMES]
    orchestrator = BatchOrchestrator(
        classifier=PayeeClassifier(), tracker=_tracker(fake_client, job_store, sleeper)
    )

    handle = asyncio.run(
        orchestrator.process_batch(
            NAMES,
            ProcessingMode.BATCH,
            original_file_data=rows,
            description="Q3 vendors",
        )
    )

    assert handle.job.original_file_data == tuple(rows)
    assert handle.job.job.metadata["description"] == "Q3 vendors"


def test_batch_mode_wraps_service_errors(
    job_store: InMemoryJobStore, sleeper: RecordingSleeper
) -> None:
    client = FakeBatchJobClient(submit_errors=[AuthenticationError()])
    orchestrator = BatchOrchestrator(
        classifier=PayeeClassifier(), tracker=_tracker(client, job_store, sleeper)
    )

    with pytest.raises(BatchJobCreationError, match="Failed to create batch job"):
        asyncio.run(orchestrator.process_batch(NAMES, ProcessingMode.BATCH))

    assert job_store.jobs == {}


def test_batch_mode_requires_a_tracker() -> None:
    orchestrator = BatchOrchestrator(classifier=PayeeClassifier())

    with pytest.raises(BatchOrchestratorNotConfiguredError):
        asyncio.run(orchestrator.process_batch(NAMES, ProcessingMode.BATCH))


def test_ai_classifier_results_are_marked_ai_assisted(
    exclusion_checker: KeywordExclusionChecker,
) -> None:
    ai = ScriptedAiClassifier(failing={"John Smith"})
    orchestrator = BatchOrchestrator(
        classifier=PayeeClassifier(exclusion=exclusion_checker), ai_classifier=ai
    )

    result = asyncio.run(
        orchestrator.process_batch(
            ["Acme Holdings Inc", "John Smith", "Walmart #42"], ProcessingMode.REALTIME
        )
    )

    first, second, third = (item.result for item in result.results)
    assert first.processing_tier is ProcessingTier.AI_ASSISTED
    assert first.processing_method == AI_METHOD
    assert first.confidence == 88
    assert second.processing_tier is ProcessingTier.FAILED
    assert "model timeout" in second.reasoning
    assert third.processing_tier is ProcessingTier.EXCLUDED
    assert ai.seen == ["Acme Holdings Inc", "John Smith"]
    assert result.failure_count == 1


@pytest.mark.parametrize(
    "error",
    [TimeoutError("read timed out"), ConnectionError("connection reset by peer")],
)
def test_ai_transport_errors_fail_one_row_without_aborting_batch(error: Exception) -> None:
    ai = ScriptedAiClassifier(errors={"John Smith": error})
    orchestrator = BatchOrchestrator(classifier=PayeeClassifier(), ai_classifier=ai)

    result = asyncio.run(orchestrator.process_batch(NAMES, ProcessingMode.REALTIME))

    assert [item.payee_name for item in result.results] == NAMES
    failed = result.results[1].result
    assert failed.processing_tier is ProcessingTier.FAILED
    assert str(error) in failed.reasoning
    assert result.success_count == 2
    assert result.failure_count == 1


def test_group_duplicate_names_keeps_first_occurrence_order() -> None:
    groups = group_duplicate_names(["Acme LLC", "John Smith", "ACME, LLC", "", " ", "john smith"])

    assert groups == [[0, 2], [1, 5], [3], [4]]


def test_duplicate_names_are_classified_once_per_batch() -> None:
    ai = ScriptedAiClassifier()
    names = ["Acme LLC", "John Smith", "ACME, LLC", "Acme LLC"]
    rows = [{"Payee_Name": name, "Amount": str(i)} for i, name in enumerate(names)]
    calls: list[tuple[int, int, int]] = []
    orchestrator = BatchOrchestrator(classifier=PayeeClassifier(), ai_classifier=ai)

    result = asyncio.run(
        orchestrator.process_batch(
            names,
            ProcessingMode.REALTIME,
            on_progress=lambda *args: calls.append(args),
            original_file_data=rows,
        )
    )

    assert ai.seen == ["Acme LLC", "John Smith"]
    assert [item.payee_name for item in result.results] == names
    assert [item.row_index for item in result.results] == [0, 1, 2, 3]
    assert len({item.id for item in result.results}) == 4
    assert result.results[2].result == result.results[0].result
    assert result.original_file_data == tuple(rows)
    assert calls[-1] == (4, 4, 100)
    assert len(calls) == 2
