"""Pytest fixtures shared across the suite.

All tests are network-isolated - socket connections are blocked by default.
"""

from __future__ import annotations

import socket

import pytest

from payee_classifier.domain.keyword_exclusion import KeywordExclusionChecker
from tests.fakes import FakeBatchJobClient, InMemoryJobStore, RecordingSleeper
from tests.support.errors import NetworkIsolationError

# =============================================================================
# Network Isolation - Block all socket connections in tests
# =============================================================================


def _blocked_socket_connect(self: socket.socket, *args: object, **kwargs: object) -> None:
    """Raise an error if any test tries to make a real network connection."""
    raise NetworkIsolationError(repr(args))


@pytest.fixture(autouse=True)
def block_network_access(monkeypatch: pytest.MonkeyPatch) -> None:
    """Block all network access in tests.

    HTTP adapters are tested through fake sessions; if you need E2E tests with
    real network access, mark them with `@pytest.mark.e2e` and run them
    separately with: pytest -m e2e
    """
    monkeypatch.setattr(socket.socket, "connect", _blocked_socket_connect)


@pytest.fixture(autouse=True)
def isolated_env(
    monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory
) -> None:
    """Keep developer environment variables and `.env` files out of tests."""
    for key in (
        "BATCH_API_KEY",
        "BATCH_API_BASE_URL",
        "BATCH_MODEL",
        "BATCH_TIMEOUT_SECONDS",
        "RETRY_MAX_RETRIES",
        "RETRY_BASE_DELAY_SECONDS",
        "POLL_INTERVAL_SECONDS",
        "MAX_POLL_FAILURES",
        "JOB_STORE_PATH",
        "REMOTE_STORE_URL",
        "REMOTE_STORE_KEY",
        "EXCLUSION_KEYWORDS",
        "NER_PROVIDER",
        "CLASSIFIER_MAX_CONCURRENCY",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path_factory.mktemp("cwd"))


# =============================================================================
# Fakes
# =============================================================================


@pytest.fixture
def fake_client() -> FakeBatchJobClient:
    return FakeBatchJobClient()


@pytest.fixture
def job_store() -> InMemoryJobStore:
    return InMemoryJobStore()


@pytest.fixture
def sleeper() -> RecordingSleeper:
    return RecordingSleeper()


@pytest.fixture
def exclusion_checker() -> KeywordExclusionChecker:
    return KeywordExclusionChecker(("WALMART", "BANK OF AMERICA"))
