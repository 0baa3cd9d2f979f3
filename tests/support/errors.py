"""Test-only exceptions for enforcing constraints."""

from __future__ import annotations


class NetworkIsolationError(RuntimeError):
    """Raised when a test attempts a real network connection."""

    def __init__(self, attempted: str) -> None:
        super().__init__(
            "Tests must not make network connections! "
            "Use FakeBatchJobClient or a fake session instead. "
            f"Attempted connection to: {attempted}"
        )


class ScriptExhaustedError(AssertionError):
    """Raised when a fake is called more often than its script allows."""

    def __init__(self, fake: str, call: str) -> None:
        super().__init__(f"{fake} has no scripted response left for {call}")
