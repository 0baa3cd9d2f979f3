"""Resilience utilities for infrastructure.

Usage example:
    from payee_classifier.infrastructure.resilience import RetryController

    retry = RetryController(max_retries=3, base_delay_seconds=1.0)
    job = await retry.run(client.poll_job, job_id)
"""

from __future__ import annotations

import asyncio
import functools
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from ..exceptions import RetryExhaustedError, TransientError
from ..observability import get_logger
from ..protocols import Sleeper

logger = get_logger("payee_classifier.retry")


@dataclass
class RetryState:
    """Observable retry progress for status displays."""

    is_retrying: bool = False
    retry_count: int = 0
    last_error: Exception | None = None


@dataclass
class RetryController:
    """Exponential-backoff wrapper for fallible async operations.

    Attempt 0 runs immediately. After a retryable failure on attempt `n` the
    controller sleeps `base_delay_seconds * 2**n` and tries again, up to
    `max_retries` further attempts. Errors outside `retry_on` propagate at once.
    """

    max_retries: int = 3
    base_delay_seconds: float = 1.0
    retry_on: tuple[type[Exception], ...] = (TransientError,)
    sleep: Sleeper = asyncio.sleep
    state: RetryState = field(default_factory=RetryState, init=False)

    def compute_backoff(self, attempt: int) -> float:
        return self.base_delay_seconds * (2**attempt)

    def reset(self) -> None:
        self.state = RetryState()

    async def run[T](
        self,
        operation: Callable[..., Awaitable[T]],
        *args: object,
        **kwargs: object,
    ) -> T:
        """Run `operation(*args, **kwargs)` with retries.

        Raises:
            RetryExhaustedError: When every attempt failed with a retryable error.
                The last error is chained as `__cause__`.
        """
        name = getattr(operation, "__qualname__", None) or repr(operation)

        attempt = 0
        while True:
            try:
                result = await operation(*args, **kwargs)
            except self.retry_on as exc:
                self.state.last_error = exc
                if attempt >= self.max_retries:
                    self.state.is_retrying = False
                    raise RetryExhaustedError(name, attempt + 1, exc) from exc
                delay = self.compute_backoff(attempt)
                self.state.is_retrying = True
                self.state.retry_count = attempt + 1
                logger.warning(
                    "%s failed (attempt %d/%d): %s; retrying in %.2fs",
                    name,
                    attempt + 1,
                    self.max_retries + 1,
                    exc,
                    delay,
                )
                await self.sleep(delay)
                attempt += 1
                continue
            except Exception as exc:
                self.state.is_retrying = False
                self.state.last_error = exc
                raise
            self.reset()
            return result


def with_retry[**P, T](
    *,
    max_retries: int = 3,
    base_delay_seconds: float = 1.0,
    retry_on: tuple[type[Exception], ...] = (TransientError,),
    sleep: Sleeper = asyncio.sleep,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Decorate an async function so each call runs under a fresh `RetryController`."""

    def decorator(fn: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @functools.wraps(fn)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            controller = RetryController(
                max_retries=max_retries,
                base_delay_seconds=base_delay_seconds,
                retry_on=retry_on,
                sleep=sleep,
            )
            return await controller.run(fn, *args, **kwargs)

        return wrapper

    return decorator
