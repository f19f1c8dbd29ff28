"""Retry-with-backoff executor for remote calls."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from flora_admin.errors import FloraError
from flora_admin.models import MutationAttempt

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how patiently a remote call is retried.

    Backoff is linear: the wait before attempt ``n + 1`` is ``n * base_delay``
    seconds.
    """

    max_attempts: int = 3
    base_delay: float = 1.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        if self.base_delay < 0:
            raise ValueError(f"base_delay must not be negative, got {self.base_delay}")

    def delay_after(self, attempt: int) -> float:
        return attempt * self.base_delay


DEFAULT_POLICY = RetryPolicy()


def is_retryable(error: BaseException) -> bool:
    """Decide whether a failed attempt may be repeated.

    Flora errors answer for themselves. Anything else is retried unless it
    carries a 4xx status code.
    """
    if isinstance(error, FloraError):
        return error.retryable
    status_code = getattr(error, "status_code", None)
    if isinstance(status_code, int) and 400 <= status_code < 500:
        return False
    return True


async def execute(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy = DEFAULT_POLICY,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    on_failure: Callable[[MutationAttempt], None] | None = None,
) -> T:
    """Run ``operation`` until it succeeds or the policy gives up.

    Args:
        operation: Zero-argument callable returning an awaitable
        policy: Attempt count and base delay
        sleep: Awaitable sleep used between attempts
        on_failure: Observer called with every failed attempt

    Returns:
        Result of the first successful attempt

    Raises:
        The error of the last attempt, or the first non-retryable error.
    """
    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as e:
            retryable = is_retryable(e)
            if on_failure is not None:
                on_failure(
                    MutationAttempt(
                        attempt_number=attempt,
                        max_attempts=policy.max_attempts,
                        last_error=e,
                        is_retryable=retryable,
                    )
                )
            if not retryable or attempt >= policy.max_attempts:
                raise
        await sleep(policy.delay_after(attempt))
        attempt += 1
