"""
Retry policy for the oracle and labeler boundaries.

The reference behaviour is "no retries": every failure drops the event.
Deployments that prefer at-least-once behaviour raise ORACLE_MAX_ATTEMPTS /
EMIT_MAX_ATTEMPTS; only errors the caller marks as transient are retried,
with exponential backoff between attempts (backoff_base ** attempt).
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

import structlog

from reply_labeler.monitoring.metrics import retries_total

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to try an operation and how long to wait in between."""

    max_attempts: int = 1
    backoff_base: float = 2.0
    max_backoff: float = 30.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    @property
    def enabled(self) -> bool:
        return self.max_attempts > 1

    def backoff_for(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number `attempt` (1-indexed)."""
        return min(self.backoff_base ** attempt, self.max_backoff)


NO_RETRY = RetryPolicy(max_attempts=1)


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    is_retryable: Callable[[Exception], bool],
    name: str,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Run `operation` under `policy`.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt
        policy: Attempt budget and backoff
        is_retryable: Decides whether a raised exception is transient
        name: Boundary name for logs and metrics ("oracle", "labeler")
        sleep: Injectable sleep (tests pass an AsyncMock)

    Returns:
        The operation's result

    Raises:
        The last exception once attempts are exhausted, or immediately for
        non-retryable errors.
    """
    attempt = 1
    while True:
        try:
            result = await operation()
        except Exception as e:
            if attempt >= policy.max_attempts or not is_retryable(e):
                if attempt > 1:
                    retries_total.labels(boundary=name, success="false").inc()
                raise
            backoff = policy.backoff_for(attempt)
            logger.warning(
                "Transient failure, retrying",
                boundary=name,
                attempt=attempt,
                max_attempts=policy.max_attempts,
                backoff_seconds=backoff,
                error_type=type(e).__name__,
                error=str(e),
            )
            await sleep(backoff)
            attempt += 1
            continue

        if attempt > 1:
            retries_total.labels(boundary=name, success="true").inc()
        return result
