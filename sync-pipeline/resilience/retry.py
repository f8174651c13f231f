"""Exponential Backoff Retry Executor.

Retries a fallible async operation:
- Bounded by RetryConfig.max_attempts
- Exponential delay, capped at max_delay
- The decision to retry a given error is delegated to a predicate

Delay before retrying after failed attempt N (1-based):

    min(base_delay * backoff_multiplier ** (N - 1), max_delay)

so the first retry waits exactly base_delay.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

from core.errors import RetryExhaustedError
from core.types import RetryConfig
from observability.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

ShouldRetry = Callable[[Exception], bool]


def _always(error: Exception) -> bool:
    return True


@dataclass
class RetryExecutor:
    """Retry executor with exponential backoff.

    Usage:
        executor = RetryExecutor(RetryConfig(max_attempts=3, base_delay=2.0))

        result = await executor.execute(risky_operation, should_retry=is_transient)
    """

    config: RetryConfig = field(default_factory=RetryConfig)
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, repr=False)

    def calculate_delay(self, attempt: int) -> float:
        """Delay to wait after failed attempt `attempt` (1-based)."""
        if attempt < 1:
            raise ValueError("attempt is 1-based")
        delay = self.config.base_delay * (self.config.backoff_multiplier ** (attempt - 1))
        return min(delay, self.config.max_delay)

    async def execute(
        self,
        fn: Callable[[], Awaitable[T]],
        should_retry: ShouldRetry | None = None,
    ) -> T:
        """Run fn until it succeeds or retrying stops.

        Raises:
            RetryExhaustedError: After max_attempts failures, or as soon as
                should_retry returns False for the latest error
        """
        should_retry = should_retry or _always
        max_attempts = self.config.max_attempts
        attempt = 1

        while True:
            try:
                result = await fn()
            except Exception as e:
                if attempt >= max_attempts or not should_retry(e):
                    if attempt >= max_attempts:
                        logger.warning(
                            f"Max attempts ({max_attempts}) exhausted",
                            extra={"error": str(e)},
                        )
                    else:
                        logger.debug(f"Non-retryable error: {type(e).__name__}")
                    raise RetryExhaustedError(attempt, e) from e

                delay = self.calculate_delay(attempt)
                logger.warning(
                    f"Attempt {attempt} failed, retrying in {delay:.1f}s",
                    extra={"error": str(e), "attempt": attempt, "max_attempts": max_attempts},
                )
                await self.sleep(delay)
                attempt += 1
                continue

            if attempt > 1:
                logger.info(f"Operation succeeded on attempt {attempt}")
            return result


async def retry(
    fn: Callable[[], Awaitable[T]],
    config: RetryConfig,
    should_retry: ShouldRetry | None = None,
) -> T:
    """Functional shortcut for RetryExecutor(config).execute(fn, should_retry)."""
    return await RetryExecutor(config).execute(fn, should_retry)
