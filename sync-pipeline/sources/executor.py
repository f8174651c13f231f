"""Request executor: the single path every remote call goes through.

Composition, in order:
    1. RateLimiter.acquire()     - one token per logical request
    2. RetryExecutor.execute()   - backoff on retryable failures
    3. call()                    - errors are classified into SyncFailure

Callers only ever see SyncFailure, never the raw transport error.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, TypeVar

from core.errors import RetryExhaustedError, SyncFailure
from observability.logger import get_logger, log_context
from resilience.classifier import ErrorClassifier, HttpErrorClassifier, to_failure
from resilience.rate_limiter import RateLimiter
from resilience.retry import RetryExecutor

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class RequestExecutor:
    """Runs one logical remote call under throttling, retry and classification.

    Usage:
        executor = RequestExecutor(rate_limiter=limiter, retry=RetryExecutor(config))
        data = await executor.execute_query("getPosts", lambda: client.post(query))
    """

    rate_limiter: RateLimiter
    retry: RetryExecutor = field(default_factory=RetryExecutor)
    classifier: ErrorClassifier = field(default_factory=HttpErrorClassifier)

    async def execute_query(self, operation: str, call: Callable[[], Awaitable[T]]) -> T:
        """Execute a remote call.

        Args:
            operation: Logical operation name, used for logging and failures
            call: Zero-argument coroutine function issuing the request

        Raises:
            SyncFailure: Non-retryable failure, or the last failure once
                retries are exhausted (attempts recorded on the failure)
        """
        with log_context(operation=operation):
            logger.debug("Executing query")
            await self.rate_limiter.acquire()

            async def attempt() -> T:
                try:
                    return await call()
                except Exception as e:
                    failure = to_failure(self.classifier, e, operation)
                    logger.warning(
                        "Query failed",
                        extra={"kind": failure.kind.value, "error": failure.message},
                    )
                    raise failure from e

            try:
                result = await self.retry.execute(attempt, should_retry=self._should_retry)
            except RetryExhaustedError as exhausted:
                failure = to_failure(self.classifier, exhausted.last_error, operation)
                failure.attempts = exhausted.attempts
                logger.error(
                    "Query gave up",
                    extra={"kind": failure.kind.value, "attempts": failure.attempts},
                )
                # __cause__ stays the original transport error
                raise failure

            logger.debug("Query executed successfully")
            return result

    def _should_retry(self, error: Exception) -> bool:
        kind = error.kind if isinstance(error, SyncFailure) else self.classifier.classify(error)
        return self.classifier.is_retryable(kind)

    async def health_check(self, probe: Callable[[], Awaitable[Any]]) -> bool:
        """Send a minimal probe through the normal request path.

        Returns:
            True if the probe succeeded, False on any SyncFailure
        """
        logger.debug("Performing health check")
        try:
            await self.execute_query("healthCheck", probe)
        except SyncFailure as failure:
            logger.warning(
                "Health check failed",
                extra={"kind": failure.kind.value, "error": failure.message},
            )
            return False
        logger.info("Health check passed")
        return True
