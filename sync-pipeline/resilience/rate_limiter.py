"""Token Bucket Rate Limiter.

Bounds the outbound request rate against one remote quota:
- Each request consumes one token from the bucket
- Tokens refill lazily at a constant rate on every acquisition attempt
- Bursts are allowed up to the bucket capacity

The bucket is not partitioned. Every caller drawing from the same quota must
share the same instance, so it is constructed once and injected.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

from core.types import RateLimitConfig
from observability.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class RateLimiter:
    """Token bucket rate limiter.

    Usage:
        limiter = RateLimiter(requests_per_second=0.5, burst_limit=3)

        # Acquire before making request
        await limiter.acquire()
        await make_request()

        # Or wrap the call
        result = await limiter.execute(make_request)
    """

    # Configuration
    requests_per_second: float = 1.0
    burst_limit: int = 5

    # Time sources (injectable for tests)
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, repr=False)

    # State
    _tokens: float = field(init=False)
    _last_refill: float = field(init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        """Validate configuration and start with a full bucket."""
        RateLimitConfig(self.requests_per_second, self.burst_limit)
        self._tokens = float(self.burst_limit)
        self._last_refill = self.clock()

    @classmethod
    def from_config(cls, config: RateLimitConfig, **kwargs) -> RateLimiter:
        return cls(
            requests_per_second=config.requests_per_second,
            burst_limit=config.burst_limit,
            **kwargs,
        )

    async def acquire(self) -> float:
        """Wait until a token is available, then consume it.

        Returns:
            Total time spent waiting in seconds (0 if no wait was needed)
        """
        async with self._lock:
            waited = 0.0
            while True:
                self._refill()

                if self._tokens >= 1:
                    self._tokens -= 1
                    return waited

                # Refill is lazy, so re-check after every wait
                wait_time = 1.0 / self.requests_per_second
                logger.debug(
                    f"Rate limit reached, waiting {wait_time:.2f}s",
                    extra={"tokens": round(self._tokens, 3)},
                )
                await self.sleep(wait_time)
                waited += wait_time

    async def execute(self, fn: Callable[[], Awaitable[T]]) -> T:
        """Acquire a token, then await fn(). The outcome of fn is not inspected."""
        await self.acquire()
        return await fn()

    def _refill(self) -> None:
        now = self.clock()
        elapsed = max(0.0, now - self._last_refill)
        self._tokens = min(
            float(self.burst_limit),
            self._tokens + elapsed * self.requests_per_second,
        )
        self._last_refill = now

    @property
    def available_tokens(self) -> float:
        """Current number of available tokens (approximate, does not refill)."""
        elapsed = max(0.0, self.clock() - self._last_refill)
        return min(float(self.burst_limit), self._tokens + elapsed * self.requests_per_second)

    def update_config(
        self,
        requests_per_second: float | None = None,
        burst_limit: int | None = None,
    ) -> None:
        """Change rate or capacity. A smaller burst limit clamps the bucket."""
        config = RateLimitConfig(
            requests_per_second=requests_per_second or self.requests_per_second,
            burst_limit=burst_limit or self.burst_limit,
        )
        self._refill()
        self.requests_per_second = config.requests_per_second
        self.burst_limit = config.burst_limit
        self._tokens = min(self._tokens, float(self.burst_limit))
