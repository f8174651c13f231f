"""Resilience components for talking to a rate-limited remote API.

- RateLimiter: Token bucket throttle shared by every request
- RetryExecutor: Exponential backoff with an injected retry predicate
- ErrorClassifier: Maps raw failures to a FailureKind
"""

from .classifier import ErrorClassifier, HttpErrorClassifier, to_failure
from .rate_limiter import RateLimiter
from .retry import RetryExecutor, retry

__all__ = [
    "ErrorClassifier",
    "HttpErrorClassifier",
    "RateLimiter",
    "RetryExecutor",
    "retry",
    "to_failure",
]
