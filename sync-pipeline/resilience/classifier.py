"""Failure classification for retry decisions.

This is the one place that knows transport-specific error shapes. Retry logic
only ever sees a FailureKind, so a different remote API can swap in its own
classifier without touching the retry executor.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import aiohttp

from core.errors import FailureKind, SyncFailure


@runtime_checkable
class ErrorClassifier(Protocol):
    """Maps a raw failure to a FailureKind and a retry verdict."""

    def classify(self, error: BaseException) -> FailureKind:
        ...

    def is_retryable(self, kind: FailureKind) -> bool:
        ...


NETWORK_INDICATORS = (
    "econnreset",
    "econnrefused",
    "etimedout",
    "enotfound",
    "connection reset",
    "connection refused",
    "connection aborted",
    "broken pipe",
    "timed out",
    "timeout",
    "name resolution",
    "name or service not known",
    "dns",
    "network",
    "unreachable",
)

TRANSPORT_ERRORS: tuple[type[BaseException], ...] = (
    TimeoutError,
    asyncio.TimeoutError,
    ConnectionError,
    aiohttp.ClientConnectionError,
    aiohttp.ClientPayloadError,
)


def _status_of(error: BaseException) -> int | None:
    """Find an HTTP status on the error or on its response."""
    for attr in ("status", "status_code"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value

    response = getattr(error, "response", None)
    if isinstance(response, dict):
        value = response.get("status")
    else:
        value = getattr(response, "status", None)
    return value if isinstance(value, int) else None


def _api_error_codes(error: BaseException) -> set[str]:
    """Collect structured error codes from a GraphQL/REST error payload."""
    codes: set[str] = set()
    errors: Any = getattr(error, "errors", None) or []
    for item in errors:
        if not isinstance(item, dict):
            continue
        for key in ("error", "code"):
            if isinstance(item.get(key), str):
                codes.add(item[key].lower())
        extensions = item.get("extensions")
        if isinstance(extensions, dict) and isinstance(extensions.get("code"), str):
            codes.add(extensions["code"].lower())
    return codes


@dataclass(frozen=True)
class HttpErrorClassifier:
    """Default classifier for HTTP/GraphQL APIs.

    Classification order:
        1. Already classified SyncFailure keeps its kind
        2. HTTP status (401, 429, 5xx, other 4xx)
        3. Structured API error codes
        4. Transport errors and network-like messages
        5. Anything else is UNKNOWN (surfaced, never blindly retried)
    """

    unauthorized_codes: frozenset[str] = frozenset(
        {"invalid_oauth_token", "unauthorized", "unauthenticated"}
    )
    rate_limit_codes: frozenset[str] = frozenset({"rate_limit_reached", "rate_limited"})
    network_indicators: tuple[str, ...] = NETWORK_INDICATORS

    def classify(self, error: BaseException) -> FailureKind:
        if isinstance(error, SyncFailure):
            return error.kind

        status = _status_of(error)
        if status is not None:
            if status == 401:
                return FailureKind.UNAUTHORIZED
            if status == 429:
                return FailureKind.RATE_LIMITED
            if status >= 500:
                return FailureKind.TRANSIENT
            if 400 <= status < 500:
                return FailureKind.CLIENT_ERROR

        codes = _api_error_codes(error)
        if codes & self.unauthorized_codes:
            return FailureKind.UNAUTHORIZED
        if codes & self.rate_limit_codes:
            return FailureKind.RATE_LIMITED

        if status is None:
            if isinstance(error, TRANSPORT_ERRORS):
                return FailureKind.TRANSIENT
            message = f"{type(error).__name__} {error}".lower()
            if any(indicator in message for indicator in self.network_indicators):
                return FailureKind.TRANSIENT

        return FailureKind.UNKNOWN

    def is_retryable(self, kind: FailureKind) -> bool:
        return kind.is_retryable


def to_failure(
    classifier: ErrorClassifier,
    error: BaseException,
    operation: str | None = None,
) -> SyncFailure:
    """Wrap a raw error into a SyncFailure using the given classifier."""
    if isinstance(error, SyncFailure):
        return error

    details: dict[str, Any] = {"error_type": type(error).__name__}
    errors = getattr(error, "errors", None)
    if errors:
        details["errors"] = errors

    return SyncFailure(
        classifier.classify(error),
        str(error) or type(error).__name__,
        operation=operation,
        status=_status_of(error),
        details=details,
    )
