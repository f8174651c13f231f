"""Error types for the sync pipeline.

Fetch-side failures are a single exception type, `SyncFailure`, tagged with
a `FailureKind`. Callers branch on `failure.kind` instead of on subclasses:

    try:
        page = await executor.execute_query("getPosts", call)
    except SyncFailure as failure:
        match failure.kind:
            case FailureKind.UNAUTHORIZED:
                ...
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .types import SyncStats


class FailureKind(str, Enum):
    """Classification of a failed remote call."""

    TRANSIENT = "transient"  # network, timeout, 5xx - retry
    RATE_LIMITED = "rate_limited"  # HTTP 429 - wait and retry
    UNAUTHORIZED = "unauthorized"  # HTTP 401 / invalid token - don't retry
    CLIENT_ERROR = "client_error"  # other 4xx - don't retry
    UNKNOWN = "unknown"  # unrecognised - surface, don't retry

    @property
    def is_retryable(self) -> bool:
        """Whether failures of this kind are worth retrying."""
        match self:
            case FailureKind.TRANSIENT | FailureKind.RATE_LIMITED:
                return True
            case _:
                return False


class SyncFailure(Exception):
    """A classified failure of one remote call.

    Attributes:
        kind: FailureKind assigned by the error classifier
        operation: Logical operation name (e.g. "getPosts")
        status: HTTP status code, if the transport reported one
        details: Extra structured data (GraphQL errors, original type)
        attempts: How many attempts were made before giving up
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        *,
        operation: str | None = None,
        status: int | None = None,
        details: dict[str, Any] | None = None,
        attempts: int = 1,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.operation = operation
        self.status = status
        self.details = details or {}
        self.attempts = attempts

    @property
    def is_retryable(self) -> bool:
        return self.kind.is_retryable

    def to_dict(self) -> dict[str, Any]:
        """Serialize for structured logging."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "operation": self.operation,
            "status": self.status,
            "attempts": self.attempts,
            "is_retryable": self.is_retryable,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"SyncFailure(kind={self.kind.value!r}, message={self.message!r})"


class RetryExhaustedError(Exception):
    """Raised when a retried operation gives up."""

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"Operation failed after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


class StoreUnavailableError(Exception):
    """Cursor state could not be read or written."""

    kind = "store_unavailable"

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class PersistFailure(Exception):
    """Downstream write of a page failed.

    Never aborts the fetch loop; it is logged and counted in SyncStats.errors.
    """

    def __init__(self, message: str, *, entity: str, count: int = 0) -> None:
        super().__init__(message)
        self.entity = entity
        self.count = count


class SyncError(Exception):
    """Top-level failure of one entity synchronization.

    Carries the fetch failure that stopped the loop and the stats accumulated
    up to that point. Pages persisted before the failure stay persisted.
    """

    def __init__(self, entity: str, failure: SyncFailure, stats: SyncStats) -> None:
        super().__init__(
            f"{entity.capitalize()} synchronization failed: {failure.message}"
        )
        self.entity = entity
        self.failure = failure
        self.stats = stats

    @property
    def kind(self) -> FailureKind:
        return self.failure.kind
