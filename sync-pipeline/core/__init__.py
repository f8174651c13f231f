"""Core infrastructure for the sync pipeline."""

from .errors import (
    FailureKind,
    PersistFailure,
    RetryExhaustedError,
    StoreUnavailableError,
    SyncError,
    SyncFailure,
)
from .types import (
    AllSyncOptions,
    CursorState,
    EntityType,
    Page,
    RateLimitConfig,
    RetryConfig,
    SyncOptions,
    SyncStats,
)

__all__ = [
    # Errors
    "FailureKind",
    "SyncFailure",
    "RetryExhaustedError",
    "StoreUnavailableError",
    "PersistFailure",
    "SyncError",
    # Types
    "EntityType",
    "RateLimitConfig",
    "RetryConfig",
    "Page",
    "SyncOptions",
    "AllSyncOptions",
    "SyncStats",
    "CursorState",
]
