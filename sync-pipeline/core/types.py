"""Shared types for the sync pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class EntityType(str, Enum):
    """Entity types synchronized from the remote API.

    The value doubles as the cursor key in the cursor store.
    """

    POSTS = "posts"
    TOPICS = "topics"
    COLLECTIONS = "collections"

    @classmethod
    def parse(cls, value: str | EntityType) -> EntityType:
        """Parse an entity name, accepting singular forms ("post")."""
        if isinstance(value, EntityType):
            return value
        key = value.strip().lower()
        if not key.endswith("s"):
            key = f"{key}s"
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown entity type: {value}") from None


@dataclass(frozen=True)
class RateLimitConfig:
    """Token bucket configuration."""

    requests_per_second: float = 1.0
    burst_limit: int = 5

    def __post_init__(self) -> None:
        if self.requests_per_second <= 0:
            raise ValueError("requests_per_second must be > 0")
        if self.burst_limit < 1:
            raise ValueError("burst_limit must be >= 1")


@dataclass(frozen=True)
class RetryConfig:
    """Retry configuration. Delays are in seconds."""

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    backoff_multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must be >= 0")
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")
        if self.backoff_multiplier < 1:
            raise ValueError("backoff_multiplier must be >= 1")


@dataclass
class Page(Generic[T]):
    """One page of a cursor-paginated result."""

    items: list[T] = field(default_factory=list)
    has_more: bool = False
    next_cursor: str | None = None

    @property
    def is_exhausted(self) -> bool:
        """An empty page ends pagination regardless of has_more."""
        return not self.items or not self.has_more

    def __len__(self) -> int:
        return len(self.items)


@dataclass
class SyncOptions:
    """Options for a single entity sync."""

    batch_size: int | None = None
    max_items: int | None = None
    cursor: str | None = None


@dataclass
class AllSyncOptions:
    """Options for the multi-entity round-robin sync."""

    batch_size: int | None = None
    max_items: int | None = None
    clear_cursors: bool = False


@dataclass
class SyncStats:
    """Statistics for one sync run.

    Mutated per batch while the run is in progress, frozen by `complete()`.
    Only `next_cursor` is durable, through the cursor store.
    """

    entity: str = "all"
    total_fetched: int = 0
    total_saved: int = 0
    errors: int = 0
    start_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    end_time: datetime | None = None
    next_cursor: str | None = None
    exhausted: bool = False
    failure_kind: str | None = None
    by_entity: dict[str, SyncStats] = field(default_factory=dict)

    @property
    def duration_seconds(self) -> float:
        end = self.end_time or datetime.now(timezone.utc)
        return (end - self.start_time).total_seconds()

    @property
    def is_complete(self) -> bool:
        return self.end_time is not None

    def complete(self) -> SyncStats:
        """Stamp the end time."""
        if self.end_time is None:
            self.end_time = datetime.now(timezone.utc)
        return self

    def absorb(self, other: SyncStats) -> None:
        """Add another run's counters into this one."""
        self.total_fetched += other.total_fetched
        self.total_saved += other.total_saved
        self.errors += other.errors

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        data: dict[str, Any] = {
            "entity": self.entity,
            "total_fetched": self.total_fetched,
            "total_saved": self.total_saved,
            "errors": self.errors,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_seconds": round(self.duration_seconds, 2),
            "next_cursor": self.next_cursor,
            "exhausted": self.exhausted,
            "failure_kind": self.failure_kind,
        }
        if self.by_entity:
            data["by_entity"] = {k: v.to_dict() for k, v in self.by_entity.items()}
        return data


@dataclass
class CursorState:
    """Durable mapping of entity key to its last saved cursor."""

    cursors: dict[str, str] = field(default_factory=dict)
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def get(self, entity_key: str) -> str | None:
        return self.cursors.get(entity_key)

    def to_dict(self) -> dict[str, Any]:
        return {
            "cursors": dict(sorted(self.cursors.items())),
            "last_updated": self.last_updated.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CursorState:
        """Build from the persisted JSON layout.

        Raises:
            ValueError: If the layout is not recognised
        """
        cursors = data.get("cursors")
        if not isinstance(cursors, dict):
            raise ValueError("'cursors' must be an object")
        if not all(isinstance(k, str) and isinstance(v, str) for k, v in cursors.items()):
            raise ValueError("cursor keys and values must be strings")
        raw_updated = data.get("last_updated")
        if not isinstance(raw_updated, str):
            raise ValueError("'last_updated' must be an ISO-8601 string")
        return cls(cursors=dict(cursors), last_updated=datetime.fromisoformat(raw_updated))
