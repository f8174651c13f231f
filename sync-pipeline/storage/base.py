"""Base protocol and data classes for storage backends."""

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from core.types import EntityType


@dataclass
class SaveResult:
    """Result of a save operation."""

    inserted: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.inserted + self.skipped

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def merge(self, other: "SaveResult") -> "SaveResult":
        """Merge another SaveResult into this one."""
        return SaveResult(
            inserted=self.inserted + other.inserted,
            skipped=self.skipped + other.skipped,
            errors=self.errors + other.errors,
        )


@runtime_checkable
class Storage(Protocol):
    """Protocol for storage backends (CSV, Supabase).

    All storage backends must implement this protocol.
    The protocol is runtime checkable, so you can use isinstance() to verify.
    """

    @property
    def name(self) -> str:
        """Storage backend name (e.g., 'csv', 'supabase')."""
        ...

    def save(self, entity: EntityType, records: list[dict[str, Any]]) -> SaveResult:
        """Upsert mapped records of one entity type.

        Args:
            entity: Entity type the records belong to
            records: Flat records produced by the mapper, each with an 'id'

        Returns:
            SaveResult with counts; failures are reported in `errors`
        """
        ...


class BaseStorage:
    """Base implementation with common functionality.

    Subclasses should override save().
    """

    def __init__(self, name: str):
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def save(self, entity: EntityType, records: list[dict[str, Any]]) -> SaveResult:
        raise NotImplementedError("Subclass must implement save")
