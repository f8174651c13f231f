"""Supabase storage backend."""

from dataclasses import dataclass, field
from typing import Any

from supabase import Client, create_client

from config.constants import SUPABASE_CHUNK_SIZE
from core.types import EntityType
from observability.logger import get_logger

from .base import BaseStorage, SaveResult

logger = get_logger(__name__)


@dataclass
class SupabaseStorage(BaseStorage):
    """Supabase storage backend.

    Saves records directly to the posts / topics / collections tables.
    Uses upsert operations on the primary key for idempotent writes.
    """

    supabase_url: str
    supabase_key: str
    chunk_size: int = SUPABASE_CHUNK_SIZE
    _client: Client | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        super().__init__("supabase")

    @property
    def client(self) -> Client:
        """Lazy initialization of Supabase client."""
        if self._client is None:
            self._client = create_client(self.supabase_url, self.supabase_key)
        return self._client

    def save(self, entity: EntityType, records: list[dict[str, Any]]) -> SaveResult:
        """Upsert records into the entity's table."""
        if not records:
            return SaveResult(inserted=0, skipped=0)

        table = entity.value
        try:
            # Remove None values to minimize payload
            upsert_records = [
                {k: v for k, v in record.items() if v is not None} for record in records
            ]

            # Batch upsert in chunks
            inserted = 0
            for i in range(0, len(upsert_records), self.chunk_size):
                chunk = upsert_records[i : i + self.chunk_size]
                result = self.client.table(table).upsert(chunk, on_conflict="id").execute()
                inserted += len(result.data) if result.data else 0

            logger.info(f"Upserted {inserted} {table} to Supabase")
            return SaveResult(inserted=inserted, skipped=len(records) - inserted)

        except Exception as e:
            logger.error(f"Failed to save {table} to Supabase: {e}")
            return SaveResult(inserted=0, errors=[str(e)])


@dataclass
class CompositeStorage(BaseStorage):
    """Composite storage that writes to multiple backends.

    Typically used to write to both CSV and Supabase.
    """

    storages: list[BaseStorage]

    def __post_init__(self) -> None:
        names = [s.name for s in self.storages]
        super().__init__(f"composite({','.join(names)})")

    def save(self, entity: EntityType, records: list[dict[str, Any]]) -> SaveResult:
        """Save to all backends.

        A record counts as inserted once every backend has stored it, so
        `inserted` is the minimum across backends. Errors are concatenated.
        """
        results = [storage.save(entity, records) for storage in self.storages]
        if not results:
            return SaveResult()

        inserted = min(r.inserted for r in results)
        return SaveResult(
            inserted=inserted,
            skipped=len(records) - inserted,
            errors=[error for r in results for error in r.errors],
        )
