"""Resumable batch fetch loop for one entity type.

Loop flow, per page:
1. FETCHING       - request min(batch_size, remaining) items after the cursor
2. MAPPING        - raw nodes -> flat records
3. PERSISTING     - records -> storage (failures are counted, not raised)
4. CURSOR_SAVING  - durable cursor advances to the page's next_cursor

The loop ends (DONE) on an empty page, has_more=False or when max_items
has been fetched. A fetch failure ends it (FAILED) with a SyncError that
carries the partial stats; pages already persisted stay persisted.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable

from config.constants import DEFAULT_BATCH_SIZE, DEFAULT_MAX_ITEMS
from core.errors import PersistFailure, SyncError, SyncFailure
from core.types import EntityType, SyncStats
from observability.logger import get_logger, log_context
from sources.base import FetchPage
from storage.base import SaveResult
from storage.cursor_store import CursorStore
from storage.mapper import Mapper

logger = get_logger(__name__)

Persist = Callable[
    [EntityType, list[dict[str, Any]]],
    "SaveResult | None | Awaitable[SaveResult | None]",
]


class LoopState(str, Enum):
    """Batch loop states."""

    IDLE = "idle"
    FETCHING = "fetching"
    MAPPING = "mapping"
    PERSISTING = "persisting"
    CURSOR_SAVING = "cursor_saving"
    DONE = "done"
    FAILED = "failed"


@dataclass
class BatchFetchLoop:
    """Fetch, map, persist and checkpoint pages of one entity type.

    Usage:
        loop = BatchFetchLoop(
            entity=EntityType.POSTS,
            fetch=client.fetch_posts,
            mapper=map_post,
            persist=storage.save,
            cursor_store=CursorStore(path),
        )
        stats = await loop.run()
    """

    entity: EntityType
    fetch: FetchPage
    mapper: Mapper
    persist: Persist
    cursor_store: CursorStore
    batch_size: int = DEFAULT_BATCH_SIZE
    max_items: int = DEFAULT_MAX_ITEMS
    advance_on_persist_failure: bool = True
    state: LoopState = field(default=LoopState.IDLE, init=False)

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError("batch_size must be >= 1")

    async def run(self, cursor: str | None = None) -> SyncStats:
        """Run the loop until done.

        Args:
            cursor: Explicit start position; defaults to the persisted cursor

        Returns:
            SyncStats for this run (next_cursor = last durable position)

        Raises:
            SyncError: A fetch failed (retries exhausted or non-retryable)
            StoreUnavailableError: Cursor state could not be read or written
        """
        stats = SyncStats(entity=self.entity.value)

        with log_context(entity=self.entity.value, phase="sync"):
            if cursor is None:
                cursor = self.cursor_store.get(self.entity.value)
            stats.next_cursor = cursor

            logger.info(
                "Starting batch loop",
                extra={
                    "cursor": cursor,
                    "batch_size": self.batch_size,
                    "max_items": self.max_items,
                },
            )

            batch_index = 0
            while stats.total_fetched < self.max_items:
                batch_index += 1
                size = min(self.batch_size, self.max_items - stats.total_fetched)

                with log_context(batch_index=batch_index):
                    self.state = LoopState.FETCHING
                    try:
                        page = await self.fetch(size, cursor)
                    except SyncFailure as failure:
                        self.state = LoopState.FAILED
                        stats.failure_kind = failure.kind.value
                        stats.complete()
                        logger.error(
                            "Fetch failed, stopping",
                            extra={"kind": failure.kind.value, "error": failure.message},
                        )
                        raise SyncError(self.entity.value, failure, stats) from failure

                    stats.total_fetched += len(page.items)

                    if page.items:
                        persisted = await self._persist_page(page.items, stats)

                        if not persisted and not self.advance_on_persist_failure:
                            logger.warning(
                                "Persist failed, stopping without advancing cursor",
                                extra={"cursor": cursor},
                            )
                            break

                        if page.next_cursor:
                            self.state = LoopState.CURSOR_SAVING
                            self.cursor_store.update(self.entity.value, page.next_cursor)
                            cursor = page.next_cursor
                            stats.next_cursor = cursor

                    if page.is_exhausted:
                        stats.exhausted = True
                        break

                    if not page.next_cursor:
                        # Without a cursor the next request would repeat this page
                        logger.warning(
                            "Page has more items but no next cursor, stopping",
                            extra={"cursor": cursor, "count": len(page.items)},
                        )
                        stats.exhausted = True
                        break

        self.state = LoopState.DONE
        stats.complete()
        logger.info("Batch loop finished", extra=stats.to_dict())
        return stats

    async def _persist_page(self, items: list[dict[str, Any]], stats: SyncStats) -> bool:
        """Map and persist one page. Returns False if persistence failed."""
        try:
            self.state = LoopState.MAPPING
            records = [self.mapper(item) for item in items]

            self.state = LoopState.PERSISTING
            result = self.persist(self.entity, records)
            if inspect.isawaitable(result):
                result = await result

            if result is None:
                result = SaveResult(inserted=len(records))
            if result.has_errors:
                raise PersistFailure(
                    "; ".join(result.errors), entity=self.entity.value, count=len(records)
                )
        except Exception as e:
            stats.errors += 1
            logger.error(
                "Failed to persist page",
                extra={"error": str(e), "count": len(items)},
            )
            return False

        stats.total_saved += result.inserted
        logger.debug(
            "Page persisted",
            extra={"inserted": result.inserted, "skipped": result.skipped},
        )
        return True
