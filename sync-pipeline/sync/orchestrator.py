"""Sync orchestrator.

Two modes:
- run_entity_sync: one entity type, straight through BatchFetchLoop
- run_all_sync:    all registered types, round-robin in sub-batches so every
                   type gets an equal share of max_items

In both modes the durable cursor advances after every page, so an
interrupted run resumes where it stopped.
"""

from __future__ import annotations

from dataclasses import dataclass

from config.constants import DEFAULT_BATCH_SIZE, DEFAULT_MAX_ITEMS
from config.settings import Settings
from core.errors import StoreUnavailableError, SyncError
from core.types import AllSyncOptions, EntityType, SyncOptions, SyncStats
from observability.logger import get_logger, log_context
from storage.base import Storage
from storage.cursor_store import CursorStore

from .batch_loop import BatchFetchLoop
from .entities import EntitySpec

logger = get_logger(__name__)


@dataclass
class SyncOrchestrator:
    """Runs single-entity and multi-entity syncs.

    Usage:
        orchestrator = SyncOrchestrator.from_settings(specs, storage, cursor_store, settings)
        stats = await orchestrator.run_all_sync(AllSyncOptions(max_items=30))
    """

    specs: dict[EntityType, EntitySpec]
    storage: Storage
    cursor_store: CursorStore
    batch_size: int = DEFAULT_BATCH_SIZE
    max_items: int = DEFAULT_MAX_ITEMS
    advance_on_persist_failure: bool = True

    @classmethod
    def from_settings(
        cls,
        specs: dict[EntityType, EntitySpec],
        storage: Storage,
        cursor_store: CursorStore,
        settings: Settings,
    ) -> SyncOrchestrator:
        """Create an orchestrator with defaults taken from Settings."""
        return cls(
            specs=specs,
            storage=storage,
            cursor_store=cursor_store,
            batch_size=settings.batch_size,
            max_items=settings.max_items,
            advance_on_persist_failure=settings.advance_on_persist_failure,
        )

    @property
    def entities(self) -> list[EntityType]:
        return list(self.specs)

    def build_loop(self, entity: EntityType, batch_size: int, max_items: int) -> BatchFetchLoop:
        """Create a batch loop for one entity type."""
        spec = self.specs.get(entity)
        if spec is None:
            raise ValueError(f"Entity type not registered: {entity.value}")

        return BatchFetchLoop(
            entity=entity,
            fetch=spec.fetch,
            mapper=spec.mapper,
            persist=self.storage.save,
            cursor_store=self.cursor_store,
            batch_size=batch_size,
            max_items=max_items,
            advance_on_persist_failure=self.advance_on_persist_failure,
        )

    async def run_entity_sync(
        self,
        entity: EntityType,
        options: SyncOptions | None = None,
    ) -> SyncStats:
        """Sync one entity type.

        Raises:
            SyncError: The fetch failed; partial stats are on the error
        """
        options = options or SyncOptions()
        loop = self.build_loop(
            entity,
            batch_size=options.batch_size or self.batch_size,
            max_items=self.max_items if options.max_items is None else options.max_items,
        )
        return await loop.run(cursor=options.cursor)

    async def run_all_sync(self, options: AllSyncOptions | None = None) -> SyncStats:
        """Sync every registered entity type, round-robin.

        Each type's share is max_items // number of types. A failing type is
        dropped for the rest of the run without stopping the others.
        """
        options = options or AllSyncOptions()
        batch_size = options.batch_size or self.batch_size
        max_items = self.max_items if options.max_items is None else options.max_items
        entities = self.entities

        total = SyncStats(entity="all")
        if not entities:
            return total.complete()

        if options.clear_cursors:
            logger.info("Clearing saved cursors before sync")
            self.cursor_store.clear()

        state = self.cursor_store.load()
        cursors: dict[EntityType, str | None] = {
            e: state.get(e.value) if state else None for e in entities
        }
        per_entity = {e: SyncStats(entity=e.value, next_cursor=cursors[e]) for e in entities}
        exhausted: set[EntityType] = set()
        failed: set[EntityType] = set()

        items_per_type = max_items // len(entities)
        logger.info(
            "Starting sync-all",
            extra={
                "entities": [e.value for e in entities],
                "items_per_type": items_per_type,
                "batch_size": batch_size,
            },
        )

        round_index = 0
        while True:
            active = [
                e
                for e in entities
                if e not in exhausted
                and e not in failed
                and per_entity[e].total_fetched < items_per_type
            ]
            if not active:
                break

            round_index += 1
            progress = 0

            with log_context(round_index=round_index):
                for entity in active:
                    stats = per_entity[entity]
                    size = min(batch_size, items_per_type - stats.total_fetched)
                    loop = self.build_loop(entity, batch_size=size, max_items=size)

                    try:
                        sub = await loop.run(cursor=cursors[entity])
                    except SyncError as e:
                        stats.absorb(e.stats)
                        stats.errors += 1
                        stats.failure_kind = e.kind.value
                        failed.add(entity)
                        logger.error(
                            f"{entity.value.capitalize()} failed, continuing with others",
                            extra={"entity": entity.value, "error": str(e), "kind": e.kind.value},
                        )
                        continue
                    except StoreUnavailableError as e:
                        stats.errors += 1
                        stats.failure_kind = e.kind
                        failed.add(entity)
                        logger.error(
                            f"{entity.value.capitalize()} cursor could not be saved, continuing with others",
                            extra={"entity": entity.value, "error": str(e), "kind": e.kind},
                        )
                        continue

                    stats.absorb(sub)
                    progress += sub.total_fetched
                    if sub.next_cursor:
                        cursors[entity] = sub.next_cursor
                        stats.next_cursor = sub.next_cursor
                    if sub.exhausted:
                        stats.exhausted = True
                        exhausted.add(entity)

            logger.info(
                "Round completed",
                extra={"round_index": round_index, "fetched": progress},
            )
            if progress == 0:
                break

        for entity in entities:
            stats = per_entity[entity].complete()
            total.absorb(stats)
            total.by_entity[entity.value] = stats
        total.exhausted = len(exhausted) == len(entities)
        total.complete()

        logger.info("Sync-all finished", extra=total.to_dict())
        return total
