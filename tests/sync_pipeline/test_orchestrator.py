"""Tests for sync-pipeline/sync/orchestrator.py."""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "sync-pipeline"))

from config.settings import Settings
from core.errors import FailureKind, StoreUnavailableError, SyncError, SyncFailure
from core.types import AllSyncOptions, EntityType, SyncOptions
from storage.cursor_store import CursorStore
from sync.entities import EntitySpec, build_entity_specs
from sync.orchestrator import SyncOrchestrator


def identity(node: dict) -> dict:
    return dict(node)


class BrokenPostsCursorStore(CursorStore):
    """Cursor store whose writes for posts fail."""

    def update(self, key, cursor):
        if key == "posts":
            raise StoreUnavailableError("disk full", path=str(self.path))
        return super().update(key, cursor)


def make_orchestrator(sources: dict, storage, cursor_store, **kwargs) -> SyncOrchestrator:
    specs = {
        entity: EntitySpec(entity=entity, fetch=fetch, mapper=identity)
        for entity, fetch in sources.items()
    }
    kwargs.setdefault("batch_size", 2)
    return SyncOrchestrator(specs=specs, storage=storage, cursor_store=cursor_store, **kwargs)


@pytest.fixture
def three_sources(paged_source):
    return {
        EntityType.POSTS: paged_source("p", total=100),
        EntityType.TOPICS: paged_source("t", total=100),
        EntityType.COLLECTIONS: paged_source("k", total=100),
    }


class TestRunEntitySync:
    """Tests for run_entity_sync()."""

    @pytest.mark.asyncio
    async def test_uses_options(self, three_sources, memory_storage, cursor_store):
        orchestrator = make_orchestrator(three_sources, memory_storage, cursor_store)

        stats = await orchestrator.run_entity_sync(
            EntityType.TOPICS, SyncOptions(batch_size=3, max_items=5, cursor="t-10")
        )

        assert three_sources[EntityType.TOPICS].calls == [(3, "t-10"), (2, "t-13")]
        assert stats.entity == "topics"
        assert stats.total_fetched == 5
        assert cursor_store.get("topics") == "t-15"
        assert three_sources[EntityType.POSTS].calls == []

    @pytest.mark.asyncio
    async def test_defaults_from_orchestrator(self, three_sources, memory_storage, cursor_store):
        orchestrator = make_orchestrator(three_sources, memory_storage, cursor_store, max_items=4)

        stats = await orchestrator.run_entity_sync(EntityType.POSTS)

        assert stats.total_fetched == 4
        assert [size for size, _ in three_sources[EntityType.POSTS].calls] == [2, 2]

    @pytest.mark.asyncio
    async def test_failure_propagates(self, scripted_source, memory_storage, cursor_store):
        fetch = scripted_source([SyncFailure(FailureKind.UNAUTHORIZED, "Invalid token")])
        orchestrator = make_orchestrator({EntityType.POSTS: fetch}, memory_storage, cursor_store)

        with pytest.raises(SyncError) as exc_info:
            await orchestrator.run_entity_sync(EntityType.POSTS)
        assert str(exc_info.value) == "Posts synchronization failed: Invalid token"

    @pytest.mark.asyncio
    async def test_unregistered_entity(self, paged_source, memory_storage, cursor_store):
        orchestrator = make_orchestrator({EntityType.POSTS: paged_source("p", 1)}, memory_storage, cursor_store)
        with pytest.raises(ValueError):
            await orchestrator.run_entity_sync(EntityType.TOPICS)


class TestRunAllSync:
    """Tests for the round-robin run_all_sync()."""

    @pytest.mark.asyncio
    async def test_fair_share_for_three_types(self, three_sources, memory_storage, cursor_store):
        """max_items=9 over 3 types gives each exactly 3, in two rounds."""
        orchestrator = make_orchestrator(three_sources, memory_storage, cursor_store)

        stats = await orchestrator.run_all_sync(AllSyncOptions(max_items=9))

        for entity, prefix in ((EntityType.POSTS, "p"), (EntityType.TOPICS, "t"), (EntityType.COLLECTIONS, "k")):
            assert three_sources[entity].calls == [(2, None), (1, f"{prefix}-2")]
            assert stats.by_entity[entity.value].total_fetched == 3
            assert cursor_store.get(entity.value) == f"{prefix}-3"
        assert stats.entity == "all"
        assert stats.total_fetched == 9
        assert stats.total_saved == 9
        assert stats.errors == 0

    @pytest.mark.asyncio
    async def test_rounds_interleave_entity_types(self, paged_source, memory_storage, cursor_store):
        """Each round visits every type before the next round starts."""
        order: list[str] = []

        def tracking(name: str):
            source = paged_source(name, total=100)

            async def fetch(batch_size, cursor):
                order.append(name)
                return await source(batch_size, cursor)

            return fetch

        orchestrator = make_orchestrator(
            {EntityType.POSTS: tracking("p"), EntityType.TOPICS: tracking("t")},
            memory_storage,
            cursor_store,
        )

        await orchestrator.run_all_sync(AllSyncOptions(max_items=8))

        assert order == ["p", "t", "p", "t"]

    @pytest.mark.asyncio
    async def test_early_exhaustion(self, paged_source, memory_storage, cursor_store):
        """A type that runs out stops; the others still get their share."""
        sources = {
            EntityType.POSTS: paged_source("p", total=100),
            EntityType.TOPICS: paged_source("t", total=1),
            EntityType.COLLECTIONS: paged_source("k", total=100),
        }
        orchestrator = make_orchestrator(sources, memory_storage, cursor_store)

        stats = await orchestrator.run_all_sync(AllSyncOptions(max_items=9))

        assert len(sources[EntityType.TOPICS].calls) == 1
        assert stats.by_entity["topics"].total_fetched == 1
        assert stats.by_entity["topics"].exhausted is True
        assert stats.by_entity["posts"].total_fetched == 3
        assert stats.by_entity["collections"].total_fetched == 3
        assert stats.total_fetched == 7
        assert stats.exhausted is False

    @pytest.mark.asyncio
    async def test_failed_type_does_not_abort_others(
        self, paged_source, scripted_source, memory_storage, cursor_store
    ):
        """A failing type is dropped for the run with errors incremented."""
        failing = scripted_source([SyncFailure(FailureKind.RATE_LIMITED, "Too many requests", attempts=5)])
        sources = {
            EntityType.POSTS: paged_source("p", total=100),
            EntityType.TOPICS: failing,
            EntityType.COLLECTIONS: paged_source("k", total=100),
        }
        orchestrator = make_orchestrator(sources, memory_storage, cursor_store)

        stats = await orchestrator.run_all_sync(AllSyncOptions(max_items=9))

        assert len(failing.calls) == 1
        topics = stats.by_entity["topics"]
        assert topics.errors == 1
        assert topics.failure_kind == "rate_limited"
        assert topics.total_fetched == 0
        assert stats.by_entity["posts"].total_fetched == 3
        assert stats.by_entity["collections"].total_fetched == 3
        assert stats.errors == 1

    @pytest.mark.asyncio
    async def test_cursor_write_failure_does_not_abort_others(self, three_sources, memory_storage, tmp_path):
        """A type whose cursor cannot be saved is dropped; the others still sync."""
        cursor_store = BrokenPostsCursorStore(tmp_path / "sync-cursors.json")
        orchestrator = make_orchestrator(three_sources, memory_storage, cursor_store)

        stats = await orchestrator.run_all_sync(AllSyncOptions(max_items=6))

        posts = stats.by_entity["posts"]
        assert posts.errors == 1
        assert posts.failure_kind == "store_unavailable"
        assert len(three_sources[EntityType.POSTS].calls) == 1
        assert stats.by_entity["topics"].total_fetched == 2
        assert stats.by_entity["collections"].total_fetched == 2
        assert cursor_store.get("topics") == "t-2"
        assert cursor_store.get("posts") is None

    @pytest.mark.asyncio
    async def test_clear_cursors_restarts_from_beginning(self, three_sources, memory_storage, cursor_store):
        cursor_store.update("posts", "p-50")
        orchestrator = make_orchestrator(three_sources, memory_storage, cursor_store)

        await orchestrator.run_all_sync(AllSyncOptions(max_items=3, clear_cursors=True))

        assert three_sources[EntityType.POSTS].calls[0] == (1, None)
        assert cursor_store.get("posts") == "p-1"

    @pytest.mark.asyncio
    async def test_resumes_from_saved_cursors(self, three_sources, memory_storage, cursor_store):
        """A second run picks up every type where the first one stopped."""
        orchestrator = make_orchestrator(three_sources, memory_storage, cursor_store)

        await orchestrator.run_all_sync(AllSyncOptions(max_items=6))
        stats = await orchestrator.run_all_sync(AllSyncOptions(max_items=6))

        assert three_sources[EntityType.TOPICS].calls[1] == (2, "t-2")
        assert stats.by_entity["topics"].next_cursor == "t-4"

    @pytest.mark.asyncio
    async def test_share_below_one_fetches_nothing(self, three_sources, memory_storage, cursor_store):
        orchestrator = make_orchestrator(three_sources, memory_storage, cursor_store)

        stats = await orchestrator.run_all_sync(AllSyncOptions(max_items=2))

        assert stats.total_fetched == 0
        assert all(source.calls == [] for source in three_sources.values())

    @pytest.mark.asyncio
    async def test_persist_failure_counted_in_entity_stats(
        self, three_sources, failing_storage, cursor_store
    ):
        storage = failing_storage(fail_on_calls=(1,))
        orchestrator = make_orchestrator(three_sources, storage, cursor_store)

        stats = await orchestrator.run_all_sync(AllSyncOptions(max_items=6))

        assert stats.by_entity["posts"].errors == 1
        assert stats.by_entity["posts"].failure_kind is None
        assert cursor_store.get("posts") == "p-2"


class TestWiring:
    """Tests for entity specs and settings-based construction."""

    def test_build_entity_specs(self, sample_post_node):
        source = MagicMock()
        specs = build_entity_specs(source)

        assert list(specs) == [EntityType.TOPICS, EntityType.COLLECTIONS, EntityType.POSTS]
        source.fetch_operation.assert_any_call(EntityType.COLLECTIONS)
        assert specs[EntityType.POSTS].mapper(sample_post_node)["id"] == "424242"

    def test_from_settings(self, memory_storage, cursor_store):
        settings = Settings(_env_file=None, batch_size=7, max_items=21, advance_on_persist_failure=False)

        orchestrator = SyncOrchestrator.from_settings({}, memory_storage, cursor_store, settings)

        assert orchestrator.batch_size == 7
        assert orchestrator.max_items == 21
        assert orchestrator.advance_on_persist_failure is False
