"""Pytest fixtures for sync pipeline tests."""

import sys
from pathlib import Path

import pytest

# Add sync-pipeline to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "sync-pipeline"))

from core.types import Page
from storage.base import SaveResult
from storage.cursor_store import CursorStore


class FakeClock:
    """Monotonic clock whose sleep advances time instantly."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class ScriptedSource:
    """Fetch operation replaying a fixed sequence of pages or errors.

    Once the script runs out, an empty exhausted page is returned.
    """

    def __init__(self, steps: list):
        self.steps = list(steps)
        self.calls: list[tuple[int, str | None]] = []

    async def __call__(self, batch_size: int, cursor: str | None) -> Page:
        self.calls.append((batch_size, cursor))
        if not self.steps:
            return Page(items=[], has_more=False, next_cursor=None)
        step = self.steps.pop(0)
        if isinstance(step, Exception):
            raise step
        return step


class PagedSource:
    """Fetch operation serving `total` items, positioned by offset cursors."""

    def __init__(self, prefix: str, total: int):
        self.prefix = prefix
        self.total = total
        self.calls: list[tuple[int, str | None]] = []

    async def __call__(self, batch_size: int, cursor: str | None) -> Page:
        self.calls.append((batch_size, cursor))
        start = int(cursor.rsplit("-", 1)[1]) if cursor else 0
        end = min(start + batch_size, self.total)
        items = [{"id": f"{self.prefix}{i}", "name": f"{self.prefix} {i}"} for i in range(start, end)]
        return Page(
            items=items,
            has_more=end < self.total,
            next_cursor=f"{self.prefix}-{end}" if items else None,
        )


class InMemoryStorage:
    """Storage backend keeping records in a dict.

    Calls listed in `fail_on_calls` (1-based) return a SaveResult with errors.
    """

    name = "memory"

    def __init__(self, fail_on_calls: tuple[int, ...] = ()):
        self.fail_on_calls = fail_on_calls
        self.calls = 0
        self.saved: dict = {}

    def save(self, entity, records: list[dict]) -> SaveResult:
        self.calls += 1
        if self.calls in self.fail_on_calls:
            return SaveResult(inserted=0, errors=["write failed"])
        bucket = self.saved.setdefault(entity, {})
        for record in records:
            bucket[record["id"]] = record
        return SaveResult(inserted=len(records))


def page(ids: list[str], has_more: bool, next_cursor: str | None) -> Page:
    """Build a page of minimal nodes."""
    return Page(items=[{"id": i} for i in ids], has_more=has_more, next_cursor=next_cursor)


@pytest.fixture
def fake_clock() -> FakeClock:
    """Fake clock starting at t=0."""
    return FakeClock()


@pytest.fixture
def cursor_store(tmp_path) -> CursorStore:
    """Cursor store backed by a temporary file."""
    return CursorStore(tmp_path / "sync-cursors.json")


@pytest.fixture
def memory_storage() -> InMemoryStorage:
    """Storage that always succeeds."""
    return InMemoryStorage()


@pytest.fixture
def scripted_source():
    """Factory for ScriptedSource."""
    return ScriptedSource


@pytest.fixture
def paged_source():
    """Factory for PagedSource."""
    return PagedSource


@pytest.fixture
def make_page():
    """Factory for minimal pages."""
    return page


@pytest.fixture
def failing_storage():
    """Factory for InMemoryStorage failing on given calls."""
    return InMemoryStorage


@pytest.fixture
def storage_factory():
    """Factory for independent in-memory storages."""
    return InMemoryStorage
