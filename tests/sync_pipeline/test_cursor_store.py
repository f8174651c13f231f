"""Tests for sync-pipeline/storage/cursor_store.py."""

import json
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "sync-pipeline"))

from core.errors import StoreUnavailableError
from storage.cursor_store import CursorStore


class TestLoad:
    """Tests for load()."""

    def test_missing_file_is_none(self, cursor_store):
        """Nothing persisted yet means None, not an error."""
        assert cursor_store.load() is None
        assert cursor_store.get("posts") is None

    def test_corrupt_json_raises(self, cursor_store):
        cursor_store.path.write_text("{not json")
        with pytest.raises(StoreUnavailableError):
            cursor_store.load()

    def test_wrong_layout_raises(self, cursor_store):
        cursor_store.path.write_text(json.dumps({"cursors": ["posts"], "last_updated": "x"}))
        with pytest.raises(StoreUnavailableError):
            cursor_store.load()

    def test_non_object_raises(self, cursor_store):
        cursor_store.path.write_text("[]")
        with pytest.raises(StoreUnavailableError):
            cursor_store.load()


class TestUpdate:
    """Tests for update()."""

    def test_update_creates_file(self, cursor_store):
        """First update writes the JSON layout."""
        cursor_store.update("posts", "c2")

        data = json.loads(cursor_store.path.read_text())
        assert data["cursors"] == {"posts": "c2"}
        assert isinstance(data["last_updated"], str)

    def test_update_keeps_other_entities(self, cursor_store):
        cursor_store.update("posts", "p1")
        cursor_store.update("topics", "t1")
        cursor_store.update("posts", "p2")

        state = cursor_store.load()
        assert state is not None
        assert state.cursors == {"posts": "p2", "topics": "t1"}

    def test_update_none_removes_key(self, cursor_store):
        cursor_store.update("posts", "p1")
        cursor_store.update("topics", "t1")

        cursor_store.update("posts", None)

        assert cursor_store.get("posts") is None
        assert cursor_store.get("topics") == "t1"

    def test_update_stamps_last_updated(self, cursor_store):
        first = cursor_store.update("posts", "p1").last_updated
        second = cursor_store.update("posts", "p2").last_updated
        assert second >= first

    def test_no_temp_file_left_behind(self, cursor_store):
        cursor_store.update("posts", "p1")
        leftovers = [p for p in cursor_store.path.parent.iterdir() if p.suffix == ".tmp"]
        assert leftovers == []

    def test_creates_parent_directory(self, tmp_path):
        store = CursorStore(tmp_path / "nested" / "dir" / "cursors.json")
        store.update("collections", "k9")
        assert store.get("collections") == "k9"

    def test_write_failure_raises_and_keeps_old_state(self, cursor_store):
        """A failed write leaves the previous state intact."""
        cursor_store.update("posts", "p1")

        with patch("storage.cursor_store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(StoreUnavailableError):
                cursor_store.update("posts", "p2")

        assert cursor_store.get("posts") == "p1"

    def test_survives_new_instance(self, cursor_store):
        """State is durable across store instances (process restarts)."""
        cursor_store.update("posts", "c2")
        assert CursorStore(cursor_store.path).get("posts") == "c2"


class TestClear:
    """Tests for clear()."""

    def test_clear_removes_all_state(self, cursor_store):
        cursor_store.update("posts", "p1")
        cursor_store.clear()
        assert cursor_store.load() is None
        assert not cursor_store.path.exists()

    def test_clear_without_file_is_noop(self, cursor_store):
        cursor_store.clear()
        assert cursor_store.load() is None
