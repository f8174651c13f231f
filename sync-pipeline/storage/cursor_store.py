"""Durable cursor persistence for resumable syncs."""

import json
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from core.errors import StoreUnavailableError
from core.types import CursorState
from observability.logger import get_logger

logger = get_logger(__name__)


@dataclass
class CursorStore:
    """Persist the last pagination cursor per entity type.

    File format (JSON):
        {"cursors": {"posts": "c2", "topics": "t7"}, "last_updated": "<ISO-8601>"}

    Writes go to a temp file that is then renamed over the target, so the file
    on disk is always either the old state or the new state. A single writer
    is assumed; there is no locking.
    """

    file_path: Path

    def __post_init__(self) -> None:
        self.file_path = Path(self.file_path)

    @property
    def path(self) -> Path:
        """Path to the cursor file."""
        return self.file_path

    def load(self) -> CursorState | None:
        """Load persisted state.

        Returns:
            CursorState, or None if nothing has been persisted yet

        Raises:
            StoreUnavailableError: File unreadable or content corrupt
        """
        if not self.file_path.exists():
            return None

        try:
            with open(self.file_path, encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("top-level value must be an object")
            return CursorState.from_dict(data)
        except OSError as e:
            raise StoreUnavailableError(
                f"Failed to read cursor file: {e}", path=str(self.file_path)
            ) from e
        except ValueError as e:
            # json.JSONDecodeError is a ValueError
            raise StoreUnavailableError(
                f"Corrupt cursor file: {e}", path=str(self.file_path)
            ) from e

    def get(self, entity_key: str) -> str | None:
        """Return the persisted cursor for one entity, if any."""
        state = self.load()
        return state.get(entity_key) if state else None

    def update(self, entity_key: str, cursor: str | None) -> CursorState:
        """Set (or remove, when cursor is None) one entity's cursor.

        Raises:
            StoreUnavailableError: State could not be read or written
        """
        state = self.load() or CursorState()

        if cursor is None:
            state.cursors.pop(entity_key, None)
        else:
            state.cursors[entity_key] = cursor
        state.last_updated = datetime.now(timezone.utc)

        self._write(state)
        logger.debug(
            "Cursor saved",
            extra={"entity_key": entity_key, "cursor": cursor},
        )
        return state

    def clear(self) -> None:
        """Delete all persisted cursors (for a fresh start)."""
        try:
            if self.file_path.exists():
                self.file_path.unlink()
                logger.info(f"Cleared cursor file: {self.file_path}")
        except OSError as e:
            raise StoreUnavailableError(
                f"Failed to clear cursor file: {e}", path=str(self.file_path)
            ) from e

    def _write(self, state: CursorState) -> None:
        """Write state atomically (write-to-temp-then-rename)."""
        tmp_file = self.file_path.with_suffix(self.file_path.suffix + ".tmp")

        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_file, "w", encoding="utf-8") as f:
                json.dump(state.to_dict(), f, indent=2)
                f.write("\n")
            os.replace(tmp_file, self.file_path)
        except OSError as e:
            logger.error(f"Failed to save cursors: {e}")
            if tmp_file.exists():
                tmp_file.unlink()
            raise StoreUnavailableError(
                f"Failed to write cursor file: {e}", path=str(self.file_path)
            ) from e
