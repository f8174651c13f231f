"""CSV file storage backend."""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

from core.types import EntityType
from observability.logger import get_logger

from .base import BaseStorage, SaveResult

logger = get_logger(__name__)


@dataclass
class CSVStorage(BaseStorage):
    """CSV file storage backend.

    One file per entity type: data/{entity}.csv
    Records are upserted by 'id' (the latest fetch wins).
    """

    data_dir: Path

    def __post_init__(self) -> None:
        super().__init__("csv")
        self.data_dir = Path(self.data_dir)

    def get_csv_path(self, entity: EntityType) -> Path:
        """Get path for an entity's CSV file."""
        return self.data_dir / f"{entity.value}.csv"

    def save(self, entity: EntityType, records: list[dict[str, Any]]) -> SaveResult:
        """Save records to CSV, merging with the existing file."""
        if not records:
            return SaveResult(inserted=0, skipped=0)

        try:
            df = pd.DataFrame([self._flatten(r) for r in records])
            filepath = self.get_csv_path(entity)
            filepath.parent.mkdir(parents=True, exist_ok=True)

            # Merge with existing data
            if filepath.exists():
                existing = pd.read_csv(filepath, dtype={"id": str})
                df = pd.concat([existing, df]).drop_duplicates(subset=["id"], keep="last")

            df["id"] = df["id"].astype(str)
            df = df.sort_values("id").reset_index(drop=True)
            df.to_csv(filepath, index=False)

            logger.info(f"Saved {len(records)} {entity.value} to {filepath}")
            return SaveResult(inserted=len(records))

        except Exception as e:
            logger.error(f"Failed to save {entity.value}: {e}")
            return SaveResult(inserted=0, errors=[str(e)])

    def load_df(self, entity: EntityType) -> pd.DataFrame | None:
        """Load an entity's records as DataFrame."""
        filepath = self.get_csv_path(entity)
        if not filepath.exists():
            return None
        return pd.read_csv(filepath, dtype={"id": str})

    @staticmethod
    def _flatten(record: dict[str, Any]) -> dict[str, Any]:
        """JSON-encode list/dict values so they fit in one CSV cell."""
        return {
            k: json.dumps(v, ensure_ascii=False) if isinstance(v, (list, dict)) else v
            for k, v in record.items()
        }
