"""Storage abstractions for cursors and synchronized records."""

from .base import BaseStorage, SaveResult, Storage
from .csv_storage import CSVStorage
from .cursor_store import CursorStore
from .mapper import map_collection, map_post, map_topic, mapper_for
from .supabase_storage import CompositeStorage, SupabaseStorage

__all__ = [
    "BaseStorage",
    "Storage",
    "SaveResult",
    "CSVStorage",
    "CursorStore",
    "SupabaseStorage",
    "CompositeStorage",
    "map_post",
    "map_topic",
    "map_collection",
    "mapper_for",
]
