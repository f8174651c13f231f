"""Resumable batch synchronization."""

from .batch_loop import BatchFetchLoop, LoopState
from .entities import SYNC_ORDER, EntitySpec, build_entity_specs
from .orchestrator import SyncOrchestrator

__all__ = [
    "BatchFetchLoop",
    "LoopState",
    "EntitySpec",
    "SYNC_ORDER",
    "build_entity_specs",
    "SyncOrchestrator",
]
