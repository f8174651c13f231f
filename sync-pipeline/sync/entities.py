"""Registry of synchronizable entity types."""

from dataclasses import dataclass

from core.types import EntityType
from sources.base import FetchPage, PageSource
from storage.mapper import Mapper, mapper_for

# Round-robin order for sync-all
SYNC_ORDER = (EntityType.TOPICS, EntityType.COLLECTIONS, EntityType.POSTS)


@dataclass(frozen=True)
class EntitySpec:
    """How to fetch and map one entity type."""

    entity: EntityType
    fetch: FetchPage
    mapper: Mapper


def build_entity_specs(
    source: PageSource,
    entities: list[EntityType] | None = None,
) -> dict[EntityType, EntitySpec]:
    """Build specs for the given entity types (all of them by default).

    Insertion order is the round-robin order used by sync-all.
    """
    return {
        entity: EntitySpec(
            entity=entity,
            fetch=source.fetch_operation(entity),
            mapper=mapper_for(entity),
        )
        for entity in entities or SYNC_ORDER
    }
