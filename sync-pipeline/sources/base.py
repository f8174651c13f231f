"""Base protocol and helpers for paginated page sources."""

from typing import Any, Awaitable, Callable, Protocol, runtime_checkable

from core.types import EntityType, Page

# Fetch operation for one entity type: (batch_size, cursor) -> Page
FetchPage = Callable[[int, str | None], Awaitable[Page[dict[str, Any]]]]


@runtime_checkable
class PageSource(Protocol):
    """Protocol for cursor-paginated remote sources.

    Fetch operations must raise a classifiable error on failure.
    """

    @property
    def name(self) -> str:
        """Source identifier (e.g., 'product_hunt')."""
        ...

    def fetch_operation(self, entity: EntityType) -> FetchPage:
        """Return the fetch operation for an entity type."""
        ...

    async def health_check(self) -> bool:
        """Validate connectivity and credentials."""
        ...


def parse_connection(connection: dict[str, Any] | None) -> Page[dict[str, Any]]:
    """Convert a GraphQL connection (edges + pageInfo) into a Page.

    A missing connection is treated as an empty, exhausted page.
    """
    if not connection:
        return Page(items=[], has_more=False, next_cursor=None)

    edges = connection.get("edges") or []
    items = [edge["node"] for edge in edges if edge and edge.get("node") is not None]

    page_info = connection.get("pageInfo") or {}
    return Page(
        items=items,
        has_more=bool(page_info.get("hasNextPage", False)),
        next_cursor=page_info.get("endCursor") or None,
    )
