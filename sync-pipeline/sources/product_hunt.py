"""
Product Hunt API v2 Client

GraphQL client for posts, topics and collections.
Every request goes through the shared RequestExecutor, so throttling,
retries and error classification are applied uniformly.

API Documentation: https://api.producthunt.com/v2/docs

Usage:
    from sources.product_hunt import ProductHuntClient

    async with ProductHuntClient(api_token="...", executor=executor) as client:
        page = await client.fetch_posts(batch_size=5, cursor=None)

Rate Limits:
    - Roughly 50 requests per 15 minutes (managed by the shared token bucket)
"""

from typing import Any

import aiohttp

from config.constants import (
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_USER_AGENT,
    PRODUCT_HUNT_API_ENDPOINT,
)
from core.types import EntityType, Page
from observability.logger import get_logger

from .base import FetchPage, parse_connection
from .executor import RequestExecutor
from .queries import GET_COLLECTIONS, GET_POSTS, GET_TOPICS, HEALTH_CHECK

logger = get_logger(__name__)


class ApiResponseError(Exception):
    """Product Hunt API returned an error response.

    Attributes:
        status: HTTP status code
        errors: GraphQL error objects from the response body, if any
    """

    def __init__(
        self,
        message: str,
        status: int | None = None,
        errors: list[dict[str, Any]] | None = None,
    ):
        super().__init__(message)
        self.status = status
        self.errors = errors or []


class ProductHuntClient:
    """Product Hunt GraphQL API client."""

    # (operation name, query, connection field) per entity type
    OPERATIONS: dict[EntityType, tuple[str, str, str]] = {
        EntityType.POSTS: ("getPosts", GET_POSTS, "posts"),
        EntityType.TOPICS: ("getTopics", GET_TOPICS, "topics"),
        EntityType.COLLECTIONS: ("getCollections", GET_COLLECTIONS, "collections"),
    }

    def __init__(
        self,
        api_token: str | None,
        executor: RequestExecutor,
        endpoint: str = PRODUCT_HUNT_API_ENDPOINT,
        user_agent: str | None = DEFAULT_USER_AGENT,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ):
        """
        Initialize Product Hunt client.

        Args:
            api_token: Developer token (PH_API_TOKEN)
            executor: Shared request executor (rate limiter + retry)
            endpoint: GraphQL endpoint URL
            user_agent: User-Agent header value
            timeout: Total request timeout in seconds
        """
        if not api_token:
            logger.warning(
                "Product Hunt API token not configured. Set the PH_API_TOKEN environment variable."
            )

        self.api_token = api_token
        self.executor = executor
        self.endpoint = endpoint
        self.user_agent = user_agent
        self.timeout = timeout

        self._session: aiohttp.ClientSession | None = None

    @property
    def name(self) -> str:
        return "product_hunt"

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        """Close the session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "ProductHuntClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def _get_headers(self) -> dict[str, str]:
        """Build request headers with authentication."""
        headers = {
            "Authorization": f"Bearer {self.api_token or ''}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.user_agent:
            headers["User-Agent"] = self.user_agent
        return headers

    async def _post(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        """Send one GraphQL request and return its `data` object.

        Raises:
            ApiResponseError: Non-200 status or GraphQL errors in the body
            aiohttp.ClientError: Transport failure
        """
        session = await self._get_session()
        payload = {"query": query, "variables": variables}

        async with session.post(self.endpoint, json=payload, headers=self._get_headers()) as resp:
            return await self._handle_response(resp)

    async def _handle_response(self, resp: aiohttp.ClientResponse) -> dict[str, Any]:
        """Handle API response and errors."""
        try:
            body = await resp.json(content_type=None)
        except ValueError:
            body = None

        errors = self._extract_errors(body)

        if resp.status != 200:
            message = errors[0].get("message") if errors else None
            raise ApiResponseError(
                message or f"HTTP {resp.status} from Product Hunt API",
                status=resp.status,
                errors=errors,
            )

        if errors:
            messages = ", ".join(str(e.get("message", e)) for e in errors)
            raise ApiResponseError(f"GraphQL errors: {messages}", status=None, errors=errors)

        if not isinstance(body, dict) or not isinstance(body.get("data"), dict):
            raise ApiResponseError("Response has no data object", status=None)

        return body["data"]

    @staticmethod
    def _extract_errors(body: Any) -> list[dict[str, Any]]:
        """Normalise the error shapes Product Hunt returns."""
        if not isinstance(body, dict):
            return []
        errors = body.get("errors")
        if isinstance(errors, list):
            return [e for e in errors if isinstance(e, dict)]
        # OAuth failures come back as {"error": ..., "error_description": ...}
        if isinstance(body.get("error"), str):
            return [
                {
                    "error": body["error"],
                    "message": body.get("error_description") or body["error"],
                }
            ]
        return []

    # ==================== Paginated fetches ====================

    async def fetch_page(
        self,
        entity: EntityType,
        batch_size: int,
        cursor: str | None = None,
    ) -> Page[dict[str, Any]]:
        """Fetch one page of an entity type.

        Args:
            entity: Entity type to fetch
            batch_size: Page size (`first`)
            cursor: Resume position (`after`), None for the beginning

        Returns:
            Page of raw GraphQL nodes
        """
        operation, query, connection_field = self.OPERATIONS[entity]
        variables: dict[str, Any] = {"first": batch_size, "after": cursor}

        data = await self.executor.execute_query(
            operation,
            lambda: self._post(query, variables),
        )
        page = parse_connection(data.get(connection_field))

        logger.debug(
            f"{entity.value.capitalize()} batch fetched",
            extra={
                "count": len(page.items),
                "has_more": page.has_more,
                "next_cursor": page.next_cursor,
            },
        )
        return page

    async def fetch_posts(self, batch_size: int, cursor: str | None = None) -> Page[dict[str, Any]]:
        return await self.fetch_page(EntityType.POSTS, batch_size, cursor)

    async def fetch_topics(self, batch_size: int, cursor: str | None = None) -> Page[dict[str, Any]]:
        return await self.fetch_page(EntityType.TOPICS, batch_size, cursor)

    async def fetch_collections(
        self, batch_size: int, cursor: str | None = None
    ) -> Page[dict[str, Any]]:
        return await self.fetch_page(EntityType.COLLECTIONS, batch_size, cursor)

    def fetch_operation(self, entity: EntityType) -> FetchPage:
        """Return the bound fetch function for an entity type."""
        return {
            EntityType.POSTS: self.fetch_posts,
            EntityType.TOPICS: self.fetch_topics,
            EntityType.COLLECTIONS: self.fetch_collections,
        }[entity]

    async def health_check(self) -> bool:
        """Validate connectivity and credentials with a trivial query."""
        return await self.executor.health_check(lambda: self._post(HEALTH_CHECK, {}))
