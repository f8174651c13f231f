"""Remote page sources and the request path they share."""

from .base import FetchPage, PageSource, parse_connection
from .executor import RequestExecutor
from .product_hunt import ApiResponseError, ProductHuntClient

__all__ = [
    # Base
    "FetchPage",
    "PageSource",
    "parse_connection",
    # Request path
    "RequestExecutor",
    # Product Hunt
    "ApiResponseError",
    "ProductHuntClient",
]
