"""HTTP clients for the supplier feed and the Shopify Admin API."""

from .base import (
    APIError,
    AuthenticationError,
    ConnectionResetAPIError,
    NotFoundError,
    RateLimitError,
    is_connection_reset
)
from .shopify import ShopifyClient
from .feed import FeedClient

__all__ = [
    "ShopifyClient",
    "FeedClient",
    "APIError",
    "AuthenticationError",
    "ConnectionResetAPIError",
    "NotFoundError",
    "RateLimitError",
    "is_connection_reset"
]
