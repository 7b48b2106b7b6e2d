"""Streaming HTTP client for the supplier stock feed."""

import logging
from typing import AsyncIterator, Optional
import httpx

from ..config import FeedConfig
from ..feed import FeedFetchError, FeedParseError


logger = logging.getLogger(__name__)


class FeedClient:
    """Fetches the supplier feed as a stream of byte chunks."""

    def __init__(self, config: FeedConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(60.0, connect=15.0),
            follow_redirects=True,
            transport=transport
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.client.aclose()

    async def stream(self) -> AsyncIterator[bytes]:
        """Yield the raw feed body chunk by chunk.

        Failures before the body starts raise FeedFetchError; failures while
        the body is being read raise FeedParseError.
        """
        try:
            async with self.client.stream("GET", self.config.url) as response:
                if not response.is_success:
                    raise FeedFetchError(f"Feed request failed with status {response.status_code}")

                logger.debug("Feed response received: %s", response.headers.get("Content-Type"))

                try:
                    async for chunk in response.aiter_bytes():
                        yield chunk
                except httpx.HTTPError as e:
                    raise FeedParseError(f"Feed stream interrupted: {e}") from e

        except httpx.HTTPError as e:
            raise FeedFetchError(f"Could not download feed: {e}") from e
