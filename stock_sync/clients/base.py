"""Base HTTP client with error mapping and rate limit retries."""

import errno
import logging
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
import httpx
from tenacity import (
    RetryCallState,
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log
)


logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base API error."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Optional[Any] = None
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    @property
    def detail(self) -> str:
        """Richest available error detail: the response payload, else the message."""
        if self.payload:
            return str(self.payload)
        return self.message


class RateLimitError(APIError):
    """Rate limit exceeded."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Optional[Any] = None,
        retry_after: Optional[float] = None
    ):
        super().__init__(message, status_code, payload)
        self.retry_after = retry_after


class NotFoundError(APIError):
    """Resource not found."""
    pass


class AuthenticationError(APIError):
    """Authentication failed."""
    pass


class ConnectionResetAPIError(APIError):
    """The remote end reset the connection."""
    pass


def is_connection_reset(exc: BaseException) -> bool:
    """Check whether an exception (or anything in its cause chain) is a connection reset."""
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, ConnectionResetError):
            return True
        if isinstance(current, OSError) and current.errno == errno.ECONNRESET:
            return True
        message = str(current).lower()
        if "connection reset" in message:
            return True
        if isinstance(current, httpx.RemoteProtocolError) and "server disconnected" in message:
            return True
        current = current.__cause__ or current.__context__
    return False


# Longest Retry-After we are willing to sleep for
RETRY_AFTER_CAP = 30.0

_backoff = wait_exponential(multiplier=1, min=2, max=10)


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return max(seconds, 0.0)


def wait_for_rate_limit(retry_state: RetryCallState) -> float:
    """Wait as long as the server asked (capped), else back off exponentially."""
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    retry_after = getattr(exc, "retry_after", None)
    if retry_after is not None:
        return min(retry_after, RETRY_AFTER_CAP)
    return _backoff(retry_state)


class BaseClient(ABC):
    """Base HTTP client shared by the Shopify API client."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(30.0),
            limits=httpx.Limits(max_keepalive_connections=5, max_connections=5),
            transport=transport
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.client.aclose()

    @property
    @abstractmethod
    def base_url(self) -> str:
        """Base URL for the API."""
        pass

    def _get_headers(self) -> Dict[str, str]:
        """Get headers for API requests."""
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": "Stock-Sync/1.0.0"
        }

    @staticmethod
    def _decode_payload(response: httpx.Response) -> Optional[Any]:
        try:
            return response.json()
        except ValueError:
            return response.text or None

    def _handle_response_errors(self, response: httpx.Response) -> None:
        """Handle common HTTP errors."""
        if response.is_success:
            return

        payload = self._decode_payload(response)
        status = response.status_code

        if status == 401:
            raise AuthenticationError("Authentication failed - check the access token", status, payload)
        elif status == 404:
            raise NotFoundError("Resource not found", status, payload)
        elif status == 429:
            retry_after = _parse_retry_after(response.headers.get("Retry-After"))
            if retry_after is not None:
                raise RateLimitError(
                    f"Rate limit exceeded. Retry after {retry_after:g} seconds", status, payload, retry_after
                )
            raise RateLimitError("Rate limit exceeded", status, payload)
        elif status >= 500:
            raise APIError(f"Server error: {status}", status, payload)
        else:
            raise APIError(f"API error: {status}", status, payload)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_for_rate_limit,
        retry=retry_if_exception_type(RateLimitError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True
    )
    async def _make_request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Make an HTTP request, retrying when the API throttles us."""
        url = f"{self.base_url.rstrip('/')}/{endpoint.lstrip('/')}"

        try:
            response = await self.client.request(
                method=method,
                url=url,
                headers=self._get_headers(),
                params=params,
                json=json_data
            )
        except httpx.TimeoutException as e:
            raise APIError(f"Request timed out: {method} {endpoint}") from e
        except httpx.TransportError as e:
            if is_connection_reset(e):
                raise ConnectionResetAPIError(f"Connection reset: {method} {endpoint}") from e
            raise APIError(f"Connection failed: {e}") from e
        except httpx.HTTPError as e:
            raise APIError(f"Invalid response: {e}") from e

        self._handle_response_errors(response)

        if not response.content:
            return {}
        try:
            body = response.json()
        except ValueError:
            return {"success": True, "status_code": response.status_code}

        if not isinstance(body, dict):
            raise APIError("Unexpected response body", response.status_code, body)
        return body

    async def get(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Make a GET request."""
        return await self._make_request("GET", endpoint, params=params)

    async def post(
        self,
        endpoint: str,
        json_data: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Make a POST request."""
        return await self._make_request("POST", endpoint, json_data=json_data)
