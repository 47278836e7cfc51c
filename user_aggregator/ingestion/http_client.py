"""
HTTP infrastructure layer for source fetching.

Provides:
- HTTPClientError: Transport or status failure for one request
- InvalidPayloadError: Response body is not a JSON object or array
- HTTPClient: Async HTTP client returning parsed JSON bodies

Requests are plain unauthenticated GETs without retries. A failed source
is reported once and skipped by the caller.
"""

from typing import Any

import httpx
import structlog

logger = structlog.get_logger(__name__)


class HTTPClientError(Exception):
    """Base exception for HTTP client errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class InvalidPayloadError(HTTPClientError):
    """Raised when a response body cannot be used as a JSON payload."""

    pass


class HTTPClient:
    """
    Async HTTP client for fetching JSON payloads.

    Features:
    - Shared connection pool across concurrent requests
    - Status and transport failures mapped to HTTPClientError
    - Context manager for proper resource cleanup

    Example:
        async with HTTPClient(timeout=10.0) as client:
            payload = await client.get_json("https://api.example.com/users")
    """

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: str | None = None,
    ):
        """
        Initialize HTTP client.

        Args:
            timeout: Request timeout in seconds.
            user_agent: Optional User-Agent header for every request.
        """
        self.timeout = timeout
        self.user_agent = user_agent
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "HTTPClient":
        """Enter async context manager, create client."""
        headers = {"User-Agent": self.user_agent} if self.user_agent else None
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            headers=headers,
            follow_redirects=True,
        )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager, close client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def get(self, url: str) -> httpx.Response:
        """
        Perform a single GET request.

        Args:
            url: Request URL

        Returns:
            httpx.Response with a status below 400

        Raises:
            HTTPClientError: On error status or transport failure
        """
        if not self._client:
            raise RuntimeError("HTTPClient must be used as async context manager")

        try:
            response = await self._client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise HTTPClientError(
                f"Request to {url} failed: {type(e).__name__}: {e}"
            ) from e

        if response.status_code >= 400:
            raise HTTPClientError(
                f"Request failed with status {response.status_code}",
                status_code=response.status_code,
                response_body=response.text,
            )

        logger.debug("GET", url=url, status_code=response.status_code)
        return response

    async def get_json(self, url: str) -> dict[str, Any] | list[Any]:
        """
        GET a URL and parse the body as a JSON object or array.

        Args:
            url: Request URL

        Returns:
            Parsed JSON object or array

        Raises:
            HTTPClientError: On error status or transport failure
            InvalidPayloadError: If the body is not JSON, or is a JSON scalar
        """
        response = await self.get(url)

        try:
            payload = response.json()
        except (ValueError, RecursionError) as e:
            raise InvalidPayloadError(
                f"Response from {url} is not valid JSON: {type(e).__name__}: {e}",
                status_code=response.status_code,
                response_body=response.text[:500],
            ) from e

        if not isinstance(payload, (dict, list)):
            raise InvalidPayloadError(
                f"Response from {url} is a JSON {type(payload).__name__}, "
                "expected an object or array",
                status_code=response.status_code,
                response_body=response.text[:500],
            )

        return payload
