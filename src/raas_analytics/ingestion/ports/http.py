"""HTTP communication abstractions for the fetchers.

Separates HTTP transport from business logic (proxy wrapping, response
parsing, error mapping). Allows easy mocking of the transport in tests.
"""

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass
class HttpResponse:
    """HTTP response data container."""

    status_code: int
    body: Any  # JSON-decoded response body
    headers: dict[str, str]
    url: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class IHttpClient(Protocol):
    """Abstraction for HTTP client.

    Single Responsibility: Execute HTTP requests and return responses.
    Does NOT handle:
    - Proxy URL construction
    - Response validation
    - Error mapping
    """

    async def get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse:
        """Execute GET request.

        Args:
            url: Full URL to request
            params: Query parameters
            headers: HTTP headers
            timeout: Request timeout in seconds

        Raises:
            aiohttp.ClientError, asyncio.TimeoutError: On network errors
        """
        ...

    async def close(self) -> None:
        """Release the underlying connection pool."""
        ...
