"""Concrete HTTP client implementation for async requests.

Wraps aiohttp behind IHttpClient abstraction.
"""

import json
from typing import Any

import aiohttp
from yarl import URL

from raas_analytics.ingestion.config.value_objects import HttpClientConfig
from raas_analytics.ingestion.ports.http import (
    HttpResponse,
    IHttpClient,
)


class AiohttpClient(IHttpClient):
    """HTTP client implementation using aiohttp."""

    def __init__(self, config: HttpClientConfig | None = None):
        """Initialize HTTP client.

        Args:
            config: HTTP client configuration
        """
        self.config = config or HttpClientConfig()
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> "AiohttpClient":
        await self._get_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(
                total=self.config.timeout, connect=self.config.connect_timeout
            )
            connector = aiohttp.TCPConnector(limit=self.config.max_connections)
            self._session = aiohttp.ClientSession(timeout=timeout, connector=connector)
        return self._session

    async def get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse:
        """Execute GET request.

        Args:
            url: Full URL
            params: Query parameters
            headers: HTTP headers
            timeout: Request timeout override

        Returns:
            HttpResponse with status, body, headers

        Raises:
            aiohttp.ClientError: On connection errors
        """
        session = await self._get_session()
        timeout_obj = aiohttp.ClientTimeout(total=timeout or self.config.timeout)

        # The proxy URL already carries an encoded target; keep it verbatim.
        async with session.get(
            url if params else URL(url, encoded=True),
            params=params,
            headers=headers,
            timeout=timeout_obj,
        ) as resp:
            if resp.status == 200:
                body = await resp.json(content_type=None)
            else:
                text = await resp.text()
                body = _error_body(text)
            return HttpResponse(
                status_code=resp.status,
                body=body,
                headers=dict(resp.headers),
                url=str(resp.url),
            )

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None


def _error_body(text: str) -> dict[str, Any]:
    """Proxy errors arrive as ``{"error": message}``; anything else is wrapped."""
    try:
        parsed = json.loads(text)
    except ValueError:
        return {"error": text}
    return parsed if isinstance(parsed, dict) else {"error": parsed}
