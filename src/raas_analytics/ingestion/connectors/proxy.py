"""Client side of the CORS pass-through proxy.

Every explorer and analytics request is routed as
``GET {proxy}?url=<percent-encoded target>``. The proxy relays the upstream
JSON on success, the upstream status with ``{"error": ...}`` on upstream
failure, and ``500`` on network failure.
"""

from typing import Any
from urllib.parse import quote

from raas_analytics.exceptions import UpstreamError
from raas_analytics.infrastructure.observability import get_ingestion_logger
from raas_analytics.ingestion.config.value_objects import ProxyConfig
from raas_analytics.ingestion.ports.http import IHttpClient


def encode_target(url: str) -> str:
    """Percent-encode a full target URL like ``encodeURIComponent``."""
    return quote(url, safe="-_.!~*'()")


class ProxyClient:
    """Fetches arbitrary upstream JSON through the proxy."""

    def __init__(self, http: IHttpClient, config: ProxyConfig | None = None):
        self.http = http
        self.config = config or ProxyConfig()
        self.log = get_ingestion_logger("proxy")

    def proxied_url(self, target: str) -> str:
        return f"{self.config.base_url}?{self.config.query_param}={encode_target(target)}"

    async def get_json(self, target: str) -> Any:
        """
        GET ``target`` through the proxy and return the decoded body.

        Raises:
            UpstreamError: When the proxy relays a non-2xx status
        """
        url = self.proxied_url(target)
        self.log.debug("proxy_request", target=target)
        response = await self.http.get(url)
        if not response.ok:
            message = "Error fetching data from external API"
            if isinstance(response.body, dict) and response.body.get("error"):
                message = str(response.body["error"])
            raise UpstreamError(message, status_code=response.status_code, url=target)
        return response.body
