"""
raas-analytics exception hierarchy.

Only whole-dataset failures (SourceUnavailable and its subclass) are meant to
reach the presentation layer. Per-chain and per-point failures are caught at
the batch and aggregation boundaries; cache failures degrade to a cache miss.
"""


class RaasAnalyticsError(Exception):
    """Base exception for all raas-analytics errors."""


class SourceUnavailable(RaasAnalyticsError):
    """The chain registry could not be fetched or returned no usable rows."""


class AllChainsFailed(SourceUnavailable):
    """Every chain in a metric batch failed to fetch."""

    def __init__(self, metric: str, attempted: int):
        super().__init__(f"All {attempted} chains failed to fetch {metric}")
        self.metric = metric
        self.attempted = attempted


class UpstreamError(RaasAnalyticsError):
    """Proxy or upstream returned a non-2xx status."""

    def __init__(self, message: str, status_code: int, url: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class MalformedResponse(RaasAnalyticsError):
    """Response body did not have the expected structure."""


class ChainFetchFailed(RaasAnalyticsError):
    """A single chain's metric fetch failed."""

    def __init__(self, chain: str, message: str):
        super().__init__(f"{chain}: {message}")
        self.chain = chain


class CacheError(RaasAnalyticsError):
    """Base exception for local cache store failures."""


class CacheReadFailed(CacheError):
    """Cache entry could not be read."""


class CacheWriteFailed(CacheError):
    """Cache entry could not be written."""
