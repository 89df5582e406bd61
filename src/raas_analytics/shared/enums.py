"""
Shared enumerations for raas-analytics.
"""

import enum


class MetricKind(str, enum.Enum):
    """Per-chain time series the dashboard tracks."""

    TRANSACTIONS = "transactions"
    ACTIVE_ACCOUNTS = "active_accounts"
    TVL = "tvl"
    TPS = "tps"

    @property
    def uses_explorer(self) -> bool:
        """Transactions and active accounts come from the chain's own explorer."""
        return self in (MetricKind.TRANSACTIONS, MetricKind.ACTIVE_ACCOUNTS)


class LayerType(str, enum.Enum):
    """Rollup layer relative to Ethereum."""

    L2 = "L2"
    L3 = "L3"
    UNKNOWN = "Unknown"


class ChainStatus(str, enum.Enum):
    MAINNET = "mainnet"
    TESTNET = "testnet"
    UNKNOWN = "unknown"


class ErrorKind(str, enum.Enum):
    """Failure taxonomy carried by FetchResult.Err."""

    SOURCE_UNAVAILABLE = "source_unavailable"
    CHAIN_FETCH_FAILED = "chain_fetch_failed"
    MALFORMED_POINT = "malformed_point"
    CACHE_READ_FAILED = "cache_read_failed"
    CACHE_WRITE_FAILED = "cache_write_failed"


class DatasetState(str, enum.Enum):
    """Lifecycle of a cached dataset."""

    EMPTY = "empty"
    FETCHING = "fetching"
    FRESH = "ready_fresh"
    STALE = "ready_stale"
