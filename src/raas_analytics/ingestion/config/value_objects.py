"""Configuration value objects for dependency injection.

Instead of injecting the global ConfigState into each component, the
composition root builds these small frozen dataclasses. Enables:
- Easy testing with different configurations
- Clear constructor contracts
- Validation at composition root
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class HttpClientConfig:
    """Configuration for HTTP client."""

    timeout: float = 30.0
    connect_timeout: float = 10.0
    max_connections: int = 100


@dataclass(frozen=True)
class ProxyConfig:
    """CORS pass-through proxy: ``GET {base_url}?url=<encoded target>``."""

    base_url: str = "http://localhost:3000/api/proxy"
    query_param: str = "url"


@dataclass(frozen=True)
class SheetConfig:
    """Google Sheets values endpoint backing the chain registry."""

    spreadsheet_id: str
    api_key: str
    sheet_range: str = "Sheet1!A2:Z1000"
    base_url: str = "https://sheets.googleapis.com/v4/spreadsheets"

    @property
    def values_url(self) -> str:
        return f"{self.base_url}/{self.spreadsheet_id}/values/{self.sheet_range}"


@dataclass(frozen=True)
class ExplorerConfig:
    """Blockscout stats endpoints, relative to each chain's explorer URL."""

    transactions_path: str = "/api/v1/lines/newTxns"
    active_accounts_path: str = "/api/v1/lines/activeAccounts"
    default_start: str = "2000-01-01"


@dataclass(frozen=True)
class L2BeatConfig:
    """L2BEAT tRPC endpoints for TVL and activity (TPS)."""

    base_url: str = "https://l2beat.com/api/trpc"
    tvl_procedure: str = "tvl.chart"
    activity_procedure: str = "activity.chart"
    tvl_divisor: float = 1e8
    default_range: str = "max"


@dataclass(frozen=True)
class BatchConfig:
    """Per-metric fan-out across chains."""

    max_concurrency: int = 16

