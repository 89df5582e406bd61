"""
Dependency injection container for raas-analytics.

Wires together:
- HTTP client (aiohttp wrapper)
- Proxy client
- Registry source (Google Sheets)
- Metric fetchers (Blockscout, L2BEAT)
- Cache store and TTL policy
- Dataset service

Single place where ConfigState is turned into value objects and concrete
implementations are chosen.
"""

import logging

from raas_analytics.config.state import ConfigState
from raas_analytics.infrastructure.cache.freshness import CachePolicy
from raas_analytics.infrastructure.cache.store import JsonFileCacheStore
from raas_analytics.infrastructure.impls.system import SystemClock
from raas_analytics.infrastructure.ports.system import IClock
from raas_analytics.ingestion.config.value_objects import (
    BatchConfig,
    ExplorerConfig,
    HttpClientConfig,
    L2BeatConfig,
    ProxyConfig,
    SheetConfig,
)
from raas_analytics.ingestion.connectors.aiohttp_client import AiohttpClient
from raas_analytics.ingestion.connectors.proxy import ProxyClient
from raas_analytics.ingestion.fetchers.blockscout import BlockscoutFetcher
from raas_analytics.ingestion.fetchers.l2beat import L2BeatFetcher
from raas_analytics.ingestion.ports.http import IHttpClient
from raas_analytics.ingestion.sources.registry import SheetRegistrySource
from raas_analytics.service import DatasetService

logger = logging.getLogger(__name__)


class DependencyContainer:
    """
    Builds fully wired components from a ConfigState.

    Usage:
        container = DependencyContainer(get_config())
        async with container.create_http_client() as http:
            service = container.create_dataset_service(http)
            bundle = await service.load("ecosystemData")
    """

    def __init__(self, config: ConfigState, clock: IClock | None = None):
        self.config = config
        self.clock = clock or SystemClock()

    # ------------------------------------------------------------------
    # Value objects
    # ------------------------------------------------------------------
    def http_config(self) -> HttpClientConfig:
        http = self.config.http
        return HttpClientConfig(
            timeout=http.timeout,
            connect_timeout=http.connect_timeout,
            max_connections=http.max_connections,
        )

    def proxy_config(self) -> ProxyConfig:
        return ProxyConfig(
            base_url=self.config.proxy.base_url,
            query_param=self.config.proxy.query_param,
        )

    def sheet_config(self) -> SheetConfig:
        sheets = self.config.sheets
        if not sheets.spreadsheet_id or not sheets.api_key:
            logger.warning(
                "Sheets spreadsheet id or API key missing; set SHEETS_SPREADSHEET_ID and SHEETS_API_KEY"
            )
        return SheetConfig(
            spreadsheet_id=sheets.spreadsheet_id,
            api_key=sheets.api_key,
            sheet_range=sheets.sheet_range,
            base_url=sheets.base_url,
        )

    def explorer_config(self) -> ExplorerConfig:
        explorer = self.config.explorer
        return ExplorerConfig(
            transactions_path=explorer.transactions_path,
            active_accounts_path=explorer.active_accounts_path,
            default_start=explorer.default_start_date,
        )

    def l2beat_config(self) -> L2BeatConfig:
        l2beat = self.config.l2beat
        return L2BeatConfig(
            base_url=l2beat.base_url,
            tvl_procedure=l2beat.tvl_procedure,
            activity_procedure=l2beat.activity_procedure,
            tvl_divisor=l2beat.tvl_divisor,
            default_range=l2beat.default_range,
        )

    def batch_config(self) -> BatchConfig:
        return BatchConfig(max_concurrency=self.config.http.max_concurrency)

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------
    def create_http_client(self) -> AiohttpClient:
        return AiohttpClient(self.http_config())

    def create_cache_store(self) -> JsonFileCacheStore:
        return JsonFileCacheStore(self.config.cache.cache_dir, clock=self.clock)

    def create_cache_policy(self) -> CachePolicy:
        return CachePolicy.from_seconds(
            self.config.cache.ttls, default_ttl=self.config.cache.default_ttl
        )

    def create_dataset_service(self, http: IHttpClient) -> DatasetService:
        proxy = ProxyClient(http, self.proxy_config())
        return DatasetService(
            cache=self.create_cache_store(),
            registry=SheetRegistrySource(http, self.sheet_config()),
            blockscout=BlockscoutFetcher(proxy, self.explorer_config(), clock=self.clock),
            l2beat=L2BeatFetcher(proxy, self.l2beat_config()),
            clock=self.clock,
            policy=self.create_cache_policy(),
            batch_config=self.batch_config(),
        )
