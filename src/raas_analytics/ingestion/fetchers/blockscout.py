"""
Blockscout explorer fetchers: daily transactions and daily active accounts.

Both metrics come from the explorer's stats "lines" API, reached through the
proxy::

    {explorer}/api/v1/lines/newTxns?from=YYYY-MM-DD&to=YYYY-MM-DD
    {explorer}/api/v1/lines/activeAccounts?from=...&to=...&resolution=DAY

Response shape: ``{"chart": [{"date": "...", "value": "123",
"is_approximate": false}, ...]}``.
"""

from datetime import date
from typing import Any
from urllib.parse import urlencode

from raas_analytics.exceptions import MalformedResponse
from raas_analytics.infrastructure.impls.system import SystemClock
from raas_analytics.infrastructure.observability import get_ingestion_logger
from raas_analytics.infrastructure.ports.system import IClock
from raas_analytics.ingestion.config.value_objects import ExplorerConfig
from raas_analytics.ingestion.connectors.proxy import ProxyClient
from raas_analytics.shared.models.chain import ChainRecord
from raas_analytics.shared.models.metrics import MetricPoint
from raas_analytics.transformation.date_keys import parse_day
from raas_analytics.transformation.normalizers import (
    parse_count,
    strip_trailing_slashes,
)

DateRange = tuple[date, date]


class BlockscoutFetcher:
    """Fetches per-chain explorer line charts through the proxy."""

    def __init__(
        self,
        proxy: ProxyClient,
        config: ExplorerConfig | None = None,
        clock: IClock | None = None,
    ):
        self.proxy = proxy
        self.config = config or ExplorerConfig()
        self.clock = clock or SystemClock()

    def default_range(self, chain: ChainRecord) -> DateRange:
        """``[launch date, today]``; chains without a launch date start at the configured default."""
        start = chain.launch_date or parse_day(self.config.default_start)
        return start, self.clock.today()

    def line_url(
        self,
        chain: ChainRecord,
        path: str,
        date_range: DateRange,
        **extra: str,
    ) -> str:
        start, end = date_range
        query = urlencode({"from": start.isoformat(), "to": end.isoformat(), **extra})
        return f"{strip_trailing_slashes(chain.explorer_url)}{path}?{query}"

    async def fetch_transactions(
        self, chain: ChainRecord, date_range: DateRange | None = None
    ) -> list[MetricPoint]:
        """Daily transaction counts for one chain."""
        url = self.line_url(
            chain, self.config.transactions_path, date_range or self.default_range(chain)
        )
        return await self._fetch_line(chain, url, metric="transactions")

    async def fetch_active_accounts(
        self, chain: ChainRecord, date_range: DateRange | None = None
    ) -> list[MetricPoint]:
        """Daily active account counts for one chain."""
        url = self.line_url(
            chain,
            self.config.active_accounts_path,
            date_range or self.default_range(chain),
            resolution="DAY",
        )
        return await self._fetch_line(chain, url, metric="active_accounts")

    async def _fetch_line(
        self, chain: ChainRecord, url: str, metric: str
    ) -> list[MetricPoint]:
        log = get_ingestion_logger("blockscout", chain=chain.name, metric=metric)
        body = await self.proxy.get_json(url)
        points = parse_line_chart(body, chain=chain.name, metric=metric)
        log.debug("line_fetched", points=len(points))
        return points


def _is_true(value: Any) -> bool:
    """Explorers send the flag as a JSON boolean or, on some versions, a string."""
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


def parse_line_chart(body: Any, **context: Any) -> list[MetricPoint]:
    """
    Parse an explorer line-chart body into MetricPoints.

    Points with an unparseable date are skipped; unparseable values become 0.
    Both are logged as ``malformed_point``.

    Raises:
        MalformedResponse: If the body has no ``chart`` list
    """
    if not isinstance(body, dict) or not isinstance(body.get("chart"), list):
        raise MalformedResponse(f"Expected {{'chart': [...]}}, got {type(body).__name__}")

    logger = get_ingestion_logger("blockscout")
    points = []
    for raw in body["chart"]:
        if not isinstance(raw, dict):
            logger.warning("malformed_point", point=repr(raw), **context)
            continue
        try:
            day = parse_day(raw.get("date"))
        except (TypeError, ValueError):
            logger.warning("malformed_point", date=repr(raw.get("date")), **context)
            continue
        points.append(
            MetricPoint(
                date=day,
                value=parse_count(raw.get("value"), date=day.isoformat(), **context),
                is_approximate=_is_true(raw.get("is_approximate")),
            )
        )
    return points
