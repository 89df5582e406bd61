"""
L2BEAT tRPC fetchers: TVL breakdown and activity (TPS).

Requests go through the proxy to::

    https://l2beat.com/api/trpc/<procedure>?batch=1&input=<urlencoded json>

with input ``{"0": {"json": {"range": ..., "filter": {"type": "projects",
"projectIds": [...]}}}}``. The payload sits at ``[0].result.data.json`` as a
list of rows whose first element is a unix timestamp in seconds.
"""

import json
from typing import Any
from urllib.parse import quote

from raas_analytics.exceptions import ChainFetchFailed, MalformedResponse
from raas_analytics.infrastructure.observability import get_ingestion_logger
from raas_analytics.ingestion.config.value_objects import L2BeatConfig
from raas_analytics.ingestion.connectors.proxy import ProxyClient
from raas_analytics.shared.models.chain import ChainRecord
from raas_analytics.shared.models.metrics import MetricPoint, TvlPoint
from raas_analytics.transformation.date_keys import date_from_unix_seconds
from raas_analytics.transformation.normalizers import parse_amount

# Dashboard window labels -> L2BEAT range values
WINDOW_RANGES = {
    "90 days": "90d",
    "3 months": "90d",
    "180 days": "180d",
    "6 months": "180d",
    "1 year": "1y",
    "all": "max",
}


def resolve_window(window: str | None, default: str = "max") -> str:
    """Map a dashboard label onto an L2BEAT range; unknown labels pass through."""
    if window is None or not str(window).strip():
        return default
    return WINDOW_RANGES.get(str(window).strip().lower(), str(window).strip())


def build_trpc_input(range_: str, project_id: str, **extra: Any) -> dict[str, Any]:
    params: dict[str, Any] = {"range": range_}
    params.update(extra)
    params["filter"] = {"type": "projects", "projectIds": [project_id]}
    return {"0": {"json": params}}


def build_trpc_url(base_url: str, procedure: str, payload: dict[str, Any]) -> str:
    encoded = quote(json.dumps(payload, separators=(",", ":")), safe="")
    return f"{base_url.rstrip('/')}/{procedure}?batch=1&input={encoded}"


def extract_trpc_rows(body: Any) -> list[Any]:
    """
    Pull the row list out of a batched tRPC response.

    Raises:
        MalformedResponse: If ``[0].result.data.json`` is missing or not a list
    """
    try:
        rows = body[0]["result"]["data"]["json"]
    except (KeyError, IndexError, TypeError) as e:
        raise MalformedResponse("Invalid response structure from the proxy") from e
    if not isinstance(rows, list):
        raise MalformedResponse(f"Expected row list, got {type(rows).__name__}")
    return rows


class L2BeatFetcher:
    """Fetches TVL and TPS for chains that carry an L2BEAT project id."""

    def __init__(self, proxy: ProxyClient, config: L2BeatConfig | None = None):
        self.proxy = proxy
        self.config = config or L2BeatConfig()

    def _project_id(self, chain: ChainRecord) -> str:
        if not chain.has_project_id:
            raise ChainFetchFailed(chain.name, "no L2BEAT project id")
        return chain.external_project_id

    def tvl_url(self, project_id: str, window: str | None = None) -> str:
        payload = build_trpc_input(
            resolve_window(window, self.config.default_range),
            project_id,
            excludeAssociatedTokens=False,
        )
        return build_trpc_url(self.config.base_url, self.config.tvl_procedure, payload)

    def tps_url(self, project_id: str, window: str | None = None) -> str:
        payload = build_trpc_input(
            resolve_window(window, self.config.default_range), project_id
        )
        return build_trpc_url(
            self.config.base_url, self.config.activity_procedure, payload
        )

    async def fetch_tvl(
        self, chain: ChainRecord, window: str | None = None
    ) -> list[TvlPoint]:
        """Daily TVL components for one chain, scaled to USD."""
        project_id = self._project_id(chain)
        body = await self.proxy.get_json(self.tvl_url(project_id, window))
        points = parse_tvl_rows(
            extract_trpc_rows(body), divisor=self.config.tvl_divisor, chain=chain.name
        )
        get_ingestion_logger("l2beat", chain=chain.name, metric="tvl").debug(
            "tvl_fetched", points=len(points)
        )
        return points

    async def fetch_tps(
        self, chain: ChainRecord, window: str | None = None
    ) -> list[MetricPoint]:
        """Daily transactions-per-second for one chain."""
        project_id = self._project_id(chain)
        body = await self.proxy.get_json(self.tps_url(project_id, window))
        points = parse_tps_rows(extract_trpc_rows(body), chain=chain.name)
        get_ingestion_logger("l2beat", chain=chain.name, metric="tps").debug(
            "tps_fetched", points=len(points)
        )
        return points


def _row_date(row: Any, min_len: int, **context: Any):
    logger = get_ingestion_logger("l2beat")
    if not isinstance(row, (list, tuple)) or len(row) < min_len:
        logger.warning("malformed_point", row=repr(row), **context)
        return None
    try:
        return date_from_unix_seconds(float(row[0]))
    except (TypeError, ValueError, OverflowError, OSError):
        logger.warning("malformed_point", timestamp=repr(row[0]), **context)
        return None


def parse_tvl_rows(
    rows: list[Any], divisor: float = 1e8, **context: Any
) -> list[TvlPoint]:
    """``[ts, native, canonical, external, ...]`` rows -> TvlPoints."""
    points = []
    for row in rows:
        day = _row_date(row, 4, **context)
        if day is None:
            continue
        points.append(
            TvlPoint(
                date=day,
                native=parse_amount(row[1], divisor, **context),
                canonical=parse_amount(row[2], divisor, **context),
                external=parse_amount(row[3], divisor, **context),
            )
        )
    return points


def parse_tps_rows(rows: list[Any], **context: Any) -> list[MetricPoint]:
    """``[ts, tps]`` rows -> MetricPoints."""
    points = []
    for row in rows:
        day = _row_date(row, 2, **context)
        if day is None:
            continue
        points.append(MetricPoint(date=day, value=parse_amount(row[1], **context)))
    return points
