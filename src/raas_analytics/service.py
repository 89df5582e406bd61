"""
DatasetService: public entrypoint for cached dashboard datasets.

Flow for ``load(dataset_id)``::

    cache.get -> fresh? return bundle
              -> otherwise registry -> per-chain fetches (concurrent)
                 -> aggregation -> cache.save -> return bundle

Cache failures never reach the caller: a read failure is treated as a miss
and a write failure is logged while the freshly built bundle is returned.
Registry failures propagate as ``SourceUnavailable``. A metric that fails
for every chain is reported under ``failures`` with an empty section;
``AllChainsFailed`` is raised only when no chain succeeded in any metric of
the dataset.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import asdict
from typing import Any

from raas_analytics.aggregation import (
    aggregate_by_date,
    aggregate_by_month,
    aggregate_by_week,
    average_by_chain,
    build_chain_date_series,
    build_tvl_series,
    chain_totals,
    count_by,
    cross_tab,
    latest_tvl,
    launch_timeline,
    launches_by_period,
    metric_by_category,
    share_by_date,
    sort_cells,
    top_n,
    week_over_week,
)
from raas_analytics.exceptions import AllChainsFailed, CacheError, SourceUnavailable
from raas_analytics.infrastructure.cache.freshness import CachePolicy
from raas_analytics.infrastructure.cache.store import CacheEntry, CacheStore
from raas_analytics.infrastructure.impls.system import SystemClock
from raas_analytics.infrastructure.observability import get_service_logger
from raas_analytics.infrastructure.ports.system import IClock
from raas_analytics.ingestion.batch import BatchResult, fetch_all
from raas_analytics.ingestion.config.value_objects import BatchConfig
from raas_analytics.ingestion.fetchers.blockscout import BlockscoutFetcher
from raas_analytics.ingestion.fetchers.l2beat import L2BeatFetcher
from raas_analytics.ingestion.sources.registry import (
    SheetRegistrySource,
    filter_chains,
    raas_options,
)
from raas_analytics.shared.enums import DatasetState, MetricKind
from raas_analytics.shared.models.chain import ChainRecord
from raas_analytics.transformation.date_keys import trailing_days
from raas_analytics.transformation.normalizers import CaseMode

Bundle = dict[str, Any]
Builder = Callable[[], Awaitable[Bundle]]

ECOSYSTEM = "ecosystemData"
TPS = "tpsData"
RAAS_PAGE = "raasPageData"
TRANSACTION_METRICS = "transactionMetricsData"

# Dataset name accepted on the command line -> cache id
DATASET_ALIASES = {
    "ecosystem": ECOSYSTEM,
    "tps": TPS,
    "raas_page": RAAS_PAGE,
    "raas-page": RAAS_PAGE,
    "transaction_metrics": TRANSACTION_METRICS,
    "transaction-metrics": TRANSACTION_METRICS,
}

CATEGORY_FIELDS = (
    "vertical",
    "framework",
    "data_availability",
    "layer_type",
    "settlement_layer",
    "raas_provider",
)

TOP_CHAINS = 6
TPS_TOP_CHAINS = 10
TPS_WINDOW_DAYS = 90


def resolve_dataset_id(name: str) -> str:
    """Accept either a cache id ("tpsData") or its short name ("tps")."""
    if name in (ECOSYSTEM, TPS, RAAS_PAGE, TRANSACTION_METRICS):
        return name
    try:
        return DATASET_ALIASES[name.strip().lower()]
    except KeyError as e:
        raise ValueError(f"Unknown dataset: {name}") from e


class DatasetService:
    """Loads dashboard datasets through the cache, building them on a miss."""

    def __init__(
        self,
        cache: CacheStore,
        registry: SheetRegistrySource,
        blockscout: BlockscoutFetcher,
        l2beat: L2BeatFetcher,
        clock: IClock | None = None,
        policy: CachePolicy | None = None,
        batch_config: BatchConfig | None = None,
        case: CaseMode = "preserve",
    ) -> None:
        self.cache = cache
        self.registry = registry
        self.blockscout = blockscout
        self.l2beat = l2beat
        self.clock = clock or SystemClock()
        self.policy = policy or CachePolicy()
        self.batch_config = batch_config or BatchConfig()
        self.case = case
        self.log = get_service_logger()
        self._inflight: dict[str, asyncio.Task] = {}
        self._builders: dict[str, Builder] = {
            ECOSYSTEM: self.build_ecosystem,
            TPS: self.build_tps,
            RAAS_PAGE: self.build_raas_page,
            TRANSACTION_METRICS: self.build_transaction_metrics,
        }

    # ------------------------------------------------------------------
    # Cache flow
    # ------------------------------------------------------------------
    def _read_cache(self, dataset_id: str) -> CacheEntry | None:
        try:
            return self.cache.get(dataset_id)
        except CacheError as e:
            self.log.warning("cache_read_failed", dataset=dataset_id, error=str(e))
            return None

    def _write_cache(self, dataset_id: str, bundle: Bundle) -> None:
        try:
            self.cache.save(dataset_id, bundle)
        except CacheError as e:
            self.log.warning("cache_write_failed", dataset=dataset_id, error=str(e))

    def state(self, dataset_id: str) -> DatasetState:
        """Where a dataset stands: EMPTY, FETCHING, or READY (fresh or stale)."""
        if dataset_id in self._inflight:
            return DatasetState.FETCHING
        entry = self._read_cache(dataset_id)
        if entry is None:
            return DatasetState.EMPTY
        if self.policy.is_fresh(entry, self.clock.now_ms()):
            return DatasetState.FRESH
        return DatasetState.STALE

    async def load(self, dataset_id: str, builder: Builder | None = None) -> Bundle:
        """
        Return the cached bundle when fresh, otherwise build and cache it.

        Raises:
            SourceUnavailable: When the registry or a whole metric batch fails
            ValueError: For an unknown dataset id without an explicit builder
        """
        entry = self._read_cache(dataset_id)
        if entry is not None and self.policy.is_fresh(entry, self.clock.now_ms()):
            self.log.info("cache_hit", dataset=dataset_id, timestamp=entry.timestamp)
            return entry.data

        self.log.info(
            "cache_miss",
            dataset=dataset_id,
            reason="absent" if entry is None else "stale",
        )
        return await self._build(dataset_id, builder)

    async def refresh(self, dataset_id: str, builder: Builder | None = None) -> Bundle:
        """Rebuild a dataset regardless of cache state."""
        return await self._build(dataset_id, builder)

    async def _build(self, dataset_id: str, builder: Builder | None) -> Bundle:
        # Concurrent callers for the same dataset share one build.
        task = self._inflight.get(dataset_id)
        if task is None:
            build = builder or self._builders.get(dataset_id)
            if build is None:
                raise ValueError(f"Unknown dataset: {dataset_id}")
            task = asyncio.ensure_future(self._run_builder(dataset_id, build))
            self._inflight[dataset_id] = task
            task.add_done_callback(lambda _: self._inflight.pop(dataset_id, None))
        return await asyncio.shield(task)

    async def _run_builder(self, dataset_id: str, build: Builder) -> Bundle:
        started = self.clock.now_ms()
        bundle = await build()
        bundle.setdefault("generated_at", self.clock.utcnow().isoformat())
        self._write_cache(dataset_id, bundle)
        self.log.info(
            "dataset_built",
            dataset=dataset_id,
            elapsed_ms=self.clock.now_ms() - started,
        )
        return bundle

    def clear_cache(self) -> None:
        self.cache.clear()
        self.log.info("cache_cleared")

    # ------------------------------------------------------------------
    # Fetch helpers
    # ------------------------------------------------------------------
    async def _mainnet_chains(self) -> list[ChainRecord]:
        registry = await self.registry.fetch_chain_registry()
        chains = filter_chains(registry)
        self.log.info("mainnet_chains", total=len(registry), mainnet=len(chains))
        if not chains:
            raise SourceUnavailable("No mainnet chains found")
        return chains

    async def _fetch_metric(
        self, metric: MetricKind, chains: list[ChainRecord]
    ) -> BatchResult:
        fetch_one = {
            MetricKind.TRANSACTIONS: self.blockscout.fetch_transactions,
            MetricKind.ACTIVE_ACCOUNTS: self.blockscout.fetch_active_accounts,
            MetricKind.TVL: self.l2beat.fetch_tvl,
            MetricKind.TPS: self.l2beat.fetch_tps,
        }[metric]
        if not metric.uses_explorer:
            chains = [chain for chain in chains if chain.has_project_id]
        return await fetch_all(chains, fetch_one, metric=metric.value, config=self.batch_config)

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------
    async def build_ecosystem(self) -> Bundle:
        """Transactions, active accounts and TVL for mainnet chains."""
        chains = await self._mainnet_chains()
        order = [chain.name for chain in chains]

        tx_batch, aa_batch, tvl_batch = await asyncio.gather(
            self._fetch_metric(MetricKind.TRANSACTIONS, chains),
            self._fetch_metric(MetricKind.ACTIVE_ACCOUNTS, chains),
            self._fetch_metric(MetricKind.TVL, chains),
        )
        _raise_if_every_batch_failed(tx_batch, aa_batch, tvl_batch)

        transactions = transaction_views(tx_batch.series)
        active = build_chain_date_series(aa_batch.series)
        active_daily = aggregate_by_date(active.final, approximate=active.approximate)
        tvl = build_tvl_series(tvl_batch.series)
        tvl_latest = latest_tvl(tvl)

        tx_totals = transactions["totals"]
        top = top_n(
            tx_totals,
            TOP_CHAINS,
            combined_total=transactions["combined_total"],
            order=order,
        )

        return {
            "chains": [chain.to_dict() for chain in chains],
            "transactions": transactions,
            "active_accounts": {
                "by_chain": active.final,
                "approximate": active.approximate,
                "daily": active_daily.final,
                "daily_approximate": active_daily.approximate,
                "weekly": aggregate_by_week(active.final).total,
                "totals": chain_totals(active.final),
            },
            "tvl": {
                "by_chain": {
                    chain: {day: point.to_dict() for day, point in by_date.items()}
                    for chain, by_date in tvl.items()
                },
                "latest": tvl_latest,
                "combined_latest": sum(tvl_latest.values()),
            },
            "top_chains": [
                {
                    **asdict(ranked),
                    "week_over_week": week_over_week(
                        transactions["weekly_by_chain"], ranked.name
                    ),
                }
                for ranked in top
            ],
            "categories": self._category_summaries(chains, tx_totals, tvl_latest),
            "failures": _failures(tx_batch, aa_batch, tvl_batch),
        }

    async def build_tps(self) -> Bundle:
        """TPS per chain with window averages and per-day shares."""
        chains = await self._mainnet_chains()
        batch = await self._fetch_metric(MetricKind.TPS, chains)
        batch.raise_if_all_failed()
        tps = build_chain_date_series(batch.series)

        dates = trailing_days(TPS_WINDOW_DAYS, self.clock.today())
        averages = average_by_chain(tps.final, dates)
        order = [chain.name for chain in chains]
        return {
            "by_chain": tps.final,
            "daily_total": aggregate_by_date(tps.final).final,
            "window_days": TPS_WINDOW_DAYS,
            "averages": averages,
            "top_chains": [
                asdict(ranked) for ranked in top_n(averages, TPS_TOP_CHAINS, order=order)
            ],
            "share_by_date": share_by_date(tps.final, dates),
            "failures": _failures(batch),
        }

    async def build_raas_page(self) -> Bundle:
        """Per-provider counts, metric totals and launch history."""
        chains = await self._mainnet_chains()
        tx_batch, aa_batch, tvl_batch = await asyncio.gather(
            self._fetch_metric(MetricKind.TRANSACTIONS, chains),
            self._fetch_metric(MetricKind.ACTIVE_ACCOUNTS, chains),
            self._fetch_metric(MetricKind.TVL, chains),
        )
        _raise_if_every_batch_failed(tx_batch, aa_batch, tvl_batch)
        tx_totals = chain_totals(build_chain_date_series(tx_batch.series).final)
        aa_totals = chain_totals(build_chain_date_series(aa_batch.series).final)
        tvl_latest = latest_tvl(build_tvl_series(tvl_batch.series))

        def by_provider(totals: dict[str, float]) -> dict[str, Any]:
            cells = metric_by_category(chains, "raas_provider", totals, case=self.case)
            return {label: cell.to_dict() for label, cell in sort_cells(cells, "total").items()}

        return {
            "raas_options": raas_options(chains),
            "chain_counts": count_by(chains, "raas_provider", case=self.case),
            "transactions": by_provider(tx_totals),
            "active_accounts": by_provider(aa_totals),
            "tvl": by_provider(tvl_latest),
            "verticals": cross_tab(chains, "raas_provider", "vertical", case=self.case),
            "launch_timeline": [
                entry.to_dict() for entry in launch_timeline(chains, None, self.clock.today())
            ],
            "launches_by_month": launches_by_period(chains, "month"),
            "launches_by_quarter": launches_by_period(chains, "quarter"),
            "failures": _failures(tx_batch, aa_batch, tvl_batch),
        }

    async def build_transaction_metrics(self) -> Bundle:
        """Weekly transaction metrics for mainnet chains."""
        chains = await self._mainnet_chains()
        batch = await self._fetch_metric(MetricKind.TRANSACTIONS, chains)
        batch.raise_if_all_failed()
        views = transaction_views(batch.series)
        return {
            "weekly": views["weekly"],
            "weekly_by_chain": views["weekly_by_chain"],
            "totals": views["totals"],
            "combined_total": views["combined_total"],
            "failures": _failures(batch),
        }

    def _category_summaries(
        self,
        chains: list[ChainRecord],
        tx_totals: dict[str, float],
        tvl_latest: dict[str, float],
    ) -> dict[str, Any]:
        summaries: dict[str, Any] = {}
        for field_name in CATEGORY_FIELDS:
            summaries[field_name] = {
                "counts": count_by(chains, field_name, case=self.case),
                "transactions": {
                    label: cell.to_dict()
                    for label, cell in metric_by_category(
                        chains, field_name, tx_totals, case=self.case
                    ).items()
                },
                "tvl": {
                    label: cell.to_dict()
                    for label, cell in metric_by_category(
                        chains, field_name, tvl_latest, case=self.case
                    ).items()
                },
            }
        return summaries


def transaction_views(points_by_chain: dict[str, Any]) -> dict[str, Any]:
    """Day, week and month views derived from one day-keyed transaction series."""
    series = build_chain_date_series(points_by_chain)
    daily = aggregate_by_date(series.final, approximate=series.approximate)
    weekly = aggregate_by_week(series.final)
    monthly = aggregate_by_month(series.final)
    totals = chain_totals(series.final)
    return {
        "by_chain": series.final,
        "approximate": series.approximate,
        "daily": daily.final,
        "daily_approximate": daily.approximate,
        "weekly": weekly.total,
        "weekly_by_chain": weekly.by_chain,
        "monthly": monthly.total,
        "totals": totals,
        "combined_total": sum(totals.values()),
    }


def _raise_if_every_batch_failed(*batches: BatchResult) -> None:
    """
    A metric that failed for every chain becomes an empty section of the
    bundle. Only a dataset where no chain succeeded in any metric is lost.

    Raises:
        AllChainsFailed: If no batch has a single successful chain
    """
    attempted = [batch for batch in batches if batch.attempted]
    if attempted and not any(batch.succeeded for batch in attempted):
        raise AllChainsFailed(
            ", ".join(batch.metric for batch in attempted),
            max(batch.attempted for batch in attempted),
        )


def _failures(*batches: BatchResult) -> dict[str, dict[str, str]]:
    return {batch.metric: batch.failures for batch in batches if batch.failures}
