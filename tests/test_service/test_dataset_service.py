"""Tests for DatasetService: cache flow, state machine and dataset builders."""

import asyncio
from datetime import date

import pytest

from raas_analytics.exceptions import (
    AllChainsFailed,
    CacheReadFailed,
    CacheWriteFailed,
    SourceUnavailable,
)
from raas_analytics.infrastructure.cache.store import InMemoryCacheStore
from raas_analytics.ingestion.config.value_objects import SheetConfig
from raas_analytics.ingestion.fetchers.blockscout import BlockscoutFetcher
from raas_analytics.ingestion.fetchers.l2beat import L2BeatFetcher
from raas_analytics.ingestion.sources.registry import SheetRegistrySource
from raas_analytics.service import (
    ECOSYSTEM,
    RAAS_PAGE,
    TPS,
    TRANSACTION_METRICS,
    DatasetService,
    resolve_dataset_id,
    transaction_views,
)
from raas_analytics.shared.enums import DatasetState
from raas_analytics.shared.models.metrics import MetricPoint, TvlPoint


# ============================================================================
# STUB SOURCES
# ============================================================================


class StubRegistry:
    def __init__(self, chains=None, error=None):
        self.chains = chains or []
        self.error = error
        self.calls = 0

    async def fetch_chain_registry(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.chains)


class StubExplorer:
    """Per-chain points, or an exception to raise for that chain."""

    def __init__(self, transactions=None, active_accounts=None):
        self.transactions = transactions or {}
        self.active_accounts = active_accounts or {}

    @staticmethod
    async def _lookup(table, chain):
        outcome = table.get(chain.name, [])
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def fetch_transactions(self, chain, date_range=None):
        return await self._lookup(self.transactions, chain)

    async def fetch_active_accounts(self, chain, date_range=None):
        return await self._lookup(self.active_accounts, chain)


class StubL2Beat:
    def __init__(self, tvl=None, tps=None):
        self.tvl = tvl or {}
        self.tps = tps or {}

    async def fetch_tvl(self, chain, window=None):
        return await StubExplorer._lookup(self.tvl, chain)

    async def fetch_tps(self, chain, window=None):
        return await StubExplorer._lookup(self.tps, chain)


class FailingStore(InMemoryCacheStore):
    def __init__(self, clock, read_error=False, write_error=False):
        super().__init__(clock=clock)
        self.read_error = read_error
        self.write_error = write_error

    def get(self, dataset_id):
        if self.read_error:
            raise CacheReadFailed("corrupt")
        return super().get(dataset_id)

    def save(self, dataset_id, data):
        if self.write_error:
            raise CacheWriteFailed("disk full")
        return super().save(dataset_id, data)


def mp(day, value, approximate=False):
    return MetricPoint(date.fromisoformat(day), value, is_approximate=approximate)


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def chains(chain_factory):
    return [
        chain_factory("Alpha", raas_provider="Gelato", vertical="Gaming"),
        chain_factory("Beta", raas_provider="Conduit", vertical="gaming", external_project_id=None),
        chain_factory("Gamma", raas_provider="Gelato", vertical="DeFi", status="Testnet"),
    ]


@pytest.fixture
def explorer():
    return StubExplorer(
        transactions={
            "Alpha": [mp("2024-06-03", 100), mp("2024-06-04", 50)],
            "Beta": [mp("2024-06-03", 10), mp("2024-06-10", 5, approximate=True)],
        },
        active_accounts={
            "Alpha": [mp("2024-06-03", 7)],
            "Beta": [mp("2024-06-04", 3)],
        },
    )


@pytest.fixture
def l2beat():
    return StubL2Beat(
        tvl={
            "Alpha": [
                TvlPoint(date(2024, 6, 8), 1.0, 2.0, 3.0),
                TvlPoint(date(2024, 6, 9), 10.0, 20.0, 30.0),
            ],
        },
        tps={"Alpha": [mp("2024-06-09", 1.5), mp("2024-06-10", 2.5)]},
    )


@pytest.fixture
def registry(chains):
    return StubRegistry(chains)


@pytest.fixture
def store(clock):
    return InMemoryCacheStore(clock=clock)


@pytest.fixture
def service(store, registry, explorer, l2beat, clock):
    return DatasetService(
        cache=store,
        registry=registry,
        blockscout=explorer,
        l2beat=l2beat,
        clock=clock,
    )


# ============================================================================
# DATASET IDS
# ============================================================================


class TestResolveDatasetId:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("tps", TPS),
            ("tpsData", TPS),
            ("Ecosystem", ECOSYSTEM),
            ("raas-page", RAAS_PAGE),
            ("transaction_metrics", TRANSACTION_METRICS),
        ],
    )
    def test_known_names(self, name, expected):
        assert resolve_dataset_id(name) == expected

    def test_unknown_name(self):
        with pytest.raises(ValueError, match="Unknown dataset"):
            resolve_dataset_id("prices")


# ============================================================================
# CACHE FLOW
# ============================================================================


class TestCacheFlow:
    @pytest.mark.asyncio
    async def test_fresh_entry_is_returned_without_fetching(self, service, store, registry):
        store.save(TPS, {"cached": True})

        assert await service.load(TPS) == {"cached": True}
        assert registry.calls == 0

    @pytest.mark.asyncio
    async def test_stale_entry_triggers_rebuild(self, service, store, registry, clock):
        store.save(TPS, {"cached": True})
        clock.advance(hours=6, minutes=1)

        bundle = await service.load(TPS)

        assert "cached" not in bundle
        assert registry.calls == 1
        assert store.get(TPS).data == bundle
        assert store.get(TPS).timestamp == clock.now_ms()

    @pytest.mark.asyncio
    async def test_entry_within_ttl_is_still_fresh(self, service, store, registry, clock):
        store.save(TPS, {"cached": True})
        clock.advance(hours=5, minutes=59)

        assert await service.load(TPS) == {"cached": True}
        assert registry.calls == 0

    @pytest.mark.asyncio
    async def test_raas_page_uses_one_hour_ttl(self, service, store, registry, clock):
        store.save(RAAS_PAGE, {"cached": True})
        clock.advance(hours=1, minutes=1)

        await service.load(RAAS_PAGE)
        assert registry.calls == 1

    @pytest.mark.asyncio
    async def test_refresh_ignores_fresh_entry(self, service, store, registry):
        store.save(TPS, {"cached": True})

        bundle = await service.refresh(TPS)

        assert "cached" not in bundle
        assert registry.calls == 1

    @pytest.mark.asyncio
    async def test_cache_read_failure_is_a_miss(self, registry, explorer, l2beat, clock):
        service = DatasetService(
            cache=FailingStore(clock, read_error=True),
            registry=registry,
            blockscout=explorer,
            l2beat=l2beat,
            clock=clock,
        )

        bundle = await service.load(TRANSACTION_METRICS)

        assert bundle["combined_total"] == 160.0
        assert registry.calls == 1

    @pytest.mark.asyncio
    async def test_cache_write_failure_still_returns_bundle(
        self, registry, explorer, l2beat, clock
    ):
        store = FailingStore(clock, write_error=True)
        service = DatasetService(
            cache=store, registry=registry, blockscout=explorer, l2beat=l2beat, clock=clock
        )

        bundle = await service.load(TRANSACTION_METRICS)

        assert bundle["totals"] == {"Alpha": 150.0, "Beta": 10.0}
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_custom_builder(self, service, store):
        async def build():
            return {"answer": 42}

        bundle = await service.load("customData", builder=build)

        assert bundle["answer"] == 42
        assert bundle["generated_at"] == "2024-06-10T12:00:00+00:00"
        assert store.get("customData").data == bundle

    @pytest.mark.asyncio
    async def test_unknown_dataset_without_builder(self, service):
        with pytest.raises(ValueError):
            await service.load("customData")

    @pytest.mark.asyncio
    async def test_concurrent_loads_share_one_build(self, service):
        calls = 0
        release = asyncio.Event()

        async def build():
            nonlocal calls
            calls += 1
            await release.wait()
            return {"n": calls}

        first = asyncio.ensure_future(service.load("customData", builder=build))
        second = asyncio.ensure_future(service.load("customData", builder=build))
        await asyncio.sleep(0)
        release.set()

        assert await first == await second
        assert calls == 1

    def test_clear_cache(self, service, store):
        store.save(TPS, {})
        service.clear_cache()
        assert store.get(TPS) is None


class TestDatasetState:
    def test_empty(self, service):
        assert service.state(TPS) == DatasetState.EMPTY

    def test_fresh_then_stale(self, service, store, clock):
        store.save(TPS, {})
        assert service.state(TPS) == DatasetState.FRESH

        clock.advance(hours=7)
        assert service.state(TPS) == DatasetState.STALE

    @pytest.mark.asyncio
    async def test_fetching_while_building(self, service):
        release = asyncio.Event()

        async def build():
            await release.wait()
            return {}

        task = asyncio.ensure_future(service.load("customData", builder=build))
        await asyncio.sleep(0)
        assert service.state("customData") == DatasetState.FETCHING

        release.set()
        await task
        assert service.state("customData") == DatasetState.FRESH

    @pytest.mark.asyncio
    async def test_failed_build_leaves_state_empty(self, service):
        async def build():
            raise SourceUnavailable("sheet down")

        with pytest.raises(SourceUnavailable):
            await service.load("customData", builder=build)
        assert service.state("customData") == DatasetState.EMPTY


# ============================================================================
# FAILURE PROPAGATION
# ============================================================================


class TestFailurePropagation:
    @pytest.mark.asyncio
    async def test_registry_failure_propagates(self, explorer, l2beat, store, clock):
        service = DatasetService(
            cache=store,
            registry=StubRegistry(error=SourceUnavailable("Registry returned no rows")),
            blockscout=explorer,
            l2beat=l2beat,
            clock=clock,
        )

        with pytest.raises(SourceUnavailable, match="no rows"):
            await service.load(ECOSYSTEM)
        assert store.get(ECOSYSTEM) is None

    @pytest.mark.asyncio
    async def test_no_mainnet_chains(
        self, explorer, l2beat, store, clock, chain_factory
    ):
        service = DatasetService(
            cache=store,
            registry=StubRegistry([chain_factory("Gamma", status="Testnet")]),
            blockscout=explorer,
            l2beat=l2beat,
            clock=clock,
        )

        with pytest.raises(SourceUnavailable, match="No mainnet chains"):
            await service.load(TPS)

    @pytest.mark.asyncio
    async def test_all_chains_failed(self, registry, l2beat, store, clock):
        explorer = StubExplorer(
            transactions={"Alpha": RuntimeError("boom"), "Beta": RuntimeError("boom")}
        )
        service = DatasetService(
            cache=store, registry=registry, blockscout=explorer, l2beat=l2beat, clock=clock
        )

        with pytest.raises(AllChainsFailed):
            await service.load(TRANSACTION_METRICS)

    @pytest.mark.asyncio
    async def test_partial_failure_is_reported(self, registry, l2beat, store, clock):
        explorer = StubExplorer(
            transactions={"Alpha": [mp("2024-06-03", 100)], "Beta": RuntimeError("timeout")}
        )
        service = DatasetService(
            cache=store, registry=registry, blockscout=explorer, l2beat=l2beat, clock=clock
        )

        bundle = await service.load(TRANSACTION_METRICS)

        assert bundle["totals"] == {"Alpha": 100.0}
        assert bundle["failures"] == {"transactions": {"Beta": "timeout"}}

    @pytest.mark.asyncio
    async def test_tvl_outage_keeps_ecosystem(self, registry, explorer, store, clock):
        l2beat = StubL2Beat(tvl={"Alpha": RuntimeError("l2beat 503")})
        service = DatasetService(
            cache=store, registry=registry, blockscout=explorer, l2beat=l2beat, clock=clock
        )

        bundle = await service.load(ECOSYSTEM)

        assert bundle["transactions"]["totals"] == {"Alpha": 150.0, "Beta": 10.0}
        assert bundle["tvl"]["by_chain"] == {}
        assert bundle["tvl"]["latest"] == {}
        assert bundle["tvl"]["combined_latest"] == 0
        assert bundle["failures"] == {"tvl": {"Alpha": "l2beat 503"}}
        assert store.get(ECOSYSTEM).data == bundle

    @pytest.mark.asyncio
    async def test_active_accounts_outage_keeps_raas_page(self, registry, l2beat, store, clock):
        explorer = StubExplorer(
            transactions={"Alpha": [mp("2024-06-03", 100)], "Beta": [mp("2024-06-03", 20)]},
            active_accounts={"Alpha": RuntimeError("502"), "Beta": RuntimeError("502")},
        )
        service = DatasetService(
            cache=store, registry=registry, blockscout=explorer, l2beat=l2beat, clock=clock
        )

        bundle = await service.load(RAAS_PAGE)

        assert bundle["transactions"]["Gelato"]["total"] == 100.0
        assert bundle["active_accounts"]["Gelato"]["total"] == 0.0
        assert bundle["active_accounts"]["Conduit"]["total"] == 0.0
        assert bundle["failures"] == {"active_accounts": {"Alpha": "502", "Beta": "502"}}

    @pytest.mark.asyncio
    async def test_every_metric_failing_loses_the_dataset(self, registry, store, clock):
        down = RuntimeError("down")
        explorer = StubExplorer(
            transactions={"Alpha": down, "Beta": down},
            active_accounts={"Alpha": down, "Beta": down},
        )
        l2beat = StubL2Beat(tvl={"Alpha": down})
        service = DatasetService(
            cache=store, registry=registry, blockscout=explorer, l2beat=l2beat, clock=clock
        )

        with pytest.raises(AllChainsFailed):
            await service.load(ECOSYSTEM)
        assert store.get(ECOSYSTEM) is None


# ============================================================================
# BUILDERS
# ============================================================================


class TestBuilders:
    @pytest.mark.asyncio
    async def test_transaction_metrics(self, service):
        bundle = await service.build_transaction_metrics()

        assert bundle["weekly"] == {"2024-23": 160.0}
        assert bundle["weekly_by_chain"] == {
            "Alpha": {"2024-23": 150.0},
            "Beta": {"2024-23": 10.0},
        }
        assert bundle["totals"] == {"Alpha": 150.0, "Beta": 10.0}
        assert bundle["combined_total"] == 160.0
        assert bundle["failures"] == {}

    @pytest.mark.asyncio
    async def test_tps_only_fetches_chains_with_project_id(self, service):
        bundle = await service.build_tps()

        assert list(bundle["by_chain"]) == ["Alpha"]
        assert bundle["window_days"] == 90
        # 90 days back from today, both ends included
        assert bundle["averages"]["Alpha"] == pytest.approx(4.0 / 91)
        assert bundle["top_chains"][0]["name"] == "Alpha"
        assert bundle["share_by_date"]["2024-06-10"] == {"Alpha": 100.0}
        assert bundle["share_by_date"]["2024-06-01"] == {"Alpha": 0.0}

    @pytest.mark.asyncio
    async def test_ecosystem(self, service):
        bundle = await service.build_ecosystem()

        assert [c["name"] for c in bundle["chains"]] == ["Alpha", "Beta"]
        daily = bundle["transactions"]["daily"]
        assert list(daily)[0] == "2024-06-03"
        assert list(daily)[-1] == "2024-06-10"
        assert daily["2024-06-03"] == 110.0
        assert daily["2024-06-05"] == 0.0
        assert bundle["transactions"]["daily_approximate"] == {"2024-06-10": 5.0}
        assert bundle["transactions"]["approximate"] == {"Beta": {"2024-06-10": 5.0}}
        assert bundle["active_accounts"]["totals"] == {"Alpha": 7.0, "Beta": 3.0}
        assert bundle["tvl"]["latest"] == {"Alpha": 60.0}
        assert bundle["tvl"]["by_chain"]["Alpha"]["2024-06-09"]["totalTvl"] == 60.0

        top = bundle["top_chains"]
        assert [entry["name"] for entry in top] == ["Alpha", "Beta"]
        assert top[0]["share"] == "93.75%"

        verticals = bundle["categories"]["vertical"]["counts"]
        assert verticals == {"Gaming": 2}

    @pytest.mark.asyncio
    async def test_raas_page(self, service):
        bundle = await service.build_raas_page()

        assert bundle["raas_options"] == ["All Raas", "Gelato", "Conduit"]
        assert bundle["chain_counts"] == {"Gelato": 1, "Conduit": 1}
        assert bundle["transactions"]["Gelato"]["total"] == 150.0
        assert bundle["tvl"]["Conduit"]["total"] == 0.0
        assert [e["name"] for e in bundle["launch_timeline"]] == ["Alpha", "Beta"]
        assert bundle["launches_by_month"] == {"2024-01": 2}


class TestTransactionViews:
    def test_empty(self):
        views = transaction_views({})
        assert views["daily"] == {}
        assert views["weekly"] == {}
        assert views["combined_total"] == 0


# ============================================================================
# END TO END OVER THE FAKE TRANSPORT
# ============================================================================


@pytest.mark.asyncio
async def test_transaction_metrics_over_proxy(fake_http, proxy, clock, sheet_rows):
    fake_http.add("sheets.googleapis.com", body={"values": sheet_rows})
    fake_http.add(
        "explorer.alpha.xyz/api/v1/lines/newTxns",
        body={"chart": [{"date": "2024-06-03", "value": "40"}]},
    )
    fake_http.add(
        "explorer.beta.xyz/api/v1/lines/newTxns",
        body={"chart": [{"date": "2024-06-04", "value": "2"}]},
    )
    service = DatasetService(
        cache=InMemoryCacheStore(clock=clock),
        registry=SheetRegistrySource(fake_http, SheetConfig(spreadsheet_id="sheet", api_key="k")),
        blockscout=BlockscoutFetcher(proxy, clock=clock),
        l2beat=L2BeatFetcher(proxy),
        clock=clock,
    )

    bundle = await service.load(TRANSACTION_METRICS)

    assert bundle["totals"] == {"Alpha": 40.0, "Beta": 2.0}
    assert bundle["weekly"] == {"2024-23": 42.0}
    assert fake_http.calls[0][1] == {"key": "k"}
