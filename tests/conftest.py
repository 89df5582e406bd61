"""Shared fixtures: fake transport, registry rows and a pinned clock."""

from datetime import UTC, date, datetime
from typing import Any
from urllib.parse import unquote

import pytest

from raas_analytics.infrastructure.impls.system import FixedClock
from raas_analytics.ingestion.config.value_objects import ProxyConfig
from raas_analytics.ingestion.connectors.proxy import ProxyClient
from raas_analytics.ingestion.ports.http import HttpResponse
from raas_analytics.shared.models.chain import ChainRecord


class FakeHttpClient:
    """In-memory IHttpClient.

    Routes match on a substring of the fully decoded request URL, so tests
    can target the upstream URL behind the proxy. Unmatched requests get a
    404 relayed the way the proxy does it.
    """

    def __init__(self) -> None:
        self.routes: list[tuple[str, int, Any, BaseException | None]] = []
        self.calls: list[tuple[str, dict[str, Any] | None]] = []
        self.closed = False

    def add(
        self,
        match: str,
        body: Any = None,
        status: int = 200,
        exc: BaseException | None = None,
    ) -> "FakeHttpClient":
        self.routes.append((match, status, body, exc))
        return self

    async def get(self, url, params=None, headers=None, timeout=None) -> HttpResponse:
        self.calls.append((url, params))
        decoded = unquote(unquote(url))
        for match, status, body, exc in self.routes:
            if match in decoded:
                if exc is not None:
                    raise exc
                return HttpResponse(status_code=status, body=body, headers={}, url=url)
        return HttpResponse(status_code=404, body={"error": "Not Found"}, headers={}, url=url)

    async def close(self) -> None:
        self.closed = True

    def decoded_calls(self) -> list[str]:
        return [unquote(unquote(url)) for url, _ in self.calls]


def make_chain(name: str = "Alpha", **overrides: Any) -> ChainRecord:
    fields: dict[str, Any] = {
        "name": name,
        "explorer_url": f"https://explorer.{name.lower().replace(' ', '')}.xyz",
        "external_project_id": name.lower().replace(" ", ""),
        "raas_provider": "Gelato",
        "launch_date": date(2024, 1, 15),
        "vertical": "Gaming",
        "framework": "OP Stack",
        "data_availability": "Celestia",
        "layer_type": "L2",
        "settlement_layer": "Ethereum",
        "status": "Mainnet",
    }
    fields.update(overrides)
    return ChainRecord(**fields)


@pytest.fixture
def fake_http() -> FakeHttpClient:
    return FakeHttpClient()


@pytest.fixture
def proxy(fake_http) -> ProxyClient:
    return ProxyClient(fake_http, ProxyConfig(base_url="http://proxy.test/api/proxy"))


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2024, 6, 10, 12, 0, tzinfo=UTC))


@pytest.fixture
def chain_factory():
    return make_chain


@pytest.fixture
def sheet_rows() -> list[list[str]]:
    """Registry rows in sheet column order (A..Q)."""
    return [
        [
            "Alpha", "https://explorer.alpha.xyz/", "alpha", "https://alpha.xyz",
            "Gelato", "2024", "Q1", "January", "2024-01-15", "Gaming",
            "OP Stack", "Celestia", "L2", "Ethereum", "", "https://logo/alpha.png",
            "Mainnet",
        ],
        [
            "Beta", "https://explorer.beta.xyz", "", "", " conduit ", "2024",
            "Q2", "April", "Apr 2, 2024", " gaming ", "Arbitrum Orbit",
            "EigenDA", "layer 3", "Arbitrum", "", "", " mainnet ",
        ],
        ["Gamma", "https://explorer.gamma.xyz", "gamma", "", "Gelato", "", "", "", "", "", "", "", "L2", "", "", "", "Testnet"],
        ["", "https://explorer.nameless.xyz"],
        ["Delta"],
    ]
