"""Chain registry backed by a Google Sheets values range.

The sheet is the single source of chain metadata. Columns are positional and
their order is a fixed contract, so the index mapping lives in exactly one
place: ``parse_registry_row``.
"""

from collections.abc import Iterable, Sequence
from typing import Any

import aiohttp
from pydantic import ValidationError

from raas_analytics.exceptions import SourceUnavailable
from raas_analytics.infrastructure.observability import get_ingestion_logger
from raas_analytics.ingestion.config.value_objects import SheetConfig
from raas_analytics.ingestion.ports.http import IHttpClient
from raas_analytics.shared.enums import ChainStatus
from raas_analytics.shared.models.chain import ChainRecord
from raas_analytics.transformation.date_keys import parse_launch_date
from raas_analytics.transformation.normalizers import (
    UNKNOWN,
    category_key,
    normalize_category,
    normalize_status,
)

logger = get_ingestion_logger("registry")

# Column A..Q of the registry sheet.
COL_NAME = 0
COL_EXPLORER_URL = 1
COL_PROJECT_ID = 2
COL_WEBSITE = 3
COL_RAAS = 4
COL_YEAR = 5
COL_QUARTER = 6
COL_MONTH = 7
COL_LAUNCH_DATE = 8
COL_VERTICAL = 9
COL_FRAMEWORK = 10
COL_DA = 11
COL_LAYER = 12
COL_SETTLEMENT = 13
COL_LOGO_URL = 15
COL_STATUS = 16
ROW_WIDTH = 17

ALL_RAAS = "All Raas"


def _cell(row: Sequence[Any], index: int) -> str | None:
    if index >= len(row):
        return None
    value = row[index]
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_registry_row(row: Sequence[Any], row_number: int = 0) -> ChainRecord | None:
    """
    Translate one positional sheet row into a ChainRecord.

    Returns None (and logs a warning) for rows missing a name or explorer
    URL, or whose values fail validation.
    """
    name = _cell(row, COL_NAME)
    explorer_url = _cell(row, COL_EXPLORER_URL)
    if not name or not explorer_url:
        logger.warning(
            "registry_row_dropped",
            row=row_number,
            reason="missing name or explorer url",
            name=name,
        )
        return None

    raw_launch = _cell(row, COL_LAUNCH_DATE)
    launch_date = parse_launch_date(raw_launch)
    if raw_launch and launch_date is None:
        logger.warning("launch_date_unparsed", chain=name, value=raw_launch)

    try:
        return ChainRecord(
            name=name,
            explorer_url=explorer_url,
            external_project_id=_cell(row, COL_PROJECT_ID),
            website=_cell(row, COL_WEBSITE),
            raas_provider=_cell(row, COL_RAAS),
            year=_cell(row, COL_YEAR),
            quarter=_cell(row, COL_QUARTER),
            month=_cell(row, COL_MONTH),
            launch_date=launch_date,
            vertical=_cell(row, COL_VERTICAL),
            framework=_cell(row, COL_FRAMEWORK),
            data_availability=_cell(row, COL_DA),
            layer_type=_cell(row, COL_LAYER),
            settlement_layer=_cell(row, COL_SETTLEMENT),
            logo_url=_cell(row, COL_LOGO_URL),
            status=_cell(row, COL_STATUS),
        )
    except ValidationError as e:
        logger.warning(
            "registry_row_dropped",
            row=row_number,
            chain=name,
            reason=str(e.errors()[0].get("msg", e)),
        )
        return None


def parse_registry_rows(rows: Iterable[Sequence[Any]]) -> list[ChainRecord]:
    """Parse all rows, dropping malformed ones and duplicate chain names."""
    chains: list[ChainRecord] = []
    seen: set[str] = set()
    for row_number, row in enumerate(rows, start=2):
        chain = parse_registry_row(row, row_number)
        if chain is None:
            continue
        if chain.name in seen:
            logger.warning("registry_duplicate_chain", row=row_number, chain=chain.name)
            continue
        seen.add(chain.name)
        chains.append(chain)
    return chains


class SheetRegistrySource:
    """Fetches the chain registry from the Sheets values API."""

    def __init__(self, http: IHttpClient, config: SheetConfig):
        self.http = http
        self.config = config

    async def fetch_chain_registry(self) -> list[ChainRecord]:
        """
        Fetch and parse every registry row.

        Raises:
            SourceUnavailable: When the call fails or yields no valid rows
        """
        try:
            response = await self.http.get(
                self.config.values_url, params={"key": self.config.api_key}
            )
        except (aiohttp.ClientError, TimeoutError, ValueError) as e:
            logger.error("registry_fetch_failed", error=str(e))
            raise SourceUnavailable(f"Registry request failed: {e}") from e

        if not response.ok:
            logger.error("registry_fetch_failed", status=response.status_code)
            raise SourceUnavailable(
                f"Registry request returned HTTP {response.status_code}"
            )

        body = response.body
        rows = body.get("values") if isinstance(body, dict) else None
        if not rows:
            raise SourceUnavailable("Registry returned no rows")

        chains = parse_registry_rows(rows)
        if not chains:
            raise SourceUnavailable("Registry returned no valid rows")

        logger.info("registry_fetched", rows=len(rows), chains=len(chains))
        return chains


def filter_chains(
    chains: Iterable[ChainRecord],
    status: ChainStatus | str | None = ChainStatus.MAINNET,
    raas: str | None = None,
    require_project_id: bool = False,
) -> list[ChainRecord]:
    """
    Select chains by status and RaaS provider, keeping registry order.

    ``raas`` of None or "All Raas" disables the provider filter. Comparisons
    are case-insensitive and ignore surrounding whitespace.
    """
    wanted_status = status
    if isinstance(status, str) and not isinstance(status, ChainStatus):
        wanted_status = normalize_status(status)
    wanted_raas = None
    if raas is not None and raas.strip().lower() != ALL_RAAS.lower():
        wanted_raas = category_key(raas)

    selected = []
    for chain in chains:
        if wanted_status is not None and chain.status != wanted_status:
            continue
        if wanted_raas is not None and category_key(chain.raas_provider) != wanted_raas:
            continue
        if require_project_id and not chain.has_project_id:
            continue
        selected.append(chain)
    return selected


def raas_options(chains: Iterable[ChainRecord]) -> list[str]:
    """Distinct RaaS providers in registry order, prefixed by "All Raas"."""
    options = [ALL_RAAS]
    seen: set[str] = set()
    for chain in chains:
        provider = normalize_category(chain.raas_provider)
        key = category_key(provider)
        if provider == UNKNOWN or key in seen:
            continue
        seen.add(key)
        options.append(provider)
    return options
