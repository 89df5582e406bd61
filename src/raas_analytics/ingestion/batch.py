"""
Parallel per-chain fetch runner.

One task per chain is launched with ``asyncio.gather``, bounded by a
semaphore. Each task yields an explicit ``Ok``/``Err`` so a failing chain
never aborts the batch; callers decide what an all-failed batch means.
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from raas_analytics.exceptions import AllChainsFailed
from raas_analytics.infrastructure.observability import get_ingestion_logger
from raas_analytics.ingestion.config.value_objects import BatchConfig
from raas_analytics.shared.enums import ErrorKind
from raas_analytics.shared.models.chain import ChainRecord
from raas_analytics.shared.models.results import Err, FetchResult, Ok

T = TypeVar("T")

FetchOne = Callable[[ChainRecord], Awaitable[T]]

logger = get_ingestion_logger("batch")


@dataclass
class BatchResult(Generic[T]):
    """Outcome of one metric across a set of chains."""

    metric: str
    results: dict[str, FetchResult] = field(default_factory=dict)

    @property
    def series(self) -> dict[str, T]:
        """Chain name -> fetched value, for chains that succeeded."""
        return {name: r.value for name, r in self.results.items() if isinstance(r, Ok)}

    @property
    def failures(self) -> dict[str, str]:
        """Chain name -> error message, for chains that failed."""
        return {
            name: r.message for name, r in self.results.items() if isinstance(r, Err)
        }

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results.values() if r.is_ok)

    @property
    def failed(self) -> int:
        return len(self.results) - self.succeeded

    @property
    def attempted(self) -> int:
        return len(self.results)

    def raise_if_all_failed(self) -> None:
        """
        Raises:
            AllChainsFailed: If at least one chain was attempted and none succeeded
        """
        if self.attempted and not self.succeeded:
            raise AllChainsFailed(self.metric, self.attempted)


async def fetch_one_safely(
    chain: ChainRecord,
    fetch_one: FetchOne,
    metric: str,
    semaphore: asyncio.Semaphore | None = None,
) -> FetchResult:
    """Run one chain fetch and fold its failure into an ``Err``."""
    try:
        if semaphore is None:
            value = await fetch_one(chain)
        else:
            async with semaphore:
                value = await fetch_one(chain)
    except Exception as e:
        message = str(e) or type(e).__name__
        logger.warning(
            "chain_fetch_failed",
            chain=chain.name,
            metric=metric,
            error_type=type(e).__name__,
            error=message,
        )
        return Err(ErrorKind.CHAIN_FETCH_FAILED, message)
    return Ok(value)


async def fetch_all(
    chains: Sequence[ChainRecord],
    fetch_one: FetchOne,
    metric: str = "metric",
    config: BatchConfig | None = None,
) -> BatchResult:
    """
    Fetch one metric for every chain concurrently.

    Args:
        chains: Chains to fetch, in registry order
        fetch_one: Coroutine function taking a ChainRecord
        metric: Metric name for logs and AllChainsFailed
        config: Concurrency bound; ``max_concurrency <= 0`` means unbounded

    Returns:
        BatchResult keyed by chain name, in input order
    """
    config = config or BatchConfig()
    semaphore = (
        asyncio.Semaphore(config.max_concurrency) if config.max_concurrency > 0 else None
    )

    outcomes = await asyncio.gather(
        *(fetch_one_safely(chain, fetch_one, metric, semaphore) for chain in chains)
    )

    batch = BatchResult(metric=metric)
    for chain, outcome in zip(chains, outcomes, strict=True):
        batch.results[chain.name] = outcome

    logger.info(
        "batch_completed",
        metric=metric,
        attempted=batch.attempted,
        succeeded=batch.succeeded,
        failed=batch.failed,
    )
    return batch
