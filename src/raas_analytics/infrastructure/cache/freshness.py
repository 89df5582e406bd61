"""TTL policy per dataset and the freshness check."""

from collections.abc import Mapping
from dataclasses import dataclass, field

from raas_analytics.infrastructure.cache.store import CacheEntry

HOUR_MS = 60 * 60 * 1000

DEFAULT_TTLS_MS = {
    "ecosystemData": 6 * HOUR_MS,
    "tpsData": 6 * HOUR_MS,
    "raasPageData": 1 * HOUR_MS,
    "transactionMetricsData": 6 * HOUR_MS,
}


def is_fresh(entry: CacheEntry | None, ttl_ms: int, now_ms: int) -> bool:
    """Fresh unless more than ``ttl_ms`` has passed since the entry was written."""
    if entry is None:
        return False
    return now_ms - entry.timestamp <= ttl_ms


@dataclass(frozen=True)
class CachePolicy:
    """TTL in milliseconds per dataset id."""

    ttls: Mapping[str, int] = field(default_factory=lambda: dict(DEFAULT_TTLS_MS))
    default_ttl: int = 6 * HOUR_MS

    @classmethod
    def from_seconds(
        cls, ttls: Mapping[str, float] | None = None, default_ttl: float = 6 * 60 * 60
    ) -> "CachePolicy":
        """Build from second-based config values layered over the defaults."""
        merged = dict(DEFAULT_TTLS_MS)
        for dataset_id, seconds in (ttls or {}).items():
            merged[dataset_id] = int(seconds * 1000)
        return cls(ttls=merged, default_ttl=int(default_ttl * 1000))

    def ttl_for(self, dataset_id: str) -> int:
        return self.ttls.get(dataset_id, self.default_ttl)

    def is_fresh(self, entry: CacheEntry | None, now_ms: int) -> bool:
        if entry is None:
            return False
        return is_fresh(entry, self.ttl_for(entry.id), now_ms)
