"""Chain launch timeline and launch counts per period."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Literal

from raas_analytics.shared.models.chain import ChainRecord
from raas_analytics.transformation.date_keys import month_key, quarter_key
from raas_analytics.transformation.normalizers import normalize_raas

Period = Literal["month", "quarter"]

# Dashboard window labels -> days
TIMELINE_WINDOWS = {
    "Last 1 Month": 30,
    "Last 3 Months": 90,
    "Last 6 Months": 180,
    "Last 1 Year": 365,
    "All Time": None,
}


@dataclass(frozen=True)
class LaunchEntry:
    name: str
    launch_date: date
    raas_provider: str  # lower-cased, trimmed
    vertical: str
    layer_type: str

    def to_dict(self) -> dict[str, str]:
        return {
            "name": self.name,
            "launchDate": self.launch_date.isoformat(),
            "raas": self.raas_provider,
            "vertical": self.vertical,
            "layer": self.layer_type,
        }


def launch_timeline(
    chains: Iterable[ChainRecord],
    window_days: int | None,
    today: date,
) -> list[LaunchEntry]:
    """
    Chains launched within ``window_days`` of ``today``, oldest first.

    Chains without a launch date are left out. ``window_days=None`` keeps
    every dated chain. Launches in the future are kept, as they are in the
    registry.
    """
    cutoff = today - timedelta(days=window_days) if window_days is not None else None
    entries = [
        LaunchEntry(
            name=chain.name,
            launch_date=chain.launch_date,
            raas_provider=normalize_raas(chain.raas_provider),
            vertical=chain.vertical,
            layer_type=chain.layer_type.value,
        )
        for chain in chains
        if chain.launch_date is not None
        and (cutoff is None or chain.launch_date >= cutoff)
    ]
    return sorted(entries, key=lambda entry: entry.launch_date)


def launches_by_period(
    chains: Iterable[ChainRecord],
    period: Period = "month",
) -> dict[str, int]:
    """Launch counts per ``YYYY-MM`` or ``YYYY-Qn``, in chronological order."""
    key_of = month_key if period == "month" else quarter_key
    counts: dict[str, int] = {}
    for chain in chains:
        if chain.launch_date is None:
            continue
        key = key_of(chain.launch_date)
        counts[key] = counts.get(key, 0) + 1
    return dict(sorted(counts.items()))
