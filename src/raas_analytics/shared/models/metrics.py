from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class MetricPoint:
    """One day of a per-chain metric.

    ``is_approximate`` marks provisional explorer data (usually the current,
    still-open day). It is kept out of final totals.
    """

    date: date
    value: float
    is_approximate: bool = False

    @property
    def date_key(self) -> str:
        return self.date.isoformat()


@dataclass(frozen=True)
class TvlPoint:
    """Daily TVL split into its bridge components, already scaled to USD."""

    date: date
    native: float
    canonical: float
    external: float

    @property
    def total(self) -> float:
        return self.native + self.canonical + self.external

    @property
    def date_key(self) -> str:
        return self.date.isoformat()

    def to_dict(self) -> dict[str, float]:
        return {
            "nativeTvl": self.native,
            "canonical": self.canonical,
            "external": self.external,
            "totalTvl": self.total,
        }
