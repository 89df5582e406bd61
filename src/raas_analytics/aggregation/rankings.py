"""Top-N ranking and growth figures over chain totals."""

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from numbers import Number
from typing import Any

from raas_analytics.transformation.date_keys import previous_week_key

OTHERS = "Others"


@dataclass(frozen=True)
class RankedChain:
    name: str
    value: float
    share: str  # "12.34%" of the combined total


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, Number)
        and not isinstance(value, bool)
        and math.isfinite(float(value))
    )


def format_share(value: float, total: float) -> str:
    if not total:
        return "0%"
    return f"{value / total * 100:.2f}%"


def top_n(
    totals: Mapping[str, float],
    n: int,
    combined_total: Any = None,
    order: Sequence[str] | None = None,
) -> list[RankedChain]:
    """
    Rank chains by total, descending, and keep the first ``n``.

    Ties keep registry order: ``order`` when given, otherwise the order of
    ``totals``. Shares are relative to ``combined_total``, which falls back to
    the sum of all totals when missing or not a number.
    """
    if order is not None:
        names = [name for name in order if name in totals]
        listed = set(names)
        names += [name for name in totals if name not in listed]
    else:
        names = list(totals)

    values = {name: float(totals[name]) if _is_number(totals[name]) else 0.0 for name in names}
    if not _is_number(combined_total):
        combined_total = sum(values.values())

    ranked = sorted(names, key=lambda name: values[name], reverse=True)
    return [
        RankedChain(name=name, value=values[name], share=format_share(values[name], combined_total))
        for name in ranked[: max(n, 0)]
    ]


def top_n_with_others(
    totals: Mapping[str, float],
    n: int,
    order: Sequence[str] | None = None,
) -> list[RankedChain]:
    """Top ``n`` chains plus an "Others" bucket summing the rest."""
    ranked = top_n(totals, len(totals), order=order)
    if len(ranked) <= n:
        return ranked
    combined = sum(r.value for r in ranked)
    head = ranked[:n]
    rest = sum(r.value for r in ranked[n:])
    return head + [RankedChain(name=OTHERS, value=rest, share=format_share(rest, combined))]


def percentage_increase(current: Any, previous: Any) -> str:
    """Growth of ``current`` over ``previous`` as ``"x.xx%"``, or "N/A"."""
    if not _is_number(current) or not _is_number(previous) or previous <= 0:
        return "N/A"
    return f"{(current - previous) / previous * 100:.2f}%"


def week_over_week(weekly_series: Mapping[str, Mapping[str, float]], chain: str) -> str:
    """
    Latest week against the week before it for one chain.

    The previous week is the calendar week preceding the latest key, so a
    gap in the data counts as 0 and yields "N/A".
    """
    weeks = weekly_series.get(chain) or {}
    if not weeks:
        return "N/A"
    latest = max(weeks)
    return percentage_increase(weeks[latest], weeks.get(previous_week_key(latest), 0))
