"""
Date-keyed aggregation of per-chain metric series.

Transactions, active accounts and TPS all share one canonical shape, a
``ChainDateSeries`` (chain name -> day key -> value). Week and month views
are derived from it here and never fetched separately.

None of these functions raise on bad input points: non-numeric values are
logged as ``malformed_point`` and counted as 0. Inputs are never mutated.
"""

import math
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any

import pandas as pd

from raas_analytics.infrastructure.observability import get_processing_logger
from raas_analytics.shared.models.metrics import MetricPoint, TvlPoint
from raas_analytics.transformation.date_keys import (
    date_range,
    month_key,
    parse_day,
    week_key,
)

ChainDateSeries = dict[str, dict[str, float]]
TvlSeries = dict[str, dict[str, TvlPoint]]

logger = get_processing_logger("series")


def as_number(value: Any, **context: Any) -> float:
    """Coerce a point value to float; anything non-numeric counts as 0."""
    if isinstance(value, bool) or value is None:
        logger.warning("malformed_point", value=repr(value), **context)
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.warning("malformed_point", value=repr(value), **context)
        return 0.0
    if not math.isfinite(number):
        logger.warning("malformed_point", value=repr(value), **context)
        return 0.0
    return number


@dataclass(frozen=True)
class ChainSeries:
    """Per-chain day-keyed sums, split into final and approximate points."""

    final: ChainDateSeries
    approximate: ChainDateSeries


@dataclass(frozen=True)
class DateAggregate:
    """Cross-chain totals per day.

    ``final`` has one entry per calendar day in the range (zero-filled);
    ``approximate`` only carries days that had provisional points.
    """

    final: dict[str, float]
    approximate: dict[str, float] = field(default_factory=dict)

    @property
    def dates(self) -> list[str]:
        return list(self.final)


@dataclass(frozen=True)
class PeriodAggregate:
    """Sums per period key (ISO week or month), per chain and across chains."""

    by_chain: ChainDateSeries
    total: dict[str, float]

    @property
    def periods(self) -> list[str]:
        return list(self.total)


def build_chain_date_series(
    points_by_chain: Mapping[str, Iterable[MetricPoint]],
) -> ChainSeries:
    """
    Merge raw per-chain points into day-keyed sums.

    Points sharing a date are added together. Approximate points go to a
    separate series so that final totals exclude provisional data.
    """
    final: ChainDateSeries = {}
    approximate: ChainDateSeries = {}
    for chain, points in points_by_chain.items():
        chain_final: dict[str, float] = {}
        chain_approx: dict[str, float] = {}
        for point in points:
            target = chain_approx if point.is_approximate else chain_final
            key = point.date_key
            target[key] = target.get(key, 0.0) + as_number(
                point.value, chain=chain, date=key
            )
        final[chain] = dict(sorted(chain_final.items()))
        if chain_approx:
            approximate[chain] = dict(sorted(chain_approx.items()))
    return ChainSeries(final=final, approximate=approximate)


def _present_dates(*series: Mapping[str, Mapping[str, Any]]) -> list[str]:
    keys: set[str] = set()
    for s in series:
        for by_date in s.values():
            keys.update(by_date)
    return sorted(keys)


def aggregate_by_date(
    series: Mapping[str, Mapping[str, Any]],
    start: date | str | None = None,
    end: date | str | None = None,
    approximate: Mapping[str, Mapping[str, Any]] | None = None,
) -> DateAggregate:
    """
    Sum all chains per calendar day over ``[start, end]``.

    The range defaults to the min and max dates present in either series.
    Every day in the range appears in ``final``, 0 where no chain reported.
    """
    approximate = approximate or {}
    present = _present_dates(series, approximate)
    if not present and (start is None or end is None):
        return DateAggregate(final={}, approximate={})

    first = parse_day(start) if start is not None else parse_day(present[0])
    last = parse_day(end) if end is not None else parse_day(present[-1])
    days = date_range(first, last)

    final = {day: 0.0 for day in days}
    for chain, by_date in series.items():
        for day, value in by_date.items():
            if day in final:
                final[day] += as_number(value, chain=chain, date=day)

    approx_totals: dict[str, float] = {}
    for chain, by_date in approximate.items():
        for day, value in by_date.items():
            if day in final:
                approx_totals[day] = approx_totals.get(day, 0.0) + as_number(
                    value, chain=chain, date=day
                )

    return DateAggregate(final=final, approximate=dict(sorted(approx_totals.items())))


def series_frame(series: Mapping[str, Mapping[str, Any]]) -> pd.DataFrame:
    """Day-indexed frame with one column per chain; absent days are NaN."""
    columns = {
        chain: {day: as_number(v, chain=chain, date=day) for day, v in by_date.items()}
        for chain, by_date in series.items()
    }
    frame = pd.DataFrame.from_dict(columns, orient="columns", dtype=float)
    return frame.sort_index()


def _aggregate_by_period(
    series: Mapping[str, Mapping[str, Any]],
    period_key: Callable[[str], str],
) -> PeriodAggregate:
    frame = series_frame(series)
    if frame.empty:
        return PeriodAggregate(by_chain={chain: {} for chain in series}, total={})

    grouped = frame.groupby(frame.index.map(period_key)).sum(min_count=1)
    by_chain = {
        chain: {period: float(v) for period, v in grouped[chain].dropna().items()}
        for chain in grouped.columns
    }
    total = {period: float(v) for period, v in grouped.sum(axis=1).items()}
    return PeriodAggregate(by_chain=by_chain, total=total)


def aggregate_by_week(series: Mapping[str, Mapping[str, Any]]) -> PeriodAggregate:
    """Sum day-keyed values into ISO week keys (``YYYY-WW``)."""
    return _aggregate_by_period(series, week_key)


def aggregate_by_month(series: Mapping[str, Mapping[str, Any]]) -> PeriodAggregate:
    """Sum day-keyed values into month keys (``YYYY-MM``)."""
    return _aggregate_by_period(series, month_key)


def chain_totals(
    series: Mapping[str, Mapping[str, Any]],
    dates: Sequence[str] | None = None,
) -> dict[str, float]:
    """
    Total per chain, optionally restricted to ``dates``.

    Dates a chain did not report contribute 0.
    """
    totals = {}
    for chain, by_date in series.items():
        if dates is None:
            items = by_date.items()
        else:
            items = ((day, by_date[day]) for day in dates if day in by_date)
        totals[chain] = sum(as_number(v, chain=chain, date=day) for day, v in items)
    return totals


def average_by_chain(
    series: Mapping[str, Mapping[str, Any]],
    dates: Sequence[str],
) -> dict[str, float]:
    """Mean per chain over ``dates``, counting absent dates as 0."""
    if not dates:
        return {chain: 0.0 for chain in series}
    totals = chain_totals(series, dates)
    return {chain: total / len(dates) for chain, total in totals.items()}


def share_by_date(
    series: Mapping[str, Mapping[str, Any]],
    dates: Sequence[str],
) -> dict[str, dict[str, float]]:
    """Each chain's percentage of the cross-chain total per date, 2 decimals."""
    shares: dict[str, dict[str, float]] = {}
    for day in dates:
        values = {
            chain: as_number(by_date.get(day, 0), chain=chain, date=day)
            for chain, by_date in series.items()
        }
        total = sum(values.values())
        shares[day] = {
            chain: round(value / total * 100, 2) if total > 0 else 0.0
            for chain, value in values.items()
        }
    return shares


def build_tvl_series(points_by_chain: Mapping[str, Iterable[TvlPoint]]) -> TvlSeries:
    """Day-keyed TVL breakdown per chain; the last point for a date wins."""
    return {
        chain: dict(sorted({p.date_key: p for p in points}.items()))
        for chain, points in points_by_chain.items()
    }


def tvl_totals(tvl_series: Mapping[str, Mapping[str, TvlPoint]]) -> ChainDateSeries:
    """Collapse a TVL breakdown series to its total per day."""
    return {
        chain: {day: point.total for day, point in by_date.items()}
        for chain, by_date in tvl_series.items()
    }


def latest_tvl(tvl_series: Mapping[str, Mapping[str, TvlPoint]]) -> dict[str, float]:
    """Most recent TVL total per chain; chains without points get 0."""
    latest = {}
    for chain, by_date in tvl_series.items():
        if not by_date:
            latest[chain] = 0.0
            continue
        latest[chain] = by_date[max(by_date)].total
    return latest
