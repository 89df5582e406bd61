"""Pure aggregation over per-chain series and registry categories."""

from .categories import (
    CategoryCell,
    count_by,
    cross_tab,
    group_by,
    metric_by_category,
    sort_cells,
)
from .rankings import (
    RankedChain,
    percentage_increase,
    top_n,
    top_n_with_others,
    week_over_week,
)
from .series import (
    ChainDateSeries,
    ChainSeries,
    DateAggregate,
    PeriodAggregate,
    aggregate_by_date,
    aggregate_by_month,
    aggregate_by_week,
    average_by_chain,
    build_chain_date_series,
    build_tvl_series,
    chain_totals,
    latest_tvl,
    share_by_date,
    tvl_totals,
)
from .timeline import LaunchEntry, launch_timeline, launches_by_period

__all__ = [
    # Series
    "ChainDateSeries",
    "ChainSeries",
    "DateAggregate",
    "PeriodAggregate",
    "aggregate_by_date",
    "aggregate_by_month",
    "aggregate_by_week",
    "average_by_chain",
    "build_chain_date_series",
    "build_tvl_series",
    "chain_totals",
    "latest_tvl",
    "share_by_date",
    "tvl_totals",
    # Rankings
    "RankedChain",
    "percentage_increase",
    "top_n",
    "top_n_with_others",
    "week_over_week",
    # Categories
    "CategoryCell",
    "count_by",
    "cross_tab",
    "group_by",
    "metric_by_category",
    "sort_cells",
    # Timeline
    "LaunchEntry",
    "launch_timeline",
    "launches_by_period",
]
