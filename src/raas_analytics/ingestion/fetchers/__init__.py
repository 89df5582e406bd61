"""Per-metric fetchers for explorer and L2BEAT data."""

from .blockscout import BlockscoutFetcher, parse_line_chart
from .l2beat import L2BeatFetcher, resolve_window

__all__ = [
    "BlockscoutFetcher",
    "L2BeatFetcher",
    "parse_line_chart",
    "resolve_window",
]
