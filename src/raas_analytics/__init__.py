"""raas-analytics: data aggregation and caching layer for a Rollup-as-a-Service dashboard."""

__version__ = "0.1.0"
