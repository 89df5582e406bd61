"""Shared domain models."""

from raas_analytics.shared.enums import (
    ChainStatus,
    DatasetState,
    ErrorKind,
    LayerType,
    MetricKind,
)
from raas_analytics.shared.models.chain import ChainRecord
from raas_analytics.shared.models.metrics import MetricPoint, TvlPoint
from raas_analytics.shared.models.results import Err, FetchResult, Ok

__all__ = [
    # Enums
    "ChainStatus",
    "DatasetState",
    "ErrorKind",
    "LayerType",
    "MetricKind",
    # Models
    "ChainRecord",
    "MetricPoint",
    "TvlPoint",
    "Ok",
    "Err",
    "FetchResult",
]
