"""
Observability for the aggregation and caching layer.

Every stage boundary (registry fetch, per-chain metric fetch, aggregation,
cache read/write) emits a structured event so a partially failed refresh can
be traced back to the chains and points that were dropped.
"""

from .logging import (
    get_infrastructure_logger,
    get_ingestion_logger,
    get_logger,
    get_processing_logger,
    get_service_logger,
    setup_logging,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "get_infrastructure_logger",
    "get_ingestion_logger",
    "get_processing_logger",
    "get_service_logger",
]
