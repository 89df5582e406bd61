"""Configuration value objects for ingestion components."""

from .value_objects import (  # noqa: F401
    BatchConfig,
    ExplorerConfig,
    HttpClientConfig,
    L2BeatConfig,
    ProxyConfig,
    SheetConfig,
)

__all__ = [
    "BatchConfig",
    "ExplorerConfig",
    "HttpClientConfig",
    "L2BeatConfig",
    "ProxyConfig",
    "SheetConfig",
]
