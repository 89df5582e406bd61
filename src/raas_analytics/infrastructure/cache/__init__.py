"""Dataset cache stores and freshness policy."""

from .freshness import DEFAULT_TTLS_MS, CachePolicy, is_fresh  # noqa: F401
from .store import (  # noqa: F401
    CacheEntry,
    CacheStore,
    InMemoryCacheStore,
    JsonFileCacheStore,
)

__all__ = [
    "CacheEntry",
    "CachePolicy",
    "CacheStore",
    "DEFAULT_TTLS_MS",
    "InMemoryCacheStore",
    "JsonFileCacheStore",
    "is_fresh",
]
