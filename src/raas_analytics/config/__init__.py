"""Configuration package for raas_analytics."""

from .state import ConfigLoader, ConfigState, get_config

__all__ = [
    "ConfigLoader",
    "ConfigState",
    "get_config",
]
