"""Chain registry source."""

from .registry import (
    ALL_RAAS,
    SheetRegistrySource,
    filter_chains,
    parse_registry_row,
    parse_registry_rows,
    raas_options,
)

__all__ = [
    "ALL_RAAS",
    "SheetRegistrySource",
    "filter_chains",
    "parse_registry_row",
    "parse_registry_rows",
    "raas_options",
]
