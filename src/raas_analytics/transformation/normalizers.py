"""Normalization of free-text registry values and raw metric values.

Provides:
- normalize_category(): trim and collapse empty category values to "Unknown"
- category_key(): case-folded grouping key for a category value
- normalize_layer_type(): map free-text layer labels onto LayerType
- normalize_status() / normalize_raas(): lower-cased comparable forms
- parse_count() / parse_amount(): numeric coercion that never raises

Every category grouping in the aggregation engine goes through these
functions; nothing else in the package inspects raw category strings.
"""

import math
from typing import Any, Literal

from raas_analytics.infrastructure.observability import get_processing_logger
from raas_analytics.shared.enums import ChainStatus, LayerType

UNKNOWN = "Unknown"

CaseMode = Literal["preserve", "title"]

logger = get_processing_logger("normalizers")

_LAYER_ALIASES = {
    "l2": LayerType.L2,
    "layer 2": LayerType.L2,
    "layer2": LayerType.L2,
    "l3": LayerType.L3,
    "layer 3": LayerType.L3,
    "layer3": LayerType.L3,
}


def normalize_category(value: Any) -> str:
    """Trim a category value; None and blank strings become "Unknown".

    Case is preserved here. Case-insensitive grouping is applied by
    ``category_key`` so that the display label can follow the caller's
    casing policy.
    """
    if value is None:
        return UNKNOWN
    text = str(value).strip()
    return text if text else UNKNOWN


def category_key(value: Any) -> str:
    """Grouping key: trimmed and case-folded, with the "Unknown" sentinel kept."""
    normalized = normalize_category(value)
    if normalized == UNKNOWN or normalized.casefold() == UNKNOWN.casefold():
        return UNKNOWN
    return normalized.casefold()


def category_label(value: Any, case: CaseMode = "preserve") -> str:
    """Display label for a category under the given casing policy.

    "preserve" returns the trimmed value as written; "title" title-cases it.
    The aggregation engine keeps the first label seen per grouping key.
    """
    normalized = normalize_category(value)
    if case == "title" and normalized != UNKNOWN:
        return normalized.title()
    return normalized


def normalize_layer_type(value: Any) -> LayerType:
    """Map "L2", "layer 2", " l3 " etc. onto LayerType; anything else is Unknown."""
    if value is None:
        return LayerType.UNKNOWN
    return _LAYER_ALIASES.get(str(value).strip().lower(), LayerType.UNKNOWN)


def normalize_status(value: Any) -> ChainStatus:
    if value is None:
        return ChainStatus.UNKNOWN
    text = str(value).strip().lower()
    try:
        return ChainStatus(text)
    except ValueError:
        return ChainStatus.UNKNOWN


def normalize_raas(value: Any) -> str:
    """Lower-cased provider name used for provider filters and lookups."""
    return category_key(value)


def strip_trailing_slashes(url: str) -> str:
    return url.strip().rstrip("/")


def parse_count(value: Any, **context: Any) -> int:
    """Parse an explorer count (transactions, active accounts) as an integer.

    Strings are parsed like ``parseInt``: "12" -> 12, "12.9" -> 12. Anything
    that does not parse, or is negative, becomes 0 with a warning.
    """
    if isinstance(value, bool):
        logger.warning("malformed_point", value=repr(value), **context)
        return 0
    try:
        if isinstance(value, (int, float)):
            if isinstance(value, float) and not math.isfinite(value):
                raise ValueError("non-finite")
            parsed = int(value)
        else:
            parsed = int(float(str(value).strip()))
    except (TypeError, ValueError, OverflowError):
        logger.warning("malformed_point", value=repr(value), **context)
        return 0
    if parsed < 0:
        logger.warning("negative_point", value=parsed, **context)
        return 0
    return parsed


def parse_amount(value: Any, divisor: float = 1.0, **context: Any) -> float:
    """Parse a float amount and scale it by ``divisor``; bad values become 0.0."""
    if isinstance(value, bool) or value is None:
        logger.warning("malformed_point", value=repr(value), **context)
        return 0.0
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        logger.warning("malformed_point", value=repr(value), **context)
        return 0.0
    if not math.isfinite(parsed):
        logger.warning("malformed_point", value=repr(value), **context)
        return 0.0
    return parsed / divisor
