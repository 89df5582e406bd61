"""
Structured logging infrastructure for raas-analytics.
Provides consistent, machine-readable logs across the fetch, aggregate and cache stages.

Log Structure:
    {
        "app": "raas-analytics",       # Application identifier
        "layer": "ingestion",          # Architectural layer
        "component": "blockscout",     # Specific component/service
        "module": "...",               # Python module (optional)
        "chain": "Playnance",          # Domain context
        "event": "chain_fetch_failed", # What happened
        ...
    }

Architectural Layers:
    - infrastructure: Cross-cutting (cache store, config, clock)
    - ingestion: Data acquisition (registry sheet, explorer and L2BEAT fetchers)
    - processing: Aggregation and normalization
    - service: Dataset orchestration (cache check, build, store)
"""

import logging
import sys
from typing import Any, Literal, TextIO

import structlog
from structlog.types import EventDict

Layer = Literal["infrastructure", "ingestion", "processing", "service"]


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add the application identifier to every log entry."""
    event_dict["app"] = "raas-analytics"
    return event_dict


def add_severity_level(
    logger: Any, method_name: str, event_dict: EventDict
) -> EventDict:
    """
    Add severity level for cloud logging compatibility.
    Maps Python log levels to standard severity levels.
    """
    level = event_dict.get("level")
    if level:
        severity_map = {
            "debug": "DEBUG",
            "info": "INFO",
            "warning": "WARNING",
            "error": "ERROR",
            "critical": "CRITICAL",
        }
        event_dict["severity"] = severity_map.get(level, "INFO")
    return event_dict


def setup_logging(
    level: str = "INFO",
    json_logs: bool = True,
    include_timestamp: bool = True,
    stream: TextIO | None = None,
) -> None:
    """
    Configure structured logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: If True, output JSON. If False, use human-readable format (dev mode).
        include_timestamp: Whether to include ISO timestamps in logs
        stream: Log destination, stderr by default so stdout stays free for
            command output

    Calling it again replaces the root handlers instead of stacking new ones.

    Usage:
        >>> from raas_analytics.infrastructure.observability import setup_logging
        >>> setup_logging(level="DEBUG", json_logs=False)
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=stream or sys.stderr,
        level=log_level,
        force=True,
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        add_app_context,
        structlog.stdlib.add_log_level,
        add_severity_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(
    name: str | None = None,
    layer: Layer | None = None,
    component: str | None = None,
    **initial_context: Any,
) -> structlog.stdlib.BoundLogger:
    """
    Get a configured logger instance with architectural context.

    Args:
        name: Logger name (typically __name__ of the calling module)
        layer: Architectural layer (infrastructure, ingestion, processing, service)
        component: Specific component/service within the layer
        **initial_context: Additional context key-value pairs to bind to logger

    Usage:
        >>> log = get_logger(__name__, layer="ingestion", component="blockscout")
        >>> log.info("chart_fetched", chain="Playnance", points=120)
    """
    logger = structlog.get_logger(name)

    context = {}

    if layer:
        context["layer"] = layer

    if component:
        context["component"] = component

    if name:
        context["module"] = name

    context.update(initial_context)

    if context:
        logger = logger.bind(**context)

    return logger


# ============================================================================
# Layer-Specific Logger Factories
# ============================================================================


def get_infrastructure_logger(
    component: str,
    **context: Any,
) -> structlog.stdlib.BoundLogger:
    """
    Get a logger for the infrastructure layer (cache store, config).

    Usage:
        >>> log = get_infrastructure_logger("json-cache", cache_dir="/tmp/cache")
        >>> log.info("cache_saved", dataset="tpsData")
    """
    return get_logger(
        "infrastructure",
        layer="infrastructure",
        component=component,
        **context,
    )


def get_ingestion_logger(
    component: str,
    chain: str | None = None,
    **context: Any,
) -> structlog.stdlib.BoundLogger:
    """
    Get a logger for the ingestion layer (data acquisition).

    Args:
        component: Component name (e.g., "blockscout", "l2beat", "registry")
        chain: Chain display name - optional
        **context: Additional context (metric, window, etc.)
    """
    ctx = {}
    if chain:
        ctx["chain"] = chain
    ctx.update(context)

    return get_logger(
        "ingestion",
        layer="ingestion",
        component=component,
        **ctx,
    )


def get_processing_logger(
    component: str,
    **context: Any,
) -> structlog.stdlib.BoundLogger:
    """
    Get a logger for the processing layer (aggregation, normalization).

    Usage:
        >>> log = get_processing_logger("series")
        >>> log.warning("malformed_point", chain="Playnance", value="n/a")
    """
    return get_logger(
        "processing",
        layer="processing",
        component=component,
        **context,
    )


def get_service_logger(
    component: str = "dataset-service",
    **context: Any,
) -> structlog.stdlib.BoundLogger:
    """Get a logger for dataset orchestration."""
    return get_logger(
        "service",
        layer="service",
        component=component,
        **context,
    )
