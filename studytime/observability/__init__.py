"""
Observability module: structured logging, request/user context, metrics.

Usage:
    from studytime.observability import get_logger, RequestContext

    logger = get_logger(__name__)

    with RequestContext(user_id="u-42"):
        logger.info("Reserving slots", extra={"num_events": 10})

Metrics:
    from studytime.observability import reservations, timed, sync_duration

    reservations.inc()

    @timed(sync_duration)
    def sync_user(...):
        ...
"""

from .context import RequestContext, get_request_id, get_user_id, set_request_id
from .logging import CorrelationIdMiddleware, HumanFormatter, JSONFormatter, configure_logging, get_logger
from .metrics import (
    REGISTRY,
    Counter,
    Histogram,
    MetricsRegistry,
    calendar_fetch_duration,
    calendar_syncs,
    reminders_scheduled,
    reservations,
    scheduling_shortfalls,
    sync_duration,
    sync_errors,
    timed,
)

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "JSONFormatter",
    "HumanFormatter",
    "CorrelationIdMiddleware",
    # Context
    "RequestContext",
    "get_request_id",
    "get_user_id",
    "set_request_id",
    # Metrics
    "REGISTRY",
    "Counter",
    "Histogram",
    "MetricsRegistry",
    "timed",
    "calendar_fetch_duration",
    "calendar_syncs",
    "sync_errors",
    "sync_duration",
    "reservations",
    "reminders_scheduled",
    "scheduling_shortfalls",
]
