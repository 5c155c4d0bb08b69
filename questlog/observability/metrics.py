"""
Prometheus metrics definitions for questlog.

Metrics are organized by category:
- Activity metrics: logging and deletion outcomes
- Progression metrics: level changes, degradation
- Data integrity metrics: rollbacks, stat sanitization

Recording helpers are no-ops when ENABLE_METRICS is false.
"""

import logging
from prometheus_client import Counter, Info

from questlog import config

logger = logging.getLogger(__name__)

# =============================================================================
# Activity Metrics
# =============================================================================

activities_logged_total = Counter(
    "questlog_activities_logged_total",
    "Total activities logged",
    ["activity_type", "category"],
)

activity_deletions_total = Counter(
    "questlog_activity_deletions_total",
    "Total activity deletion attempts",
    ["status"],  # status: success or the error kind
)

# =============================================================================
# Progression Metrics
# =============================================================================

level_changes_total = Counter(
    "questlog_level_changes_total",
    "Total levels gained or lost",
    ["direction"],  # direction: up/down
)

degradation_applied_total = Counter(
    "questlog_degradation_applied_total",
    "Total degradation applications",
    ["category"],  # category: workout/study
)

# =============================================================================
# Data Integrity Metrics
# =============================================================================

rollbacks_total = Counter(
    "questlog_rollbacks_total",
    "Total user snapshot rollbacks after a partial write",
    ["outcome"],  # outcome: restored/failed
)

stat_sanitizations_total = Counter(
    "questlog_stat_sanitizations_total",
    "Total stat values replaced during validation",
    ["reason"],  # reason: nan/infinite/below_minimum/above_maximum
)

# =============================================================================
# Application Info
# =============================================================================

app_info = Info(
    "questlog_app",
    "Application information",
)


def init_metrics():
    """
    Initialize metrics with application information.

    Called once at startup.
    """
    from questlog import __version__

    app_info.info(
        {
            "version": __version__,
            "environment": config.SENTRY_ENVIRONMENT,
        }
    )

    logger.info("Prometheus metrics initialized")


# =============================================================================
# Recording Helpers
# =============================================================================


def record_activity_logged(activity_type: str, category: str) -> None:
    if config.ENABLE_METRICS:
        activities_logged_total.labels(activity_type=activity_type, category=category).inc()


def record_deletion(status: str) -> None:
    if config.ENABLE_METRICS:
        activity_deletions_total.labels(status=status).inc()


def record_level_change(levels: int, direction: str) -> None:
    if config.ENABLE_METRICS and levels > 0:
        level_changes_total.labels(direction=direction).inc(levels)


def record_degradation(category: str) -> None:
    if config.ENABLE_METRICS:
        degradation_applied_total.labels(category=category).inc()


def record_rollback(outcome: str) -> None:
    if config.ENABLE_METRICS:
        rollbacks_total.labels(outcome=outcome).inc()


def record_sanitization(reason: str) -> None:
    if config.ENABLE_METRICS:
        stat_sanitizations_total.labels(reason=reason).inc()
