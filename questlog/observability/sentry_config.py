"""Sentry configuration and initialization for error tracking."""

import logging
import os
from typing import Optional

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

from questlog.exceptions import QuestlogError

logger = logging.getLogger(__name__)


def init_sentry() -> None:
    """
    Initialize Sentry SDK for error tracking.

    Configures Sentry with:
    - Logging integration for breadcrumbs
    - Environment-specific configuration
    - Release tracking

    Environment variables:
        SENTRY_DSN: Sentry project DSN (required)
        SENTRY_ENVIRONMENT: Environment name (development, staging, production)
        SENTRY_TRACES_SAMPLE_RATE: Percentage of transactions to sample (0.0-1.0)
        ENABLE_SENTRY: Feature flag to enable/disable Sentry
        GIT_COMMIT_SHA: Git commit SHA for release tracking (optional)
    """
    from questlog.config import (
        SENTRY_DSN,
        SENTRY_ENVIRONMENT,
        SENTRY_TRACES_SAMPLE_RATE,
        ENABLE_SENTRY,
    )

    if not ENABLE_SENTRY:
        logger.info("Sentry is disabled (ENABLE_SENTRY=false)")
        return

    if not SENTRY_DSN:
        logger.warning("Sentry DSN not configured - error tracking disabled")
        return

    release = os.getenv("GIT_COMMIT_SHA")
    if release:
        release = f"questlog@{release[:7]}"
    else:
        release = "questlog@dev"

    logging_integration = LoggingIntegration(
        level=logging.INFO,  # Capture info and above as breadcrumbs
        event_level=logging.ERROR,  # Send errors and above as events
    )

    sentry_sdk.init(
        dsn=SENTRY_DSN,
        environment=SENTRY_ENVIRONMENT,
        release=release,
        integrations=[logging_integration],
        traces_sample_rate=SENTRY_TRACES_SAMPLE_RATE,
        attach_stacktrace=True,
        send_default_pii=False,
        before_send=_before_send,
    )

    logger.info(
        f"Sentry initialized: environment={SENTRY_ENVIRONMENT}, "
        f"release={release}, traces_sample_rate={SENTRY_TRACES_SAMPLE_RATE}"
    )


def _before_send(event, hint):
    """
    Filter events before sending to Sentry.

    QuestlogErrors log themselves on creation, and the logging integration
    turns those records into events whose exc_info is the underlying cause.
    Such log events are always dropped:
    - recoverable errors are reported to the caller as results
    - unrecoverable ones are sent once, by capture_fatal_error

    Exceptions captured directly are dropped when they are recoverable
    QuestlogErrors.

    Returns:
        The event, or None to drop it
    """
    log_record = hint.get("log_record")
    if log_record is not None and hasattr(log_record, "recoverable"):
        return None

    if "exc_info" in hint:
        exc_type, exc_value, tb = hint["exc_info"]
        if isinstance(exc_value, QuestlogError) and exc_value.recoverable:
            return None

    return event


def capture_fatal_error(error: QuestlogError, context: Optional[dict] = None) -> Optional[str]:
    """
    Report an unrecoverable error with its context.

    Returns:
        Event ID from Sentry, or None if not sent
    """
    with sentry_sdk.new_scope() as scope:
        scope.set_tag("error_kind", error.kind)
        scope.set_tag("request_id", error.request_id)
        if error.operation:
            scope.set_tag("operation", error.operation)
        scope.set_context("questlog_error", error.to_dict())
        if context:
            scope.set_context("details", context)

        return sentry_sdk.capture_exception(error)


def shutdown_sentry() -> None:
    """
    Flush pending events and shut down the Sentry client.

    Should be called during application shutdown.
    """
    client = sentry_sdk.get_client()
    if client.is_active():
        logger.info("Flushing Sentry events before shutdown...")
        client.close(timeout=2.0)
        logger.info("Sentry shutdown complete")
