"""User context and breadcrumb utilities for Sentry."""

import logging
from typing import Any, Dict, Optional

from sentry_sdk import set_user, add_breadcrumb as sentry_add_breadcrumb

logger = logging.getLogger(__name__)


def set_user_context(user_id: str, username: Optional[str] = None, **kwargs) -> None:
    """
    Attach the acting user to all subsequent Sentry events.

    Args:
        user_id: User identifier
        username: Display name (optional)
        **kwargs: Additional user attributes, e.g. level
    """
    user_data = {"id": user_id}

    if username:
        user_data["username"] = username

    user_data.update(kwargs)

    set_user(user_data)
    logger.debug(f"Set Sentry user context: user_id={user_id}")


def add_breadcrumb(
    category: str,
    message: str,
    level: str = "info",
    data: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Add a breadcrumb to Sentry's event trail.

    Args:
        category: Breadcrumb category (e.g., "activity", "persistence")
        message: Human-readable description of the event
        level: Severity level (debug, info, warning, error)
        data: Additional structured data about the event

    Example:
        >>> add_breadcrumb(
        ...     "activity",
        ...     "Reversing activity effects",
        ...     data={"activity_id": "activity_abc123"}
        ... )
    """
    sentry_add_breadcrumb(
        category=category,
        message=message,
        level=level,
        data=data or {},
    )
