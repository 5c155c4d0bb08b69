"""Maintenance entry point: stat gain migration and pending degradation"""
import logging
import asyncio
from typing import Optional

from questlog.config import validate_config, LOG_LEVEL, ENABLE_METRICS
from questlog.db.repositories import (
    ActivityRepository,
    InMemoryActivityRepository,
    InMemoryUserRepository,
    UserRepository,
)
from questlog.gamification.degradation import get_degradation_warnings
from questlog.models.user import User
from questlog.observability.metrics import init_metrics
from questlog.observability.sentry_config import init_sentry, shutdown_sentry
from questlog.services.container import init_container

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL.upper())
)

logger = logging.getLogger(__name__)


async def run_maintenance(
    user_repository: UserRepository,
    activity_repository: ActivityRepository,
) -> bool:
    """
    Migrate legacy activities, then apply pending degradation.

    Returns:
        True when both steps succeeded
    """
    container = init_container(user_repository, activity_repository)

    migration = await container.migration_service.migrate_all_activities()
    if migration.success:
        logger.info(migration.message)
    else:
        logger.warning(f"Activity migration incomplete: {migration.error_message}")
        for error in migration.errors:
            logger.warning(error)

    user = user_repository.get_current_user()
    if user is not None:
        for warning in get_degradation_warnings(user):
            logger.info(f"[{warning.severity.value}] {warning.message}")

    degradation = await container.activity_service.apply_pending_degradation()
    if not degradation.success:
        logger.error(f"Degradation failed: {degradation.error_message}")
    elif degradation.degraded:
        logger.info(f"Degradation applied: {degradation.applied}")
    else:
        logger.info("No degradation pending")

    return migration.success and degradation.success


async def main(
    user_repository: Optional[UserRepository] = None,
    activity_repository: Optional[ActivityRepository] = None,
) -> None:
    """Main application entry point"""
    try:
        logger.info("Validating configuration...")
        validate_config()

        init_sentry()
        if ENABLE_METRICS:
            init_metrics()

        if user_repository is None:
            user_repository = InMemoryUserRepository(User.create("local-user"))
        if activity_repository is None:
            activity_repository = InMemoryActivityRepository()

        ok = await run_maintenance(user_repository, activity_repository)
        logger.info("Maintenance complete" if ok else "Maintenance finished with errors")

    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
    finally:
        shutdown_sentry()
        logger.info("Shutdown complete")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
