"""
Service Container - Dependency Injection Container

Simple DI container for managing service instances and their dependencies.
Uses lazy loading to only instantiate services when first accessed.
"""

from dataclasses import dataclass, field
from typing import Optional
import logging

from questlog.db.repositories import ActivityRepository, UserRepository

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for services.

    Repositories are injected; services are lazy-loaded on first access.
    """

    user_repository: UserRepository
    activity_repository: ActivityRepository

    _activity_service: Optional[object] = field(default=None, init=False, repr=False)
    _migration_service: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def activity_service(self):
        """Get ActivityService instance (lazy-loaded)"""
        if self._activity_service is None:
            from questlog.services.activity_service import ActivityService
            self._activity_service = ActivityService(self.user_repository, self.activity_repository)
            logger.debug("ActivityService instantiated")
        return self._activity_service

    @property
    def migration_service(self):
        """Get ActivityMigrationService instance (lazy-loaded)"""
        if self._migration_service is None:
            from questlog.services.migration_service import ActivityMigrationService
            self._migration_service = ActivityMigrationService(self.activity_repository)
            logger.debug("ActivityMigrationService instantiated")
        return self._migration_service


# Global container instance (initialized in main.py)
_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """
    Get the global service container.

    Raises:
        RuntimeError: If container not initialized (call init_container first)
    """
    if _container is None:
        raise RuntimeError(
            "Service container not initialized. "
            "Call init_container() before using services."
        )
    return _container


def init_container(
    user_repository: UserRepository,
    activity_repository: ActivityRepository,
) -> ServiceContainer:
    """
    Initialize the global service container.

    Should be called once at startup, after the repositories exist.
    """
    global _container

    _container = ServiceContainer(
        user_repository=user_repository,
        activity_repository=activity_repository,
    )

    logger.info("Service container initialized")
    return _container
