"""
Service Layer Package

Services coordinate the progression engine with the user and activity
repositories:
- ActivityService: activity logging, deletion with reversal, degradation
- ActivityMigrationService: stat gain migration for legacy entries
"""

from questlog.services.container import ServiceContainer, get_container, init_container
from questlog.services.activity_service import (
    ActivityService,
    ActivityDeletionResult,
    ActivityDeletionPreview,
    ActivityLogResult,
    ActivityGainPreview,
    DegradationResult,
)
from questlog.services.migration_service import (
    ActivityMigrationService,
    MigrationResult,
    MigrationStatus,
)

__all__ = [
    # Service Layer Container
    "ServiceContainer",
    "get_container",
    "init_container",
    # Activity Services
    "ActivityService",
    "ActivityDeletionResult",
    "ActivityDeletionPreview",
    "ActivityLogResult",
    "ActivityGainPreview",
    "DegradationResult",
    "ActivityMigrationService",
    "MigrationResult",
    "MigrationStatus",
]
