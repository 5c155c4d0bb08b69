"""
ActivityMigrationService - Legacy Stat Gain Migration

Activities logged before stat gains were stored on the entry have an
empty gain map. Migration fills it in from the rate table once, so later
deletions reverse stored values instead of recomputing them.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from questlog.db.repositories import ActivityRepository
from questlog.exceptions import QuestlogError, wrap_repository_exception

logger = logging.getLogger(__name__)


@dataclass
class MigrationResult:
    success: bool
    total_activities: int = 0
    migrated_activities: int = 0
    errors: List[str] = field(default_factory=list)
    message: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def completion_percentage(self) -> float:
        if self.total_activities == 0:
            return 100.0
        return self.migrated_activities / self.total_activities * 100.0


@dataclass(frozen=True)
class MigrationStatus:
    total_activities: int
    migrated_activities: int
    activities_needing_migration: int

    @property
    def migration_complete(self) -> bool:
        return self.activities_needing_migration == 0

    @property
    def completion_percentage(self) -> float:
        if self.total_activities == 0:
            return 100.0
        return self.migrated_activities / self.total_activities * 100.0


class ActivityMigrationService:
    """Fills in stat gains on legacy activity entries"""

    def __init__(self, activity_repository: ActivityRepository):
        self.activity_repository = activity_repository
        logger.debug("ActivityMigrationService initialized")

    def _load_all(self, operation: str):
        try:
            return self.activity_repository.find_all()
        except Exception as e:
            raise wrap_repository_exception(e, operation=operation, repository="activities")

    async def migrate_all_activities(self) -> MigrationResult:
        """
        Migrate every activity without stored stat gains.

        A failure on one entry does not stop the others; the result lists
        each failure and reports success=False.
        """
        try:
            activities = self._load_all("migrate_all_activities")
        except QuestlogError as e:
            return MigrationResult(success=False, error_message=f"Migration failed: {e.message}")

        pending = [activity for activity in activities if activity.needs_stat_gain_migration]
        if not pending:
            return MigrationResult(
                success=True,
                total_activities=len(activities),
                message="No activities need migration",
            )

        migrated = 0
        errors = []
        for activity in pending:
            try:
                await self.activity_repository.save(activity.with_migrated_stat_gains())
                migrated += 1
            except Exception as e:
                logger.error(f"Failed to migrate activity {activity.id}: {e}", exc_info=True)
                errors.append(f"Failed to migrate activity {activity.id}: {e}")

        if errors:
            return MigrationResult(
                success=False,
                total_activities=len(activities),
                migrated_activities=migrated,
                errors=errors,
                error_message=f"Migration completed with {len(errors)} errors",
            )

        logger.info(f"Migrated stat gains for {migrated} of {len(activities)} activities")
        return MigrationResult(
            success=True,
            total_activities=len(activities),
            migrated_activities=migrated,
            message=f"Successfully migrated {migrated} activities",
        )

    async def migrate_activity(self, activity_id: str) -> bool:
        """
        Migrate one activity.

        Returns:
            False when the activity doesn't exist, True once it has stored gains

        Raises:
            PersistenceError: the repository read or save failed
        """
        try:
            activity = self.activity_repository.find_by_key(activity_id)
        except Exception as e:
            raise wrap_repository_exception(e, operation="migrate_activity", repository="activities")

        if activity is None:
            return False

        if not activity.needs_stat_gain_migration:
            return True

        try:
            await self.activity_repository.save(activity.with_migrated_stat_gains())
        except Exception as e:
            raise wrap_repository_exception(
                e,
                operation="migrate_activity",
                repository="activities",
                context={"activity_id": activity_id},
            )
        return True

    def count_activities_needing_migration(self) -> int:
        activities = self._load_all("count_activities_needing_migration")
        return sum(1 for activity in activities if activity.needs_stat_gain_migration)

    def has_activities_needing_migration(self) -> bool:
        return self.count_activities_needing_migration() > 0

    def get_migration_status(self) -> MigrationStatus:
        activities = self._load_all("get_migration_status")
        pending = sum(1 for activity in activities if activity.needs_stat_gain_migration)
        return MigrationStatus(
            total_activities=len(activities),
            migrated_activities=len(activities) - pending,
            activities_needing_migration=pending,
        )
