"""
ActivityService - Activity Business Logic

Logs activities and deletes them with exact reversal of their effects.

Both flows write the user first and the activity second. When the second
write fails the original user snapshot is saved back, so a failure never
leaves stats or EXP changed without the matching activity change.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional

from questlog import config
from questlog.db.repositories import ActivityRepository, UserRepository
from questlog.exceptions import (
    InconsistentStateError,
    PersistenceError,
    QuestlogError,
    RecordNotFoundError,
    RollbackFailedError,
    ValidationError,
    wrap_repository_exception,
)
from questlog.gamification.degradation import (
    CATEGORY_STATS,
    DEGRADING_CATEGORIES,
    apply_degradation,
    calculate_all_degradation,
)
from questlog.gamification.exp_system import (
    LevelChange,
    add_exp,
    apply_exp_gain,
    calculate_exp_gain,
    reverse_exp,
    validate_exp_reversal,
)
from questlog.gamification.stat_system import (
    apply_stat_gains,
    apply_stat_reversals,
    calculate_stat_gains,
    calculate_stat_reversals,
    get_primary_stat,
    is_fixed_amount_activity,
    validate_stat_reversal,
)
from questlog.models.activity import ActivityLogEntry
from questlog.models.enums import ActivityType, StatType
from questlog.models.user import User
from questlog.observability import metrics
from questlog.observability.context import add_breadcrumb, set_user_context
from questlog.observability.sentry_config import capture_fatal_error
from questlog.utils.datetime_helpers import is_in_future, now_utc, to_utc

logger = logging.getLogger(__name__)


# ==========================================
# Result Types
# ==========================================

@dataclass
class ServiceResult:
    """Outcome of a service operation; failures carry the error instead of raising"""
    success: bool
    error: Optional[QuestlogError] = None

    @property
    def error_kind(self) -> Optional[str]:
        return self.error.kind if self.error else None

    @property
    def error_message(self) -> Optional[str]:
        return self.error.message if self.error else None

    @property
    def user_message(self) -> Optional[str]:
        return self.error.user_message if self.error else None

    @property
    def is_recoverable(self) -> bool:
        return self.error.recoverable if self.error else True


@dataclass
class ActivityDeletionResult(ServiceResult):
    deleted_activity: Optional[ActivityLogEntry] = None
    stat_reversals: Dict[StatType, float] = field(default_factory=dict)
    exp_reversed: float = 0.0
    leveled_down: bool = False
    new_level: Optional[int] = None
    levels_lost: int = 0
    updated_user: Optional[User] = None


@dataclass
class ActivityDeletionPreview:
    """What deleting an activity would do, without writing anything"""
    is_valid: bool
    error: Optional[QuestlogError] = None
    activity: Optional[ActivityLogEntry] = None
    stat_reversals: Dict[StatType, float] = field(default_factory=dict)
    new_stats: Dict[StatType, float] = field(default_factory=dict)
    exp_to_reverse: float = 0.0
    will_level_down: bool = False
    new_level: Optional[int] = None
    new_exp: Optional[float] = None
    levels_lost: int = 0

    @property
    def error_message(self) -> Optional[str]:
        return self.error.message if self.error else None


@dataclass
class ActivityLogResult(ServiceResult):
    activity: Optional[ActivityLogEntry] = None
    stat_gains: Dict[StatType, float] = field(default_factory=dict)
    exp_gained: float = 0.0
    leveled_up: bool = False
    new_level: Optional[int] = None
    levels_gained: int = 0
    updated_user: Optional[User] = None


@dataclass
class ActivityGainPreview:
    is_valid: bool
    activity_type: ActivityType
    duration_minutes: int
    error: Optional[QuestlogError] = None
    stat_gains: Dict[StatType, float] = field(default_factory=dict)
    exp_gain: float = 0.0
    primary_stat: Optional[StatType] = None
    will_level_up: bool = False
    new_level: Optional[int] = None

    @property
    def affected_stats(self) -> List[StatType]:
        return list(self.stat_gains.keys())


@dataclass
class DegradationResult(ServiceResult):
    applied: Dict[StatType, float] = field(default_factory=dict)
    updated_user: Optional[User] = None

    @property
    def degraded(self) -> bool:
        return bool(self.applied)


@dataclass(frozen=True)
class _ReversalPlan:
    activity: ActivityLogEntry
    original_user: User
    updated_user: User
    stat_reversals: Dict[StatType, float]
    level_change: LevelChange


class ActivityService:
    """
    Service for logging activities and reversing them.

    Responsibilities:
    - Activity logging with stat and EXP gains
    - Activity deletion with exact stat and EXP reversal
    - Rollback of the user snapshot on partial write failure
    - Pending degradation
    - Gain previews and history for display
    """

    def __init__(self, user_repository: UserRepository, activity_repository: ActivityRepository):
        self.user_repository = user_repository
        self.activity_repository = activity_repository
        logger.debug("ActivityService initialized")

    # ==========================================
    # Deletion
    # ==========================================

    async def delete_activity_with_stat_reversal(self, activity_id: str) -> ActivityDeletionResult:
        """
        Delete an activity and undo its stat and EXP effects.

        The user is saved before the activity is deleted. If the delete
        fails, the original user snapshot is restored.

        Args:
            activity_id: Key of the activity to delete

        Returns:
            ActivityDeletionResult; never raises for domain or storage failures
        """
        try:
            plan = self._plan_deletion(activity_id)
        except QuestlogError as e:
            metrics.record_deletion(e.kind)
            return ActivityDeletionResult(success=False, error=e)

        user = plan.original_user
        set_user_context(user.id, username=user.name or None, level=user.level)
        add_breadcrumb(
            "activity",
            "Reversing activity effects",
            data={
                "activity_id": activity_id,
                "exp_reversed": plan.activity.exp_gained,
                "levels_lost": plan.level_change.levels_changed,
            },
        )

        error = await self._persist_user_then(
            original=user,
            updated=plan.updated_user,
            write=lambda: self.activity_repository.delete_by_key(activity_id),
            operation="delete_activity",
            user_failure="Failed to save user data during deletion",
            write_failure="Failed to delete activity after user update",
        )
        if error is not None:
            metrics.record_deletion(error.kind)
            return ActivityDeletionResult(success=False, error=error)

        metrics.record_deletion("success")
        metrics.record_level_change(plan.level_change.levels_changed, "down")

        logger.info(
            f"Deleted activity {activity_id} for user {user.id}: "
            f"-{plan.activity.exp_gained} EXP, level {user.level} -> {plan.level_change.level}"
        )

        return ActivityDeletionResult(
            success=True,
            deleted_activity=plan.activity,
            stat_reversals=plan.stat_reversals,
            exp_reversed=plan.activity.exp_gained,
            leveled_down=plan.level_change.levels_changed > 0,
            new_level=plan.level_change.level,
            levels_lost=plan.level_change.levels_changed,
            updated_user=plan.updated_user,
        )

    def preview_activity_deletion(self, activity_id: str) -> ActivityDeletionPreview:
        """Validate and compute a deletion without persisting anything"""
        try:
            plan = self._plan_deletion(activity_id)
        except QuestlogError as e:
            return ActivityDeletionPreview(is_valid=False, error=e)

        return ActivityDeletionPreview(
            is_valid=True,
            activity=plan.activity,
            stat_reversals=plan.stat_reversals,
            new_stats=dict(plan.updated_user.stats),
            exp_to_reverse=plan.activity.exp_gained,
            will_level_down=plan.level_change.levels_changed > 0,
            new_level=plan.level_change.level,
            new_exp=plan.level_change.current_exp,
            levels_lost=plan.level_change.levels_changed,
        )

    def _plan_deletion(self, activity_id: str) -> _ReversalPlan:
        if not activity_id or not activity_id.strip():
            raise ValidationError("Invalid activity ID", field="activity_id", value=activity_id)

        activity = self._read(
            lambda: self.activity_repository.find_by_key(activity_id),
            operation="find_activity",
            repository="activities",
        )
        if activity is None:
            raise RecordNotFoundError(
                f"Activity not found: {activity_id}", record_type="Activity", record_id=activity_id
            )

        user = self._read(
            self.user_repository.get_current_user, operation="get_current_user", repository="users"
        )
        if user is None:
            raise RecordNotFoundError("No user found", record_type="User")

        self._check_activity_integrity(activity)
        self._check_user_integrity(user, activity)

        reversals = calculate_stat_reversals(
            activity.activity_type, activity.duration_minutes, activity.stat_gains
        )
        if not validate_stat_reversal(user.stats, reversals):
            logger.warning(
                f"Stat reversal for activity {activity_id} exceeds current stats, "
                f"results will clamp at the floor"
            )

        new_stats = apply_stat_reversals(user.stats, reversals)
        level_change = reverse_exp(user.level, user.current_exp, activity.exp_gained)

        updated_user = user.with_stats(new_stats).with_progress(
            level_change.level, level_change.current_exp
        )

        return _ReversalPlan(
            activity=activity,
            original_user=user,
            updated_user=updated_user,
            stat_reversals=reversals,
            level_change=level_change,
        )

    def _check_activity_integrity(self, activity: ActivityLogEntry) -> None:
        problem = None

        if activity.duration_minutes < 0:
            problem = f"negative duration {activity.duration_minutes}"
        elif not math.isfinite(activity.exp_gained) or activity.exp_gained < 0:
            problem = f"invalid EXP gained {activity.exp_gained}"
        else:
            for stat_type, gain in activity.stat_gains.items():
                if not math.isfinite(gain) or gain < 0:
                    problem = f"invalid {stat_type.value} gain {gain}"
                    break

        if problem:
            raise InconsistentStateError(
                f"Activity {activity.id} is invalid and cannot be safely deleted: {problem}",
                operation="delete_activity",
                context={"activity_id": activity.id},
            )

        if is_in_future(activity.timestamp):
            raise InconsistentStateError(
                f"Activity {activity.id} has a data inconsistency: "
                f"timestamp {activity.timestamp.isoformat()} is in the future",
                operation="delete_activity",
                context={"activity_id": activity.id},
            )

    def _check_user_integrity(self, user: User, activity: ActivityLogEntry) -> None:
        if not validate_exp_reversal(user, activity.exp_gained):
            raise InconsistentStateError(
                f"User {user.id} has a data inconsistency: level {user.level}, "
                f"EXP {user.current_exp}",
                user_id=user.id,
                operation="delete_activity",
            )

        corrupted = [
            stat_type.value for stat_type, value in user.stats.items() if not math.isfinite(value)
        ]
        if corrupted:
            raise InconsistentStateError(
                f"User {user.id} has a data inconsistency: non-finite stats {corrupted}",
                user_id=user.id,
                operation="delete_activity",
            )

    # ==========================================
    # Logging
    # ==========================================

    async def log_activity(
        self,
        activity_type: ActivityType,
        duration_minutes: int,
        notes: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> ActivityLogResult:
        """
        Log an activity and apply its stat and EXP gains.

        The gains applied are stored on the entry so deletion can reverse
        them exactly.

        Args:
            activity_type: Current (non-legacy) activity type
            duration_minutes: 1 to MAX_ACTIVITY_DURATION_MINUTES; 0 is allowed
                for fixed-amount activities
            notes: Optional free text
            timestamp: When the activity happened (defaults to now)

        Returns:
            ActivityLogResult; never raises for domain or storage failures
        """
        try:
            self._validate_new_activity(activity_type, duration_minutes, timestamp)

            user = self._read(
                self.user_repository.get_current_user, operation="get_current_user", repository="users"
            )
            if user is None:
                raise RecordNotFoundError("No user found", record_type="User")

            when = to_utc(timestamp) if timestamp else now_utc()
            stat_gains = calculate_stat_gains(activity_type, duration_minutes)
            exp_gain = calculate_exp_gain(activity_type, duration_minutes)

            entry = ActivityLogEntry.create(
                activity_type=activity_type,
                duration_minutes=duration_minutes,
                stat_gains=stat_gains,
                exp_gained=exp_gain,
                notes=notes,
                timestamp=when,
            )

            with_gains = user.with_stats(apply_stat_gains(user.stats, stat_gains))
            updated_user, level_change = apply_exp_gain(with_gains, exp_gain)
            last_date = user.get_last_activity_date(activity_type)
            if last_date is None or when > last_date:
                updated_user = updated_user.with_last_activity_date(activity_type, when)
            updated_user = updated_user.touched()
        except QuestlogError as e:
            return ActivityLogResult(success=False, error=e)

        error = await self._persist_user_then(
            original=user,
            updated=updated_user,
            write=lambda: self.activity_repository.save(entry),
            operation="log_activity",
            user_failure="Failed to save user data while logging activity",
            write_failure="Failed to save activity after user update",
        )
        if error is not None:
            return ActivityLogResult(success=False, error=error)

        metrics.record_activity_logged(activity_type.value, activity_type.category.value)
        metrics.record_level_change(level_change.levels_changed, "up")

        logger.info(
            f"Logged {activity_type.value} ({duration_minutes} min) for user {user.id}: "
            f"+{exp_gain} EXP, level {user.level} -> {level_change.level}"
        )

        return ActivityLogResult(
            success=True,
            activity=entry,
            stat_gains=stat_gains,
            exp_gained=exp_gain,
            leveled_up=level_change.levels_changed > 0,
            new_level=level_change.level,
            levels_gained=level_change.levels_changed,
            updated_user=updated_user,
        )

    def _validate_new_activity(
        self,
        activity_type: ActivityType,
        duration_minutes: int,
        timestamp: Optional[datetime],
    ) -> None:
        if activity_type.is_legacy:
            raise ValidationError(
                f"{activity_type.display_name} is no longer available for new entries",
                field="activity_type",
                value=activity_type.value,
            )

        min_duration = 0 if is_fixed_amount_activity(activity_type) else 1
        if not min_duration <= duration_minutes <= config.MAX_ACTIVITY_DURATION_MINUTES:
            raise ValidationError(
                f"Duration must be between {min_duration} and "
                f"{config.MAX_ACTIVITY_DURATION_MINUTES} minutes",
                field="duration_minutes",
                value=duration_minutes,
            )

        if timestamp is not None and is_in_future(timestamp):
            raise ValidationError(
                "Activity timestamp cannot be in the future",
                field="timestamp",
                value=timestamp.isoformat(),
            )

    def calculate_expected_gains(
        self, activity_type: ActivityType, duration_minutes: int
    ) -> ActivityGainPreview:
        """Preview gains and level-up for the current user without logging"""
        try:
            stat_gains = calculate_stat_gains(activity_type, duration_minutes)
            exp_gain = calculate_exp_gain(activity_type, duration_minutes)
            user = self._read(
                self.user_repository.get_current_user, operation="get_current_user", repository="users"
            )
            level_change = add_exp(user.level, user.current_exp, exp_gain) if user else None
        except QuestlogError as e:
            return ActivityGainPreview(
                is_valid=False,
                activity_type=activity_type,
                duration_minutes=duration_minutes,
                error=e,
            )

        return ActivityGainPreview(
            is_valid=True,
            activity_type=activity_type,
            duration_minutes=duration_minutes,
            stat_gains=stat_gains,
            exp_gain=exp_gain,
            primary_stat=get_primary_stat(activity_type),
            will_level_up=bool(level_change and level_change.levels_changed),
            new_level=level_change.level if level_change else None,
        )

    def get_activity_history(
        self,
        activity_type: Optional[ActivityType] = None,
        limit: Optional[int] = None,
    ) -> List[ActivityLogEntry]:
        """
        Logged activities, newest first.

        Returns an empty list when the repository cannot be read.
        """
        try:
            entries = self.activity_repository.find_all()
        except Exception as e:
            logger.error(f"Error loading activity history: {e}", exc_info=True)
            return []

        if activity_type is not None:
            entries = [entry for entry in entries if entry.activity_type == activity_type]

        entries = sorted(entries, key=lambda entry: entry.timestamp, reverse=True)

        if limit is not None:
            entries = entries[:max(limit, 0)]

        return entries

    # ==========================================
    # Degradation
    # ==========================================

    async def apply_pending_degradation(
        self, relaxed_weekend_mode: Optional[bool] = None
    ) -> DegradationResult:
        """Apply any pending degradation to the current user and save it"""
        try:
            user = self._read(
                self.user_repository.get_current_user, operation="get_current_user", repository="users"
            )
            if user is None:
                raise RecordNotFoundError("No user found", record_type="User")
        except QuestlogError as e:
            return DegradationResult(success=False, error=e)

        now = now_utc()
        degradation = calculate_all_degradation(
            user, now=now, relaxed_weekend_mode=relaxed_weekend_mode
        )
        if not degradation:
            return DegradationResult(success=True, updated_user=user)

        updated_user = apply_degradation(user, now=now, relaxed_weekend_mode=relaxed_weekend_mode)

        try:
            await self.user_repository.update_user(updated_user)
        except Exception as e:
            error = PersistenceError(
                "Failed to save user data after degradation",
                repository="users",
                user_id=user.id,
                operation="apply_degradation",
                cause=e,
            )
            return DegradationResult(success=False, error=error)

        for category in DEGRADING_CATEGORIES:
            if any(stat_type in degradation for stat_type in CATEGORY_STATS[category]):
                metrics.record_degradation(category.value)

        return DegradationResult(success=True, applied=degradation, updated_user=updated_user)

    # ==========================================
    # Persistence Helpers
    # ==========================================

    def _read(self, reader: Callable, operation: str, repository: str):
        try:
            return reader()
        except Exception as e:
            raise wrap_repository_exception(e, operation=operation, repository=repository)

    async def _persist_user_then(
        self,
        original: User,
        updated: User,
        write: Callable[[], Awaitable[None]],
        operation: str,
        user_failure: str,
        write_failure: str,
    ) -> Optional[PersistenceError]:
        """
        Save the updated user, then run the dependent write.

        Returns None on success, or the error describing what was left behind.
        """
        try:
            await self.user_repository.update_user(updated)
        except Exception as e:
            return PersistenceError(
                f"{user_failure}: {e}",
                repository="users",
                user_id=original.id,
                operation=operation,
                cause=e,
            )

        try:
            await write()
        except Exception as write_error:
            return await self._rollback_user(original, write_error, operation, write_failure)

        return None

    async def _rollback_user(
        self,
        original: User,
        write_error: Exception,
        operation: str,
        write_failure: str,
    ) -> PersistenceError:
        add_breadcrumb(
            "persistence",
            "Restoring original user snapshot",
            level="warning",
            data={"user_id": original.id, "operation": operation, "error": str(write_error)},
        )

        try:
            await self.user_repository.update_user(original)
        except Exception as rollback_error:
            metrics.record_rollback("failed")
            error = RollbackFailedError(
                f"{write_failure}; rollback failed, data may be inconsistent: {rollback_error}",
                repository="users",
                user_id=original.id,
                operation=operation,
                cause=rollback_error,
                context={"write_error": str(write_error)},
            )
            capture_fatal_error(error, context={"write_error": str(write_error)})
            return error

        metrics.record_rollback("restored")
        return PersistenceError(
            f"{write_failure}; changes were rolled back: {write_error}",
            repository="activities",
            user_id=original.id,
            operation=operation,
            cause=write_error,
        )
