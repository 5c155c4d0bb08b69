"""
Stat Degradation System

Stats decay when an activity category goes untouched:
- workout: strength, agility, endurance
- study: intelligence, focus
- other: never degrades

Rules:
- Degradation starts after 3 whole days without activity in the category
- -0.01 per complete 3-day period, capped at -0.05 per application
- Stats never drop below the floor (1.0)
- Relaxed weekend mode counts weekdays only

Features:
- Warnings one day before degradation starts
- Severity levels for UI display
- Next degradation date lookup
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional
import logging

from questlog import config
from questlog.models.enums import ActivityCategory, ActivityType, StatType
from questlog.models.user import STAT_FLOOR, User
from questlog.utils.datetime_helpers import (
    add_weekdays,
    days_since,
    now_utc,
    to_utc,
    weekdays_since,
)

logger = logging.getLogger(__name__)

DEGRADATION_THRESHOLD_DAYS = 3
DEGRADATION_PER_PERIOD = -0.01
MAX_DEGRADATION_PER_APPLICATION = -0.05

CATEGORY_STATS: Dict[ActivityCategory, List[StatType]] = {
    ActivityCategory.WORKOUT: [StatType.STRENGTH, StatType.AGILITY, StatType.ENDURANCE],
    ActivityCategory.STUDY: [StatType.INTELLIGENCE, StatType.FOCUS],
    ActivityCategory.OTHER: [],
}

DEGRADING_CATEGORIES = (ActivityCategory.WORKOUT, ActivityCategory.STUDY)


class DegradationSeverity(str, Enum):
    LOW = "low"            # degradation starts tomorrow
    MEDIUM = "medium"      # degradation just started
    HIGH = "high"          # ongoing for several days
    CRITICAL = "critical"  # long-term


@dataclass(frozen=True)
class DegradationWarning:
    """Warning about upcoming or active degradation in one category"""
    category: ActivityCategory
    days_since_last_activity: int
    affected_stats: List[StatType] = field(default_factory=list)
    is_active: bool = False

    @property
    def category_name(self) -> str:
        return self.category.value.capitalize()

    @property
    def message(self) -> str:
        if self.is_active:
            return (
                f"{self.category_name}: {self.days_since_last_activity} days without activity "
                f"- stats degrading!"
            )
        return (
            f"{self.category_name}: {self.days_since_last_activity} days without activity "
            f"- degradation starts tomorrow!"
        )

    @property
    def severity(self) -> DegradationSeverity:
        if self.days_since_last_activity >= DEGRADATION_THRESHOLD_DAYS + 7:
            return DegradationSeverity.CRITICAL
        if self.days_since_last_activity >= DEGRADATION_THRESHOLD_DAYS + 3:
            return DegradationSeverity.HIGH
        if self.is_active:
            return DegradationSeverity.MEDIUM
        return DegradationSeverity.LOW


def _resolve(now: Optional[datetime], relaxed_weekend_mode: Optional[bool]) -> tuple[datetime, bool]:
    resolved_now = to_utc(now) if now is not None else now_utc()
    if relaxed_weekend_mode is None:
        relaxed_weekend_mode = config.RELAXED_WEEKEND_MODE
    return resolved_now, relaxed_weekend_mode


def _inactive_days(last_activity_date: datetime, now: datetime, relaxed_weekend_mode: bool) -> int:
    if relaxed_weekend_mode:
        return weekdays_since(last_activity_date, now)
    return days_since(last_activity_date, now)


def get_affected_stats_by_category(category: ActivityCategory) -> List[StatType]:
    return list(CATEGORY_STATS.get(category, []))


def get_last_activity_date_for_category(user: User, category: ActivityCategory) -> Optional[datetime]:
    """Most recent activity date across every type in the category"""
    last_date = None
    for activity_type, activity_date in user.last_activity_dates.items():
        if activity_type.category != category:
            continue
        if last_date is None or activity_date > last_date:
            last_date = activity_date
    return last_date


def should_apply_degradation(
    category: ActivityCategory,
    last_activity_date: Optional[datetime],
    *,
    now: Optional[datetime] = None,
    relaxed_weekend_mode: Optional[bool] = None,
) -> bool:
    """
    Check whether a category has been inactive long enough to degrade

    A category with no recorded activity never degrades.
    """
    if last_activity_date is None:
        return False

    now, relaxed_weekend_mode = _resolve(now, relaxed_weekend_mode)
    return _inactive_days(last_activity_date, now, relaxed_weekend_mode) >= DEGRADATION_THRESHOLD_DAYS


def calculate_degradation(
    category: ActivityCategory,
    last_activity_date: Optional[datetime],
    *,
    now: Optional[datetime] = None,
    relaxed_weekend_mode: Optional[bool] = None,
) -> float:
    """
    Degradation amount for a category (0.0 or negative)

    Examples:
        3 days -> -0.01
        7 days -> -0.02
        20 days -> -0.05 (capped)
    """
    now, relaxed_weekend_mode = _resolve(now, relaxed_weekend_mode)
    if not should_apply_degradation(
        category, last_activity_date, now=now, relaxed_weekend_mode=relaxed_weekend_mode
    ):
        return 0.0

    inactive_days = _inactive_days(last_activity_date, now, relaxed_weekend_mode)
    periods = inactive_days // DEGRADATION_THRESHOLD_DAYS
    total = DEGRADATION_PER_PERIOD * periods

    return max(total, MAX_DEGRADATION_PER_APPLICATION)


def calculate_all_degradation(
    user: User,
    *,
    now: Optional[datetime] = None,
    relaxed_weekend_mode: Optional[bool] = None,
) -> Dict[StatType, float]:
    """Per-stat degradation for every category that has gone inactive"""
    now, relaxed_weekend_mode = _resolve(now, relaxed_weekend_mode)
    degradation: Dict[StatType, float] = {}

    for category in DEGRADING_CATEGORIES:
        last_date = get_last_activity_date_for_category(user, category)
        amount = calculate_degradation(
            category, last_date, now=now, relaxed_weekend_mode=relaxed_weekend_mode
        )
        if amount < 0:
            for stat_type in CATEGORY_STATS[category]:
                degradation[stat_type] = amount

    return degradation


def apply_degradation(
    user: User,
    *,
    now: Optional[datetime] = None,
    relaxed_weekend_mode: Optional[bool] = None,
) -> User:
    """
    Apply pending degradation to a user

    Returns the same user when nothing degrades; otherwise a copy with
    degraded stats (clamped at the floor) and last_active refreshed.
    """
    now, relaxed_weekend_mode = _resolve(now, relaxed_weekend_mode)
    degradation = calculate_all_degradation(user, now=now, relaxed_weekend_mode=relaxed_weekend_mode)

    if not degradation:
        return user

    stats = dict(user.stats)
    for stat_type, amount in degradation.items():
        stats[stat_type] = max(STAT_FLOOR, stats.get(stat_type, STAT_FLOOR) + amount)

    logger.info(f"Applied degradation to user {user.id}: {degradation}")
    return user.with_stats(stats).touched(now)


def has_pending_degradation(
    user: User,
    *,
    now: Optional[datetime] = None,
    relaxed_weekend_mode: Optional[bool] = None,
) -> bool:
    return bool(calculate_all_degradation(user, now=now, relaxed_weekend_mode=relaxed_weekend_mode))


def get_degradation_warnings(
    user: User,
    *,
    now: Optional[datetime] = None,
    relaxed_weekend_mode: Optional[bool] = None,
) -> List[DegradationWarning]:
    """Warnings for categories inactive for at least threshold - 1 days"""
    now, relaxed_weekend_mode = _resolve(now, relaxed_weekend_mode)
    warnings = []

    for category in DEGRADING_CATEGORIES:
        last_date = get_last_activity_date_for_category(user, category)
        if last_date is None:
            continue

        inactive_days = _inactive_days(last_date, now, relaxed_weekend_mode)
        if inactive_days >= DEGRADATION_THRESHOLD_DAYS - 1:
            warnings.append(DegradationWarning(
                category=category,
                days_since_last_activity=inactive_days,
                affected_stats=get_affected_stats_by_category(category),
                is_active=inactive_days >= DEGRADATION_THRESHOLD_DAYS,
            ))

    return warnings


def get_next_degradation_date(
    user: User,
    category: ActivityCategory,
    *,
    relaxed_weekend_mode: Optional[bool] = None,
) -> Optional[datetime]:
    """When the category first degrades, counted from its last activity"""
    last_date = get_last_activity_date_for_category(user, category)
    if last_date is None:
        return None

    if relaxed_weekend_mode is None:
        relaxed_weekend_mode = config.RELAXED_WEEKEND_MODE

    if relaxed_weekend_mode:
        return add_weekdays(last_date, DEGRADATION_THRESHOLD_DAYS)
    return last_date + timedelta(days=DEGRADATION_THRESHOLD_DAYS)


def reset_degradation_timer(
    user: User,
    activity_type: ActivityType,
    now: Optional[datetime] = None,
) -> User:
    """Record activity of this type, restarting its category's inactivity count"""
    return user.with_last_activity_date(activity_type, now or now_utc())
