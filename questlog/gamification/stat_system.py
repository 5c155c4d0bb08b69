"""
Stat Progression System

Calculates stat gains for logged activities and reverses them when an
activity is deleted.

Gain Rules:
- Each activity type has per-hour rates for one or two stats
- Gains scale linearly with duration: rate * (minutes / 60)
- Quit bad habit grants a fixed +0.03 focus regardless of duration
- Stats have no ceiling

Reversal Rules:
- Stored gains on the log entry are reversed verbatim
- Legacy entries without stored gains fall back to the rate table
- Reversed stats clamp at the floor (1.0); clamping is lossy, so a stat
  that hit the floor cannot be restored by re-applying the gain
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional

from questlog.exceptions import ValidationError
from questlog.models.activity import ActivityLogEntry
from questlog.models.enums import ActivityType, StatType
from questlog.models.user import STAT_FLOOR

logger = logging.getLogger(__name__)

QUIT_BAD_HABIT_FOCUS_GAIN = 0.03

# A reversal taking a stat this far below zero means the stored gain is corrupted
REVERSAL_CORRUPTION_LIMIT = -100.0

# Per-hour rates for current activity types
STAT_GAIN_RATES: dict[ActivityType, dict[StatType, float]] = {
    ActivityType.WORKOUT_UPPER_BODY: {StatType.STRENGTH: 0.06, StatType.ENDURANCE: 0.03},
    ActivityType.WORKOUT_LOWER_BODY: {StatType.STRENGTH: 0.06, StatType.AGILITY: 0.03},
    ActivityType.WORKOUT_CORE: {StatType.ENDURANCE: 0.05, StatType.STRENGTH: 0.03},
    ActivityType.WORKOUT_CARDIO: {StatType.AGILITY: 0.06, StatType.ENDURANCE: 0.04},
    ActivityType.WORKOUT_YOGA: {StatType.AGILITY: 0.05, StatType.FOCUS: 0.03},
    ActivityType.WALKING: {StatType.ENDURANCE: 0.04, StatType.AGILITY: 0.02},
    ActivityType.STUDY_SERIOUS: {StatType.INTELLIGENCE: 0.06, StatType.FOCUS: 0.04},
    ActivityType.STUDY_CASUAL: {StatType.INTELLIGENCE: 0.04, StatType.CHARISMA: 0.03},
    ActivityType.MEDITATION: {StatType.FOCUS: 0.05},
    ActivityType.SOCIALIZING: {StatType.CHARISMA: 0.05, StatType.FOCUS: 0.02},
    ActivityType.SLEEP_TRACKING: {StatType.ENDURANCE: 0.02},
    ActivityType.DIET_HEALTHY: {StatType.ENDURANCE: 0.03},
}

# Rates from before the workout split. Legacy entries are reversed with the
# table they were logged under, never with the current one.
LEGACY_STAT_GAIN_RATES: dict[ActivityType, dict[StatType, float]] = {
    ActivityType.WORKOUT_WEIGHTS: {StatType.STRENGTH: 0.06, StatType.ENDURANCE: 0.04},
}

FIXED_STAT_GAINS: dict[ActivityType, dict[StatType, float]] = {
    ActivityType.QUIT_BAD_HABIT: {StatType.FOCUS: QUIT_BAD_HABIT_FOCUS_GAIN},
}


@dataclass(frozen=True)
class StatGainPreview:
    """Expected gains for an activity, for UI display"""
    activity_type: ActivityType
    duration_minutes: int
    stat_gains: dict[StatType, float]
    affected_stats: list[StatType] = field(default_factory=list)
    primary_stat: Optional[StatType] = None

    def gain_text(self, stat_type: StatType) -> str:
        gain = self.stat_gains.get(stat_type)
        if not gain:
            return ""
        return f"+{gain:.2f}"

    def affects_stat(self, stat_type: StatType) -> bool:
        return self.stat_gains.get(stat_type, 0.0) > 0.0


def is_fixed_amount_activity(activity_type: ActivityType) -> bool:
    return activity_type in FIXED_STAT_GAINS


def calculate_stat_gains(activity_type: ActivityType, duration_minutes: int) -> dict[StatType, float]:
    """
    Stat gains for an activity of the given duration

    Raises:
        ValidationError: duration is negative
    """
    if duration_minutes < 0:
        raise ValidationError(
            "Duration must be non-negative", field="duration_minutes", value=duration_minutes
        )

    if activity_type in FIXED_STAT_GAINS:
        return dict(FIXED_STAT_GAINS[activity_type])

    rates = STAT_GAIN_RATES.get(activity_type) or LEGACY_STAT_GAIN_RATES.get(activity_type)
    if rates is None:
        logger.warning(f"No stat gain rates for activity type {activity_type}")
        return {}

    duration_hours = duration_minutes / 60.0
    return {stat_type: rate * duration_hours for stat_type, rate in rates.items()}


def apply_stat_gains(
    current_stats: Mapping[StatType, float],
    gains: Mapping[StatType, float],
) -> dict[StatType, float]:
    """
    Add gains to stats, returning a new map with every stat present

    Stats missing from current_stats start at the floor.
    """
    updated = {stat_type: current_stats.get(stat_type, STAT_FLOOR) for stat_type in StatType}

    for stat_type, gain in gains.items():
        updated[stat_type] = updated.get(stat_type, STAT_FLOOR) + gain

    return updated


def get_affected_stats(activity_type: ActivityType) -> list[StatType]:
    return list(calculate_stat_gains(activity_type, 60).keys())


def get_primary_stat(activity_type: ActivityType) -> Optional[StatType]:
    """Stat with the highest hourly gain, None if the activity affects nothing"""
    gains = calculate_stat_gains(activity_type, 60)

    primary_stat = None
    max_gain = 0.0
    for stat_type, gain in gains.items():
        if gain > max_gain:
            max_gain = gain
            primary_stat = stat_type

    return primary_stat


def get_stat_gain_rates(activity_type: ActivityType) -> dict[StatType, float]:
    """Gains for one hour of the activity"""
    return calculate_stat_gains(activity_type, 60)


def calculate_total_stat_gains(activities: Iterable[ActivityLogEntry]) -> dict[StatType, float]:
    """Sum the gains of several entries, using stored gains when present"""
    totals: dict[StatType, float] = {}

    for activity in activities:
        gains = calculate_stat_reversals(
            activity.activity_type, activity.duration_minutes, activity.stat_gains
        )
        for stat_type, gain in gains.items():
            totals[stat_type] = totals.get(stat_type, 0.0) + gain

    return totals


def calculate_expected_gains(activity_type: ActivityType, duration_minutes: int) -> StatGainPreview:
    gains = calculate_stat_gains(activity_type, duration_minutes)
    return StatGainPreview(
        activity_type=activity_type,
        duration_minutes=duration_minutes,
        stat_gains=gains,
        affected_stats=list(gains.keys()),
        primary_stat=get_primary_stat(activity_type),
    )


# ==========================================
# Reversal
# ==========================================

def calculate_stat_reversals(
    activity_type: ActivityType,
    duration_minutes: int,
    stored_gains: Optional[Mapping[StatType, float]] = None,
) -> dict[StatType, float]:
    """
    Amounts to subtract when an activity is deleted

    Stored gains are returned verbatim for exact reversal. Entries logged
    before gains were stored get them recomputed from the rate table.
    """
    if stored_gains:
        return dict(stored_gains)

    logger.debug(f"No stored gains for {activity_type.value}, recomputing from rate table")
    return calculate_stat_gains(activity_type, duration_minutes)


def apply_stat_reversals(
    current_stats: Mapping[StatType, float],
    reversals: Mapping[StatType, float],
    floor: float = STAT_FLOOR,
) -> dict[StatType, float]:
    """
    Subtract reversals from stats, clamping each result at floor

    Stats not named in reversals are returned unchanged. Missing stats
    start at 1.0 before subtraction.
    """
    updated = dict(current_stats)

    for stat_type, reversal in reversals.items():
        current = current_stats.get(stat_type, STAT_FLOOR)
        new_value = current - reversal
        if new_value < floor:
            logger.debug(
                f"Reversal of {reversal} on {stat_type.value} clamped to floor {floor} "
                f"(would be {new_value})"
            )
            new_value = floor
        updated[stat_type] = new_value

    return updated


def validate_stat_reversal(
    current_stats: Mapping[StatType, float],
    reversals: Mapping[StatType, float],
) -> bool:
    """
    Check that reversals can be applied safely

    False when there are no current stats, a reversal is non-finite or
    negative, or a result would land so far below zero that the stored
    gain must be corrupted.
    """
    if not current_stats:
        logger.warning("Cannot validate stat reversal: no current stats")
        return False

    for stat_type, reversal in reversals.items():
        if math.isnan(reversal) or math.isinf(reversal):
            logger.warning(f"Invalid reversal for {stat_type.value}: {reversal}")
            return False
        if reversal < 0:
            logger.warning(f"Negative reversal for {stat_type.value}: {reversal}")
            return False

        result = current_stats.get(stat_type, STAT_FLOOR) - reversal
        if result < REVERSAL_CORRUPTION_LIMIT:
            logger.warning(
                f"Reversal for {stat_type.value} would reach {result}, stored gain looks corrupted"
            )
            return False

    return True
