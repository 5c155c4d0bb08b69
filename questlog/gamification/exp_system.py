"""
EXP and Leveling System

Pure level/EXP arithmetic. Nothing here touches storage.

Leveling Curve:
- Threshold to leave level n: 1000 * 1.2^(n-1)
- Level 1: 1000 EXP, level 2: 1200 EXP, level 3: 1440 EXP, ...
- current_exp is the EXP earned inside the current level, so
  0 <= current_exp < threshold(level) holds after every operation

EXP Award Rules:
- Standard activities: 1 EXP per minute
- Quit bad habit: fixed 60 EXP regardless of duration

Reversal:
- Deleting an activity subtracts its EXP, rolling back through as many
  level-ups as needed. Level 1 is the floor; EXP clamps to 0 there.
"""

import logging
import math
from dataclasses import dataclass
from typing import NamedTuple

from questlog import config
from questlog.exceptions import ValidationError
from questlog.models.enums import ActivityType
from questlog.models.user import User

logger = logging.getLogger(__name__)

BASE_THRESHOLD = 1000.0
THRESHOLD_GROWTH = 1.2
QUIT_BAD_HABIT_EXP = 60.0
EXP_PER_MINUTE = 1.0


class LevelChange(NamedTuple):
    """Outcome of adding or reversing EXP"""
    level: int
    current_exp: float
    levels_changed: int


@dataclass(frozen=True)
class LevelDownPreview:
    """What reversing an amount of EXP would do, for confirmation dialogs"""
    will_level_down: bool
    new_level: int
    new_exp: float
    levels_lost: int


@dataclass(frozen=True)
class LevelUpCheck:
    can_level_up: bool
    new_level: int
    excess_exp: float
    levels_gained: int


def calculate_exp_threshold(level: int) -> float:
    """
    EXP required to advance from level to level + 1

    The threshold stops being representable as a float a little above
    level 3,850; levels past that point are rejected.

    Raises:
        ValidationError: level is below 1 or beyond the representable range
    """
    if level < 1:
        raise ValidationError("Level must be greater than 0", field="level", value=level)

    try:
        threshold = BASE_THRESHOLD * THRESHOLD_GROWTH ** (level - 1)
    except OverflowError:
        threshold = math.inf

    if math.isinf(threshold):
        raise ValidationError("Level is beyond the supported range", field="level", value=level)
    return threshold


def _require_amount(amount: float, field: str) -> None:
    if math.isnan(amount) or math.isinf(amount):
        raise ValidationError(f"{field} must be a finite number", field=field, value=amount)
    if amount < 0:
        raise ValidationError(f"{field} must be non-negative", field=field, value=amount)


def calculate_exp_gain(activity_type: ActivityType, duration_minutes: int) -> float:
    """
    EXP awarded for logging an activity

    Standard activities earn 1 EXP per minute; quit bad habit earns a fixed 60.
    """
    if duration_minutes < 0:
        raise ValidationError(
            "Duration must be non-negative", field="duration_minutes", value=duration_minutes
        )

    if activity_type is ActivityType.QUIT_BAD_HABIT:
        return QUIT_BAD_HABIT_EXP

    return duration_minutes * EXP_PER_MINUTE


def add_exp(level: int, current_exp: float, gain: float) -> LevelChange:
    """
    Add EXP and roll over as many level-ups as it pays for

    Args:
        level: Current level (>= 1)
        current_exp: EXP inside the current level
        gain: EXP to add (>= 0)

    Returns:
        LevelChange(level, current_exp, levels_changed) where levels_changed
        is the number of levels gained
    """
    _require_amount(gain, "gain")

    new_level = level
    remaining = current_exp + gain
    levels_gained = 0

    threshold = calculate_exp_threshold(new_level)
    while remaining >= threshold:
        remaining -= threshold
        new_level += 1
        levels_gained += 1
        threshold = calculate_exp_threshold(new_level)

    if levels_gained:
        logger.debug(f"Level up {level} -> {new_level} (+{levels_gained})")

    return LevelChange(new_level, remaining, levels_gained)


def reverse_exp(level: int, current_exp: float, amount: float) -> LevelChange:
    """
    Subtract EXP, undoing level-ups while the balance is negative

    Each step down adds back the threshold of the level being returned to,
    which is exactly what the forward level-up subtracted. At level 1 a
    remaining deficit is dropped and EXP clamps to 0.

    Returns:
        LevelChange(level, current_exp, levels_changed) where levels_changed
        is the number of levels lost
    """
    _require_amount(amount, "amount")
    if level < 1:
        raise ValidationError("Level must be greater than 0", field="level", value=level)

    new_level = level
    remaining = current_exp - amount
    levels_lost = 0

    while remaining < 0 and new_level > 1:
        new_level -= 1
        remaining += calculate_exp_threshold(new_level)
        levels_lost += 1

    if remaining < 0:
        logger.debug(f"EXP reversal of {amount} exceeds total progress, clamping to 0 at level 1")
        remaining = 0.0

    if levels_lost:
        logger.debug(f"Level down {level} -> {new_level} (-{levels_lost})")

    return LevelChange(new_level, remaining, levels_lost)


def preview_level_down(level: int, current_exp: float, amount: float) -> LevelDownPreview:
    """Same computation as reverse_exp, packaged for display"""
    new_level, new_exp, levels_lost = reverse_exp(level, current_exp, amount)
    return LevelDownPreview(
        will_level_down=levels_lost > 0,
        new_level=new_level,
        new_exp=new_exp,
        levels_lost=levels_lost,
    )


def check_level_up(level: int, current_exp: float) -> LevelUpCheck:
    """Check whether accumulated EXP already pays for one or more level-ups"""
    new_level, excess, levels_gained = add_exp(level, current_exp, 0.0)
    if not levels_gained:
        return LevelUpCheck(can_level_up=False, new_level=level, excess_exp=0.0, levels_gained=0)
    return LevelUpCheck(
        can_level_up=True, new_level=new_level, excess_exp=excess, levels_gained=levels_gained
    )


def calculate_exp_progress(level: int, current_exp: float) -> float:
    """Fraction of the current level completed, clamped to [0, 1]"""
    threshold = calculate_exp_threshold(level)
    return min(max(current_exp / threshold, 0.0), 1.0)


def exp_needed_for_next_level(level: int, current_exp: float) -> float:
    threshold = calculate_exp_threshold(level)
    return min(max(threshold - current_exp, 0.0), threshold)


def validate_exp_reversal(user: User, amount: float) -> bool:
    """
    Check that reversing amount from user is safe to attempt

    False when the amount is negative or non-finite, or the user's own
    level/EXP are corrupted. Very large amounts are allowed but logged.
    """
    if math.isnan(amount) or math.isinf(amount) or amount < 0:
        logger.warning(f"Rejecting EXP reversal of {amount} for user {user.id}")
        return False

    if user.level < 1:
        logger.warning(f"User {user.id} has invalid level {user.level}")
        return False

    if math.isnan(user.current_exp) or math.isinf(user.current_exp) or user.current_exp < 0:
        logger.warning(f"User {user.id} has invalid current EXP {user.current_exp}")
        return False

    if amount > config.EXP_REVERSAL_WARNING_THRESHOLD:
        logger.warning(f"Unusually large EXP reversal for user {user.id}: {amount}")

    return True


def apply_exp_gain(user: User, gain: float) -> tuple[User, LevelChange]:
    """Add EXP to a user snapshot, returning the updated copy and the level change"""
    change = add_exp(user.level, user.current_exp, gain)
    return user.with_progress(change.level, change.current_exp), change


def apply_exp_reversal(user: User, amount: float) -> tuple[User, LevelChange]:
    """Reverse EXP on a user snapshot, returning the updated copy and the level change"""
    change = reverse_exp(user.level, user.current_exp, amount)
    return user.with_progress(change.level, change.current_exp), change
