"""
Progression engine for questlog

Pure computation, no storage access:
- EXP and leveling with multi-level rollover in both directions
- Stat gains per activity and their exact reversal
- Stat degradation after inactivity
- Stat validation and sanitization
"""

from questlog.gamification.exp_system import (
    add_exp,
    reverse_exp,
    preview_level_down,
    calculate_exp_threshold,
    calculate_exp_gain,
)
from questlog.gamification.stat_system import (
    calculate_stat_gains,
    apply_stat_gains,
    calculate_stat_reversals,
    apply_stat_reversals,
)
from questlog.gamification.degradation import apply_degradation, calculate_all_degradation
from questlog.gamification.stat_validator import validate_stat_value, validate_stats

__all__ = [
    "add_exp",
    "reverse_exp",
    "preview_level_down",
    "calculate_exp_threshold",
    "calculate_exp_gain",
    "calculate_stat_gains",
    "apply_stat_gains",
    "calculate_stat_reversals",
    "apply_stat_reversals",
    "apply_degradation",
    "calculate_all_degradation",
    "validate_stat_value",
    "validate_stats",
]
