"""
Stat Validation and Sanitization

Stats have no gameplay ceiling, but stored values still have to be safe to
compute with and display. Sanitization rules:
- NaN, -inf and values below 1.0 become 1.0
- +inf and values above 999,999 become 999,999
- Values above 100,000 are kept but flagged as a performance warning

Export validation keeps large finite values untouched so a backup never
loses progress.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from questlog.models.enums import StatType
from questlog.observability.metrics import record_sanitization

logger = logging.getLogger(__name__)

MIN_STAT_VALUE = 1.0
MAX_REASONABLE_VALUE = 999_999.0
LARGE_VALUE_WARNING = 100_000.0

DEFAULT_CHART_MAX = 5.0
CHART_STEP = 5.0


@dataclass(frozen=True)
class StatValidationResult:
    """
    Sanitized stats plus what had to change

    issues are critical (non-finite values); warnings are not.
    """
    sanitized_stats: Dict[StatType, float]
    warnings: List[str] = field(default_factory=list)
    issues: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.issues

    @property
    def has_warning(self) -> bool:
        return bool(self.warnings)

    @property
    def message(self) -> Optional[str]:
        if self.issues:
            return f"Critical validation issues: {', '.join(self.issues)}"
        if self.warnings:
            return f"Validation warnings: {', '.join(self.warnings)}"
        return None


@dataclass(frozen=True)
class ChartValidationResult:
    recommended_max_y: float
    scaling_factor: float
    message: Optional[str] = None
    is_valid: bool = True

    @property
    def has_warning(self) -> bool:
        return self.is_valid and self.message is not None


def validate_stat_value(value: float) -> float:
    """Return a value safe for storage and display"""
    if math.isnan(value):
        logger.error(f"NaN stat value detected, using minimum {MIN_STAT_VALUE}")
        record_sanitization("nan")
        return MIN_STAT_VALUE

    if math.isinf(value):
        logger.error(f"Infinite stat value detected ({value})")
        record_sanitization("infinite")
        return MIN_STAT_VALUE if value < 0 else MAX_REASONABLE_VALUE

    if value < MIN_STAT_VALUE:
        record_sanitization("below_minimum")
        return MIN_STAT_VALUE

    if value > MAX_REASONABLE_VALUE:
        logger.warning(f"Extremely large stat value {value}, clamping to {MAX_REASONABLE_VALUE}")
        record_sanitization("above_maximum")
        return MAX_REASONABLE_VALUE

    return value


def validate_stats(stats: Mapping[StatType, float]) -> StatValidationResult:
    """
    Sanitize a stat map for storage

    Every stat is present in the result; missing ones read as 1.0.
    """
    sanitized: Dict[StatType, float] = {}
    warnings: List[str] = []
    issues: List[str] = []

    for stat_type in StatType:
        value = stats.get(stat_type, MIN_STAT_VALUE)

        if math.isnan(value):
            issues.append(f"{stat_type.value} has NaN value")
        elif math.isinf(value):
            issues.append(f"{stat_type.value} has infinite value")
        elif value < MIN_STAT_VALUE:
            warnings.append(f"{stat_type.value} below minimum ({value:.2f})")
        elif value > MAX_REASONABLE_VALUE:
            warnings.append(f"{stat_type.value} extremely large ({value:.0f})")

        sanitized[stat_type] = validate_stat_value(value)

    if max(sanitized.values()) > LARGE_VALUE_WARNING:
        warnings.append("Very large stat values may impact performance")

    return StatValidationResult(sanitized_stats=sanitized, warnings=warnings, issues=issues)


def validate_stats_for_export(stats: Mapping[StatType, float]) -> StatValidationResult:
    """
    Sanitize a stat map for backup export

    Unlike validate_stats, finite values above the ceiling are kept.
    """
    sanitized: Dict[StatType, float] = {}
    warnings: List[str] = []
    issues: List[str] = []

    if not stats:
        return StatValidationResult(sanitized_stats={}, issues=["No stats to export"])

    for stat_type, value in stats.items():
        if math.isnan(value) or math.isinf(value):
            issues.append(f"{stat_type.value}: Invalid value ({value})")
            sanitized[stat_type] = MIN_STAT_VALUE
        elif value < MIN_STAT_VALUE:
            warnings.append(f"{stat_type.value}: Below minimum ({value:.2f})")
            sanitized[stat_type] = MIN_STAT_VALUE
        elif value > MAX_REASONABLE_VALUE:
            warnings.append(f"{stat_type.value}: Extremely large value ({value:.0f})")
            sanitized[stat_type] = value
        else:
            sanitized[stat_type] = value

    return StatValidationResult(sanitized_stats=sanitized, warnings=warnings, issues=issues)


def recommended_chart_max(stats: Mapping[StatType, float]) -> float:
    """Chart Y maximum: the largest stat rounded up to the next multiple of 5"""
    finite_values = [value for value in stats.values() if math.isfinite(value)]
    if not finite_values:
        return DEFAULT_CHART_MAX

    max_value = max(finite_values)
    if max_value <= DEFAULT_CHART_MAX:
        return DEFAULT_CHART_MAX

    return math.ceil(max_value / CHART_STEP) * CHART_STEP


def _scaling_factor(max_value: float) -> float:
    if max_value <= 100.0:
        return 1.0
    if max_value <= 1000.0:
        return 0.1
    if max_value <= 10000.0:
        return 0.01
    return 0.001


def validate_stats_for_chart(stats: Mapping[StatType, float]) -> ChartValidationResult:
    if not stats:
        return ChartValidationResult(
            recommended_max_y=DEFAULT_CHART_MAX,
            scaling_factor=1.0,
            message="Stats map is empty",
            is_valid=False,
        )

    for stat_type, value in stats.items():
        if not math.isfinite(value):
            return ChartValidationResult(
                recommended_max_y=DEFAULT_CHART_MAX,
                scaling_factor=1.0,
                message=f"Invalid stat value for {stat_type.value}: {value}",
                is_valid=False,
            )

    max_value = max(stats.values())
    min_value = min(stats.values())
    recommended_max = recommended_chart_max(stats)

    if max_value > LARGE_VALUE_WARNING:
        return ChartValidationResult(
            recommended_max_y=recommended_max,
            scaling_factor=_scaling_factor(max_value),
            message=(
                f"Very large stat values detected (max: {max_value:.0f}). "
                f"Chart rendering may have performance issues."
            ),
        )

    if max_value - min_value < 0.01:
        return ChartValidationResult(
            recommended_max_y=recommended_max,
            scaling_factor=1.0,
            message="Very small stat differences detected. Chart may not show clear distinctions.",
        )

    return ChartValidationResult(
        recommended_max_y=recommended_max,
        scaling_factor=_scaling_factor(max_value),
    )


def format_stat_value(value: float) -> str:
    """Display format: whole numbers without decimals, 1 decimal from 10 up, else 2"""
    if not math.isfinite(value):
        return "Invalid"

    if value == round(value):
        return f"{value:.0f}"

    if value >= 10:
        return f"{value:.1f}"
    return f"{value:.2f}"
