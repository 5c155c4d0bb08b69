"""User progression model"""
from typing import Any, Mapping, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator

from questlog.models.enums import ActivityType, StatType
from questlog.utils.datetime_helpers import now_utc, to_utc

STAT_FLOOR = 1.0


def default_stats() -> dict[StatType, float]:
    """Every stat at the floor"""
    return {stat_type: STAT_FLOOR for stat_type in StatType}


class User(BaseModel):
    """
    Snapshot of the player's progression.

    Immutable: engine operations return updated copies, so the previous
    snapshot stays available for rollback. Corrupted values loaded from
    storage (NaN EXP, level 0) are representable on purpose; the engine
    detects and reports them instead of failing at construction.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    level: int = 1
    current_exp: float = 0.0
    stats: dict[StatType, float] = Field(default_factory=default_stats)
    created_at: datetime = Field(default_factory=now_utc)
    last_active: datetime = Field(default_factory=now_utc)
    has_completed_onboarding: bool = False
    last_activity_dates: dict[ActivityType, datetime] = Field(default_factory=dict)

    @field_validator("stats", mode="before")
    @classmethod
    def parse_stat_keys(cls, v: Any) -> Any:
        if isinstance(v, Mapping):
            return {StatType.parse(key): value for key, value in v.items()}
        return v

    @field_validator("last_activity_dates", mode="before")
    @classmethod
    def parse_activity_keys(cls, v: Any) -> Any:
        if isinstance(v, Mapping):
            return {ActivityType.parse(key): value for key, value in v.items()}
        return v

    @field_validator("created_at", "last_active")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        return to_utc(v)

    @field_validator("last_activity_dates")
    @classmethod
    def normalize_activity_dates(cls, v: dict[ActivityType, datetime]) -> dict[ActivityType, datetime]:
        return {key: to_utc(value) for key, value in v.items()}

    @classmethod
    def create(cls, id: str, name: str = "") -> "User":
        """Create a new level 1 user with every stat at the floor"""
        now = now_utc()
        return cls(id=id, name=name, created_at=now, last_active=now)

    def get_stat(self, stat_type: StatType) -> float:
        return self.stats.get(stat_type, STAT_FLOOR)

    def get_last_activity_date(self, activity_type: ActivityType) -> Optional[datetime]:
        return self.last_activity_dates.get(activity_type)

    @property
    def exp_threshold(self) -> float:
        """EXP needed to advance from the current level"""
        from questlog.gamification.exp_system import calculate_exp_threshold
        return calculate_exp_threshold(self.level)

    @property
    def exp_progress(self) -> float:
        return self.current_exp / self.exp_threshold

    @property
    def can_level_up(self) -> bool:
        return self.current_exp >= self.exp_threshold

    # Copy-on-write updates

    def with_stats(self, stats: Mapping[StatType, float]) -> "User":
        return self.model_copy(update={"stats": dict(stats)})

    def with_progress(self, level: int, current_exp: float) -> "User":
        return self.model_copy(update={"level": level, "current_exp": current_exp})

    def with_last_activity_date(self, activity_type: ActivityType, when: datetime) -> "User":
        dates = dict(self.last_activity_dates)
        dates[activity_type] = to_utc(when)
        return self.model_copy(update={"last_activity_dates": dates})

    def touched(self, when: Optional[datetime] = None) -> "User":
        """Copy with last_active refreshed"""
        return self.model_copy(update={"last_active": to_utc(when) if when else now_utc()})
