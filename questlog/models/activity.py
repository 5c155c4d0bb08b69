"""Activity log models"""
from typing import Any, Mapping, Optional
from datetime import datetime
from uuid import uuid4
from pydantic import BaseModel, ConfigDict, Field, field_validator

from questlog.models.enums import ActivityType, StatType
from questlog.utils.datetime_helpers import now_utc, to_utc


def generate_activity_id() -> str:
    return f"activity_{uuid4().hex}"


class ActivityLogEntry(BaseModel):
    """
    A logged activity and the exact effects it had on the user.

    stat_gains holds the gains applied at logging time. Entries written
    before gains were stored have an empty map; reversal then recomputes
    them from the rate table (see needs_stat_gain_migration).
    """
    model_config = ConfigDict(frozen=True)

    id: str
    activity_type: ActivityType
    duration_minutes: int
    timestamp: datetime = Field(default_factory=now_utc)
    stat_gains: dict[StatType, float] = Field(default_factory=dict)
    exp_gained: float = 0.0
    notes: Optional[str] = None

    @field_validator("activity_type", mode="before")
    @classmethod
    def parse_activity_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            return ActivityType.parse(v)
        return v

    @field_validator("stat_gains", mode="before")
    @classmethod
    def parse_stat_keys(cls, v: Any) -> Any:
        if v is None:
            return {}
        if isinstance(v, Mapping):
            return {StatType.parse(key): value for key, value in v.items()}
        return v

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        return to_utc(v)

    @classmethod
    def create(
        cls,
        activity_type: ActivityType,
        duration_minutes: int,
        stat_gains: Mapping[StatType, float],
        exp_gained: float,
        notes: Optional[str] = None,
        timestamp: Optional[datetime] = None,
        id: Optional[str] = None,
    ) -> "ActivityLogEntry":
        return cls(
            id=id or generate_activity_id(),
            activity_type=activity_type,
            duration_minutes=duration_minutes,
            timestamp=timestamp or now_utc(),
            stat_gains=dict(stat_gains),
            exp_gained=exp_gained,
            notes=notes,
        )

    @property
    def has_stored_stat_gains(self) -> bool:
        return bool(self.stat_gains)

    @property
    def needs_stat_gain_migration(self) -> bool:
        return not self.has_stored_stat_gains

    def with_migrated_stat_gains(self) -> "ActivityLogEntry":
        """
        Copy with stat gains recomputed from the rate table.

        Returns self when gains are already stored.
        """
        if self.has_stored_stat_gains:
            return self

        from questlog.gamification.stat_system import calculate_stat_gains
        gains = calculate_stat_gains(self.activity_type, self.duration_minutes)
        return self.model_copy(update={"stat_gains": gains})
