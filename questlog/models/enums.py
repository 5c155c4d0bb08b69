"""Activity, stat and category enums"""
import logging
from enum import Enum

logger = logging.getLogger(__name__)


class StatType(str, Enum):
    """The six character stats"""
    STRENGTH = "strength"
    AGILITY = "agility"
    ENDURANCE = "endurance"
    INTELLIGENCE = "intelligence"
    FOCUS = "focus"
    CHARISMA = "charisma"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @classmethod
    def parse(cls, name: "str | StatType") -> "StatType":
        """
        Resolve a stored stat name.

        Unknown names resolve to DEFAULT_STAT_TYPE (strength), which is how
        records written by older app versions have always been read.
        """
        if isinstance(name, cls):
            return name
        try:
            return cls(name)
        except ValueError:
            logger.warning(f"Unknown stat type {name!r}, falling back to {DEFAULT_STAT_TYPE.value}")
            return DEFAULT_STAT_TYPE


class ActivityCategory(str, Enum):
    """Activity groupings sharing a degradation schedule"""
    WORKOUT = "workout"
    STUDY = "study"
    OTHER = "other"


class ActivityType(str, Enum):
    """Loggable activity types"""
    WORKOUT_UPPER_BODY = "workoutUpperBody"
    WORKOUT_LOWER_BODY = "workoutLowerBody"
    WORKOUT_CORE = "workoutCore"
    WORKOUT_CARDIO = "workoutCardio"
    WORKOUT_YOGA = "workoutYoga"
    WALKING = "walking"
    STUDY_SERIOUS = "studySerious"
    STUDY_CASUAL = "studyCasual"
    MEDITATION = "meditation"
    SOCIALIZING = "socializing"
    QUIT_BAD_HABIT = "quitBadHabit"
    SLEEP_TRACKING = "sleepTracking"
    DIET_HEALTHY = "dietHealthy"
    # Legacy: replaced by the upper/lower/core split, kept so old entries still decode
    WORKOUT_WEIGHTS = "workoutWeights"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def category(self) -> ActivityCategory:
        if self in _WORKOUT_TYPES:
            return ActivityCategory.WORKOUT
        if self in _STUDY_TYPES:
            return ActivityCategory.STUDY
        return ActivityCategory.OTHER

    @property
    def is_legacy(self) -> bool:
        return self is ActivityType.WORKOUT_WEIGHTS

    @classmethod
    def parse(cls, name: "str | ActivityType") -> "ActivityType":
        """
        Resolve a stored activity type name.

        Unknown names resolve to DEFAULT_ACTIVITY_TYPE (the legacy
        workoutWeights variant), matching how entries from older app
        versions have always been read.
        """
        if isinstance(name, cls):
            return name
        try:
            return cls(name)
        except ValueError:
            logger.warning(
                f"Unknown activity type {name!r}, falling back to {DEFAULT_ACTIVITY_TYPE.value}"
            )
            return DEFAULT_ACTIVITY_TYPE

    @classmethod
    def current_types(cls) -> list["ActivityType"]:
        """Activity types offered for new entries"""
        return [activity_type for activity_type in cls if not activity_type.is_legacy]


DEFAULT_STAT_TYPE = StatType.STRENGTH
DEFAULT_ACTIVITY_TYPE = ActivityType.WORKOUT_WEIGHTS

_WORKOUT_TYPES = frozenset({
    ActivityType.WORKOUT_UPPER_BODY,
    ActivityType.WORKOUT_LOWER_BODY,
    ActivityType.WORKOUT_CORE,
    ActivityType.WORKOUT_CARDIO,
    ActivityType.WORKOUT_YOGA,
    ActivityType.WALKING,
    ActivityType.WORKOUT_WEIGHTS,
})

_STUDY_TYPES = frozenset({
    ActivityType.STUDY_SERIOUS,
    ActivityType.STUDY_CASUAL,
})

_DISPLAY_NAMES = {
    ActivityType.WORKOUT_UPPER_BODY: "Workout - Upper Body",
    ActivityType.WORKOUT_LOWER_BODY: "Workout - Lower Body",
    ActivityType.WORKOUT_CORE: "Workout - Core",
    ActivityType.WORKOUT_CARDIO: "Workout - Cardio",
    ActivityType.WORKOUT_YOGA: "Workout - Yoga/Flexibility",
    ActivityType.WALKING: "Walking",
    ActivityType.STUDY_SERIOUS: "Study - Serious",
    ActivityType.STUDY_CASUAL: "Study - Casual",
    ActivityType.MEDITATION: "Meditation/Mindfulness",
    ActivityType.SOCIALIZING: "Socializing",
    ActivityType.QUIT_BAD_HABIT: "Quit Bad Habit",
    ActivityType.SLEEP_TRACKING: "Sleep Tracking",
    ActivityType.DIET_HEALTHY: "Diet/Healthy Eating",
    ActivityType.WORKOUT_WEIGHTS: "Workout - Weights",
}
