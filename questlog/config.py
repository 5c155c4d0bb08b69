"""Configuration management"""
import os
from dotenv import load_dotenv

load_dotenv()

# Logging
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# Degradation
# Relaxed weekend mode excludes Saturdays and Sundays from the inactivity count
RELAXED_WEEKEND_MODE: bool = os.getenv("RELAXED_WEEKEND_MODE", "false").lower() == "true"

# Activity logging
MAX_ACTIVITY_DURATION_MINUTES: int = int(os.getenv("MAX_ACTIVITY_DURATION_MINUTES", "1440"))

# EXP reversals above this amount are allowed but logged as suspicious
EXP_REVERSAL_WARNING_THRESHOLD: float = float(os.getenv("EXP_REVERSAL_WARNING_THRESHOLD", "1000000"))

# Sentry
ENABLE_SENTRY: bool = os.getenv("ENABLE_SENTRY", "false").lower() == "true"
SENTRY_DSN: str = os.getenv("SENTRY_DSN", "")
SENTRY_ENVIRONMENT: str = os.getenv("SENTRY_ENVIRONMENT", "development")
SENTRY_TRACES_SAMPLE_RATE: float = float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.0"))

# Prometheus
ENABLE_METRICS: bool = os.getenv("ENABLE_METRICS", "true").lower() == "true"


# Validation
def validate_config() -> None:
    """Validate configuration values"""
    if LOG_LEVEL.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise ValueError(f"LOG_LEVEL must be a standard logging level, got {LOG_LEVEL!r}")
    if not 0 < MAX_ACTIVITY_DURATION_MINUTES <= 1440:
        raise ValueError("MAX_ACTIVITY_DURATION_MINUTES must be between 1 and 1440")
    if EXP_REVERSAL_WARNING_THRESHOLD <= 0:
        raise ValueError("EXP_REVERSAL_WARNING_THRESHOLD must be positive")
    if not 0.0 <= SENTRY_TRACES_SAMPLE_RATE <= 1.0:
        raise ValueError("SENTRY_TRACES_SAMPLE_RATE must be between 0.0 and 1.0")
    if ENABLE_SENTRY and not SENTRY_DSN:
        raise ValueError("SENTRY_DSN is required when ENABLE_SENTRY is true")
