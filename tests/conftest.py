"""Global test fixtures and utilities for questlog tests"""
import pytest
from unittest.mock import AsyncMock, MagicMock
from datetime import datetime, timedelta, timezone

from questlog.models.activity import ActivityLogEntry
from questlog.models.enums import ActivityType, StatType
from questlog.models.user import User
from questlog.services.activity_service import ActivityService


# ============================================================================
# Time Fixtures
# ============================================================================

@pytest.fixture
def fixed_now():
    """Wednesday, 17 January 2024, 12:00 UTC"""
    return datetime(2024, 1, 17, 12, 0, 0, tzinfo=timezone.utc)


# ============================================================================
# Model Fixtures
# ============================================================================

@pytest.fixture
def test_user():
    """Level 5 user with some stat progress"""
    user = User.create("test_user", name="Test User")
    stats = dict(user.stats)
    stats[StatType.STRENGTH] = 3.5
    stats[StatType.ENDURANCE] = 2.8
    return user.with_stats(stats).with_progress(level=5, current_exp=500.0)


@pytest.fixture
def test_activity():
    """One hour upper body workout with stored gains, logged an hour ago"""
    return ActivityLogEntry.create(
        id="test_activity",
        activity_type=ActivityType.WORKOUT_UPPER_BODY,
        duration_minutes=60,
        stat_gains={StatType.STRENGTH: 0.06, StatType.ENDURANCE: 0.03},
        exp_gained=60.0,
        timestamp=datetime.now(timezone.utc) - timedelta(hours=1),
    )


@pytest.fixture
def legacy_activity():
    """Entry logged before stat gains were stored"""
    return ActivityLogEntry(
        id="legacy_activity",
        activity_type="workoutWeights",
        duration_minutes=90,
        stat_gains={},
        exp_gained=90.0,
        timestamp=datetime.now(timezone.utc) - timedelta(days=30),
    )


# ============================================================================
# Repository Fixtures
# ============================================================================

@pytest.fixture
def mock_user_repository(test_user):
    """User repository mock: sync reads, async writes"""
    repo = MagicMock()
    repo.get_current_user = MagicMock(return_value=test_user)
    repo.update_user = AsyncMock()
    return repo


@pytest.fixture
def mock_activity_repository(test_activity):
    """Activity repository mock: sync reads, async writes"""
    repo = MagicMock()
    repo.find_by_key = MagicMock(return_value=test_activity)
    repo.find_all = MagicMock(return_value=[test_activity])
    repo.delete_by_key = AsyncMock()
    repo.save = AsyncMock()
    return repo


@pytest.fixture
def activity_service(mock_user_repository, mock_activity_repository):
    """ActivityService wired to repository mocks"""
    return ActivityService(mock_user_repository, mock_activity_repository)
