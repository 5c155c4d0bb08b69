"""
Tests for in-memory repositories
"""
import pytest

from questlog.db.repositories import InMemoryActivityRepository, InMemoryUserRepository
from questlog.models.user import User


@pytest.mark.asyncio
async def test_user_repository_round_trip():
    repo = InMemoryUserRepository()
    assert repo.get_current_user() is None

    user = User.create("hunter-1", name="Jin")
    await repo.update_user(user)

    assert repo.get_current_user() is user


@pytest.mark.asyncio
async def test_activity_repository_save_find_delete(test_activity):
    repo = InMemoryActivityRepository()

    await repo.save(test_activity)
    assert repo.find_by_key(test_activity.id) == test_activity
    assert repo.find_all() == [test_activity]

    await repo.delete_by_key(test_activity.id)
    assert repo.find_by_key(test_activity.id) is None
    assert repo.find_all() == []


@pytest.mark.asyncio
async def test_activity_repository_save_replaces_by_id(test_activity):
    repo = InMemoryActivityRepository([test_activity])
    updated = test_activity.model_copy(update={"duration_minutes": 90})

    await repo.save(updated)

    assert len(repo.find_all()) == 1
    assert repo.find_by_key(test_activity.id).duration_minutes == 90


@pytest.mark.asyncio
async def test_delete_unknown_is_ignored():
    repo = InMemoryActivityRepository()
    await repo.delete_by_key("missing")
    assert repo.find_all() == []
