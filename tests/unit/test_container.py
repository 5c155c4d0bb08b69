"""
Tests for the service container
"""
import pytest

from questlog.db.repositories import InMemoryActivityRepository, InMemoryUserRepository
from questlog.services import container as container_module
from questlog.services.activity_service import ActivityService
from questlog.services.container import ServiceContainer, get_container, init_container
from questlog.services.migration_service import ActivityMigrationService


def test_services_are_lazy_singletons():
    container = ServiceContainer(
        user_repository=InMemoryUserRepository(),
        activity_repository=InMemoryActivityRepository(),
    )

    assert container._activity_service is None
    service = container.activity_service
    assert isinstance(service, ActivityService)
    assert container.activity_service is service

    migration = container.migration_service
    assert isinstance(migration, ActivityMigrationService)
    assert migration.activity_repository is container.activity_repository


def test_get_container_requires_init(monkeypatch):
    monkeypatch.setattr(container_module, "_container", None)

    with pytest.raises(RuntimeError):
        get_container()


def test_init_container_sets_global(monkeypatch):
    monkeypatch.setattr(container_module, "_container", None)
    user_repo = InMemoryUserRepository()
    activity_repo = InMemoryActivityRepository()

    container = init_container(user_repo, activity_repo)

    assert get_container() is container
    assert container.user_repository is user_repo
