"""
Repository interfaces for user and activity storage

Reads are synchronous, writes are coroutines. Storage mechanics live
behind these interfaces; the in-memory implementations below back the
maintenance entry point and the tests.
"""

import logging
from typing import Dict, List, Optional, Protocol

from questlog.models.activity import ActivityLogEntry
from questlog.models.user import User

logger = logging.getLogger(__name__)


class UserRepository(Protocol):
    def get_current_user(self) -> Optional[User]:
        ...

    async def update_user(self, user: User) -> None:
        ...


class ActivityRepository(Protocol):
    def find_by_key(self, activity_id: str) -> Optional[ActivityLogEntry]:
        ...

    def find_all(self) -> List[ActivityLogEntry]:
        ...

    async def delete_by_key(self, activity_id: str) -> None:
        ...

    async def save(self, entry: ActivityLogEntry) -> None:
        ...


class InMemoryUserRepository:
    """Single-user store, not persisted"""

    def __init__(self, user: Optional[User] = None):
        self._user = user

    def get_current_user(self) -> Optional[User]:
        return self._user

    async def update_user(self, user: User) -> None:
        self._user = user
        logger.debug(f"Saved user {user.id} (level {user.level}, {user.current_exp:.1f} EXP)")


class InMemoryActivityRepository:
    """Activity store keyed by entry id, not persisted"""

    def __init__(self, entries: Optional[List[ActivityLogEntry]] = None):
        self._entries: Dict[str, ActivityLogEntry] = {}
        for entry in entries or []:
            self._entries[entry.id] = entry

    def find_by_key(self, activity_id: str) -> Optional[ActivityLogEntry]:
        return self._entries.get(activity_id)

    def find_all(self) -> List[ActivityLogEntry]:
        return list(self._entries.values())

    async def delete_by_key(self, activity_id: str) -> None:
        if self._entries.pop(activity_id, None) is None:
            logger.debug(f"Delete of unknown activity {activity_id} ignored")

    async def save(self, entry: ActivityLogEntry) -> None:
        self._entries[entry.id] = entry
        logger.debug(f"Saved activity {entry.id} ({entry.activity_type.value})")
