"""Read access to the users container written by the login screen."""

import logging
from pathlib import Path
from typing import List, Optional, Union

from ..models.user import UserRecord, UserType
from .record_store import JsonRecordStore

logger = logging.getLogger(__name__)


class UserRepository:
    """Lookups over registered users; account management stays with the login screen."""

    def __init__(self, store: Union[JsonRecordStore, str, Path]):
        if not isinstance(store, JsonRecordStore):
            store = JsonRecordStore(
                store,
                decode=UserRecord.from_dict,
                encode=UserRecord.to_dict,
                name="users",
                critical=False
            )
        self.store = store

    def load(self) -> List[UserRecord]:
        return self.store.load()

    def save(self, users: List[UserRecord]) -> bool:
        return self.store.save(users)

    def get_user(self, email: str) -> Optional[UserRecord]:
        target = (email or "").lower()
        for user in self.store.load():
            if (user.email or "").lower() == target:
                return user
        return None

    def get_academic_managers(self) -> List[UserRecord]:
        """Active users who can be assigned as reviewing managers."""
        return [
            u for u in self.store.load()
            if u.user_type == UserType.ACADEMIC_MANAGER.value and u.is_active
        ]

    def get_lecturers(self) -> List[UserRecord]:
        return [u for u in self.store.load() if u.user_type == UserType.LECTURER.value]
