"""In-memory storage for user records."""

from __future__ import annotations

import threading
import uuid
from datetime import date
from typing import Dict, List, Optional

from .models import User, UserDetails


class UserRepository:
    """Thread-safe keeper of every user record known to the process.

    Records are immutable, so values handed out by the repository can be
    shared freely; changing a user means storing a new record under the
    same identifier with :meth:`update`.
    """

    def __init__(self) -> None:
        self._users: Dict[str, User] = {}
        self._lock = threading.Lock()

    def insert(self, details: UserDetails) -> User:
        """Store ``details`` under a freshly generated identifier."""

        with self._lock:
            user_id = self._new_id_locked()
            user = User.from_details(user_id, details)
            self._users[user_id] = user
            return user

    def find_by_id(self, user_id: str) -> Optional[User]:
        with self._lock:
            return self._users.get(user_id)

    def exists_by_id(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._users

    def delete_by_id(self, user_id: str) -> bool:
        """Remove a user, returning ``True`` when a record was deleted."""

        with self._lock:
            return self._users.pop(user_id, None) is not None

    def update(self, user: User) -> bool:
        """Replace the record stored under ``user.id``.

        Nothing is stored when the identifier is unknown; the return value
        tells the caller whether the replacement happened.
        """

        with self._lock:
            if user.id not in self._users:
                return False
            self._users[user.id] = user
            return True

    def scan_by_date_range(self, start: date, end: date) -> List[User]:
        """Return users born between ``start`` and ``end``, both inclusive."""

        with self._lock:
            return [
                user
                for user in self._users.values()
                if start <= user.birth_date <= end
            ]

    def count(self) -> int:
        with self._lock:
            return len(self._users)

    def _new_id_locked(self) -> str:
        while True:
            candidate = str(uuid.uuid4())
            if candidate not in self._users:
                return candidate


__all__ = ["UserRepository"]
