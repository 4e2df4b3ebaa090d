"""
=============================================================================
USER STORE
=============================================================================

In-memory collection of user records, owned by the application and handed
to the handlers explicitly (never a module-level global).

    UserStore
    ├── _users     list[User], insertion order = listing order
    ├── _next_id   strictly increasing counter, starts at 1
    └── _lock      serializes every operation across worker threads

Ids are never reused. After deleting user 2 out of {1, 2, 3}, the next
create returns 4, not len(users) + 1 == 3.

Nothing is persisted: a new process starts with an empty store.

=============================================================================
"""

import math
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional


def is_truthy(value: Any) -> bool:
    """
    JavaScript truthiness, which decides "missing" for required fields.

    None, False, 0, NaN and "" are falsy. Everything else is truthy,
    including empty lists and dicts (unlike Python's bool()).
    """
    if value is None or value is False:
        return False
    if isinstance(value, float):
        return value != 0 and not math.isnan(value)
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        return value != ""
    return True


@dataclass
class User:
    """A user record. ``age`` is stored as given; only truthiness is checked."""

    id: int
    name: Any
    age: Any

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "age": self.age}


class UserStore:
    """
    Thread-safe in-memory user collection.

    Usage:
        store = UserStore()
        ann = store.create("Ann", 30)       # User(id=1, ...)
        store.update(ann.id, {"age": 31})
        store.delete_by_id(ann.id)          # no error if already gone
    """

    UPDATABLE_FIELDS = ("name", "age")

    def __init__(self):
        self._users: List[User] = []
        self._next_id = 1
        self._lock = threading.Lock()

    def create(self, name: Any, age: Any) -> User:
        """Append a new user with the next id and return it."""
        with self._lock:
            user = User(id=self._next_id, name=name, age=age)
            self._next_id += 1
            self._users.append(user)
            return user

    def list_all(self) -> List[User]:
        """Snapshot of all users in creation order."""
        with self._lock:
            return list(self._users)

    def get_by_id(self, user_id: Optional[int]) -> Optional[User]:
        """First user whose id matches, or None."""
        with self._lock:
            return self._find(user_id)

    def update(self, user_id: Optional[int], patch: Mapping[str, Any]) -> Optional[User]:
        """
        Overwrite name and/or age in place.

        Only keys present in ``patch`` with a truthy value are applied, so
        ``{"age": 31}`` leaves the name alone and ``{"name": ""}`` is a
        no-op. Returns the (possibly unchanged) user, or None if no user
        has that id.
        """
        with self._lock:
            user = self._find(user_id)
            if user is None:
                return None
            for field_name in self.UPDATABLE_FIELDS:
                value = patch.get(field_name)
                if is_truthy(value):
                    setattr(user, field_name, value)
            return user

    def delete_by_id(self, user_id: Optional[int]) -> None:
        """Remove the matching user. Deleting an unknown id is not an error."""
        with self._lock:
            self._users = [u for u in self._users if u.id != user_id]

    def count(self) -> int:
        with self._lock:
            return len(self._users)

    def clear(self) -> None:
        """Forget every user and restart ids at 1."""
        with self._lock:
            self._users = []
            self._next_id = 1

    def _find(self, user_id: Optional[int]) -> Optional[User]:
        # caller holds the lock
        if user_id is None:
            return None
        for user in self._users:
            if user.id == user_id:
                return user
        return None

    def __len__(self) -> int:
        return self.count()
