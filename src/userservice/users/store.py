"""
=============================================================================
USER STORE
=============================================================================

Process-lifetime storage for users.

``InMemoryUserStore`` keeps a dict of id → User and a fixed table of
locks. Each id maps to one lock (lock striping):

    hash(id) % 16 ──► _locks[n]

    thread A: update(id1) ── holds lock 3 ─────────┐
    thread B: update(id2) ── holds lock 9 ──────┐  │   different ids,
    thread C: update(id1) ── waits on lock 3 ◄──┼──┘   no shared lock
                                                │
                                                └─ proceeds immediately

Every single-id operation runs under its stripe lock, so for one id the
operations happen one at a time in some order. ``update`` reads the current
record, builds its replacement and stores it inside that one critical
section; two concurrent updates therefore never interleave, and the final
record is exactly one of the values written.

Individual dict reads and writes are atomic in CPython, which is what lets
``find_by_id`` and ``find_all`` skip the locks. ``find_all`` is a snapshot,
not a transaction: it may or may not include writes racing with it.

=============================================================================
"""

import logging
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Dict, List, Optional

from .models import User


logger = logging.getLogger(__name__)

DEFAULT_STRIPES = 16


class UserNotFoundError(LookupError):
    """No user with the given id. Maps to 404."""

    def __init__(self, user_id: uuid.UUID):
        self.user_id = user_id
        super().__init__(f"User with id {user_id} not found")


class UserStore(ABC):
    """Storage interface the HTTP handlers depend on."""

    @abstractmethod
    def create(self, name: str, email: str) -> User:
        """Store a new user under a fresh id and return it."""

    @abstractmethod
    def find_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        """The user with ``user_id``, or None."""

    @abstractmethod
    def update(
        self,
        user_id: uuid.UUID,
        name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> User:
        """Replace the given fields; None keeps the current value. Raises UserNotFoundError."""

    @abstractmethod
    def delete(self, user_id: uuid.UUID) -> None:
        """Remove the user. Raises UserNotFoundError."""

    @abstractmethod
    def find_all(self) -> List[User]:
        """Every stored user, in no particular order."""


class InMemoryUserStore(UserStore):
    """
    Thread-safe dict-backed store.

        store = InMemoryUserStore()
        user = store.create("Ada", "ada@example.com")
        store.update(user.id, email="ada@lovelace.dev")
        store.delete(user.id)
    """

    def __init__(self, stripes: int = DEFAULT_STRIPES):
        if stripes < 1:
            raise ValueError("stripes must be >= 1")
        self._users: Dict[uuid.UUID, User] = {}
        self._locks = [threading.Lock() for _ in range(stripes)]

    def _lock_for(self, user_id: uuid.UUID) -> threading.Lock:
        return self._locks[hash(user_id) % len(self._locks)]

    def create(self, name: str, email: str) -> User:
        # Validation happens before the id is published
        user = User(id=uuid.uuid4(), name=name, email=email)
        with self._lock_for(user.id):
            self._users[user.id] = user
        logger.debug(f"Stored user {user.id}")
        return user

    def find_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        return self._users.get(user_id)

    def update(
        self,
        user_id: uuid.UUID,
        name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> User:
        with self._lock_for(user_id):
            current = self._users.get(user_id)
            if current is None:
                raise UserNotFoundError(user_id)

            changes = {}
            if name is not None:
                changes["name"] = name
            if email is not None:
                changes["email"] = email

            updated = replace(current, **changes)
            self._users[user_id] = updated
            return updated

    def delete(self, user_id: uuid.UUID) -> None:
        with self._lock_for(user_id):
            if self._users.pop(user_id, None) is None:
                raise UserNotFoundError(user_id)

    def find_all(self) -> List[User]:
        return list(self._users.copy().values())

    def __len__(self) -> int:
        return len(self._users)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._users
