"""
User Repository

In-memory, insertion-ordered user store with a never-reused id counter.
"""
import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Dict, Iterator, List, Optional, Sequence

from userhub.modules.users.domain.user import User, DEFAULT_ROLE, utcnow

logger = logging.getLogger("userhub.users.repository")

SEED_USERS = (
    {"name": "Admin User", "email": "admin@example.com", "role": "admin"},
    {"name": "Test User", "email": "test@example.com", "role": "user"},
)


class UserRepository:
    """
    Repository for user data access.

    Every method takes the store lock. Callers that need a check-then-write
    sequence to be atomic wrap it in ``transaction()``; the lock is
    reentrant so the individual calls inside still work.
    """

    def __init__(
        self,
        seed: Optional[Sequence[Dict[str, str]]] = SEED_USERS,
        clock: Callable[[], datetime] = utcnow
    ):
        self._lock = threading.RLock()
        self._clock = clock
        self._seed = tuple(seed or ())
        self._users: List[User] = []
        self._next_id = 1
        self.reset()

    @contextmanager
    def transaction(self) -> Iterator["UserRepository"]:
        with self._lock:
            yield self

    def reset(self) -> None:
        """Drop everything and reload the seed records."""
        with self._lock:
            self._users = []
            self._next_id = 1
            for record in self._seed:
                self._users.append(User(
                    id=self._next_id,
                    name=record["name"],
                    email=record["email"],
                    role=record.get("role", DEFAULT_ROLE),
                ))
                self._next_id += 1
            logger.debug(f"[UserRepository.reset] seeded {len(self._users)} users, next_id={self._next_id}")

    @property
    def next_id(self) -> int:
        return self._next_id

    def count(self) -> int:
        with self._lock:
            return len(self._users)

    def create(self, name: str, email: str, role: str = DEFAULT_ROLE) -> User:
        """Append a new user and return it."""
        with self._lock:
            user = User(
                id=self._next_id,
                name=name,
                email=email,
                role=role,
                created_at=self._clock(),
            )
            self._next_id += 1
            self._users.append(user)
            return user

    def get_by_id(self, user_id: int) -> Optional[User]:
        with self._lock:
            return next((user for user in self._users if user.id == user_id), None)

    def get_by_email(self, email: str) -> Optional[User]:
        with self._lock:
            return next((user for user in self._users if user.email == email), None)

    def update(self, user_id: int, updates: Dict[str, str]) -> Optional[User]:
        """Merge the supplied fields into an existing user."""
        with self._lock:
            index = self._index_of(user_id)
            if index is None:
                return None
            updated = self._users[index].merge(updates, updated_at=self._clock())
            self._users[index] = updated
            return updated

    def delete(self, user_id: int) -> Optional[User]:
        """Remove a user and return the removed record."""
        with self._lock:
            index = self._index_of(user_id)
            if index is None:
                return None
            return self._users.pop(index)

    def list(self, role_filter: Optional[str] = None, limit: Optional[int] = None) -> List[User]:
        """List users in insertion order with optional role filtering."""
        with self._lock:
            users = [user for user in self._users if not role_filter or user.role == role_filter]
        if limit is not None:
            users = users[:limit]
        return users

    def _index_of(self, user_id: int) -> Optional[int]:
        for index, user in enumerate(self._users):
            if user.id == user_id:
                return index
        return None
