"""Memory Storage — process-local user store with an explicit connection lifecycle.

Invariants:
    - Every data operation requires connect() first (StorageNotConnectedError otherwise)
    - connect() and disconnect() are idempotent; disconnect() drops all data
    - Emails are unique case-insensitively
    - list_users() returns users in creation order

Design Decisions:
    - Plain dict keyed by UserId: one event loop, no awaits between read and write,
      so no lock is needed
    - Methods are async to match the storage boundary an external database would have
"""

from userhub.core.contracts import LoggerLike
from userhub.core.domain_types import UserId
from userhub.core.errors import (
    DuplicateEmailError, ResourceNotFoundError, StorageNotConnectedError,
)
from userhub.models.user import User

_UPDATABLE_FIELDS = ("name", "email")


class MemoryStorage:
    """In-memory user storage."""

    def __init__(self, logger: LoggerLike):
        self._logger = logger
        self._users: dict[UserId, User] = {}
        self._connected = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def connect(self) -> None:
        if self._connected:
            self._logger.debug("storage", "Memory storage already connected")
            return
        self._users = {}
        self._connected = True
        self._logger.info("storage", "Memory storage connected")

    async def disconnect(self) -> None:
        if not self._connected:
            self._logger.debug("storage", "Memory storage already disconnected")
            return
        dropped = len(self._users)
        self._users = {}
        self._connected = False
        self._logger.info(
            "storage", f"Memory storage disconnected ({dropped} users dropped)",
        )

    # ─── Users ───────────────────────────────────────────────────

    async def list_users(self, limit: int = 10, offset: int = 0) -> list[User]:
        self._require_connection("list_users")
        users = list(self._users.values())
        return users[offset:offset + limit]

    async def count_users(self) -> int:
        self._require_connection("count_users")
        return len(self._users)

    async def get_user(self, user_id: UserId) -> User:
        self._require_connection("get_user")
        user = self._users.get(user_id)
        if user is None:
            raise ResourceNotFoundError("User", str(user_id))
        return user

    async def create_user(self, name: str, email: str) -> User:
        self._require_connection("create_user")
        email = email.lower()
        self._check_email_free(email)
        user = User(name=name, email=email)
        self._users[user.id] = user
        self._logger.debug("storage", f"User {user.id} created", user_id=str(user.id))
        return user

    async def update_user(self, user_id: UserId, **changes: str) -> User:
        self._require_connection("update_user")
        user = await self.get_user(user_id)
        unknown = set(changes) - set(_UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update user fields: {', '.join(sorted(unknown))}")
        if "email" in changes:
            changes["email"] = changes["email"].lower()
            if changes["email"] != user.email:
                self._check_email_free(changes["email"])
        for name, value in changes.items():
            setattr(user, name, value)
        user.touch()
        return user

    async def delete_user(self, user_id: UserId) -> None:
        self._require_connection("delete_user")
        if self._users.pop(user_id, None) is None:
            raise ResourceNotFoundError("User", str(user_id))
        self._logger.debug("storage", f"User {user_id} deleted", user_id=str(user_id))

    def _check_email_free(self, email: str) -> None:
        if any(u.email == email for u in self._users.values()):
            raise DuplicateEmailError(email)

    def _require_connection(self, operation: str) -> None:
        if not self._connected:
            raise StorageNotConnectedError(operation)
