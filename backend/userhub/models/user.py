"""User Model — in-memory record held by MemoryStorage.

Invariants:
    - id is a UUID4 assigned at creation and never changes
    - email is stored lower-cased
    - created_at and updated_at are timezone-aware UTC
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import uuid4

from userhub.core.domain_types import UserId


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class User:
    name: str
    email: str
    id: UserId = field(default_factory=lambda: UserId(uuid4()))
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def touch(self) -> None:
        self.updated_at = _utcnow()
