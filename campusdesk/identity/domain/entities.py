"""
Identity Domain Entities
========================

Pure Python business objects for users and their credentials.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from campusdesk.config import UserRole
from campusdesk.core import Actor


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class User:
    """
    A person who can sign in.

    ``password_hash`` is None for accounts created through federated
    login; ``assigned_category_id`` is only meaningful for category staff.
    """
    name: str
    email: str
    role: UserRole = UserRole.STUDENT
    password_hash: Optional[str] = None
    assigned_category_id: Optional[UUID] = None
    google_id: Optional[str] = None
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        self.email = self.email.strip().lower()
        self.name = self.name.strip()
        self.role = UserRole(self.role)

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    @property
    def is_staff(self) -> bool:
        return self.role == UserRole.CATEGORY_STAFF

    def to_actor(self) -> Actor:
        """Identity as seen by the access control layer."""
        return Actor(
            user_id=self.id,
            role=self.role,
            assigned_category_id=self.assigned_category_id if self.is_staff else None,
        )

    def touch(self) -> None:
        self.updated_at = _utcnow()


@dataclass
class FederatedProfile:
    """Identity returned by an external login provider."""
    provider_id: str
    email: str
    name: str
