"""
Complaints Domain Entities
==========================

Pure Python business objects for categories and complaints.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from campusdesk.config import ComplaintStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Category:
    """
    A named complaint category.

    ``staff_user_id`` is a weak reference to the one staff member bound
    to the category, if any.
    """
    name: str
    description: str = ""
    staff_user_id: Optional[UUID] = None
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        self.name = self.name.strip()
        self.description = (self.description or "").strip()


@dataclass
class Complaint:
    """
    A complaint submitted by a student.

    ``category_id`` and ``student_id`` are immutable after creation;
    ``status`` only changes through ``ComplaintLifecycle``.
    """
    title: str
    description: str
    category_id: UUID
    student_id: UUID
    status: ComplaintStatus = ComplaintStatus.OPEN
    file_url: Optional[str] = None
    remarks: str = ""
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        self.status = ComplaintStatus(self.status)

    @property
    def is_resolved(self) -> bool:
        return self.status == ComplaintStatus.RESOLVED

    def touch(self) -> None:
        self.updated_at = utcnow()
