"""
Complaint Events
================

Emitted after a change has been durably persisted. Each event carries a
snapshot of everything its handlers need, so handlers never go back to
the database.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from campusdesk.config import ComplaintStatus


@dataclass(frozen=True)
class ComplaintSubmitted:
    complaint_id: UUID
    title: str
    student_email: str
    student_name: str


@dataclass(frozen=True)
class ComplaintStatusChanged:
    """A staff/admin update that actually changed the status."""
    complaint_id: UUID
    title: str
    student_id: UUID
    student_email: str
    student_name: str
    previous_status: ComplaintStatus
    status: ComplaintStatus
    remarks: str
    updated_at: datetime


@dataclass(frozen=True)
class ComplaintConfirmed:
    """The owning student confirmed resolution."""
    complaint_id: UUID
    staff_user_id: Optional[UUID]
    updated_at: datetime
    status: ComplaintStatus = ComplaintStatus.RESOLVED
