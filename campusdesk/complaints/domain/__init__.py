"""
Complaints Domain Layer
=======================

Contains:
- Entities: Category, Complaint
- Events: ComplaintSubmitted, ComplaintStatusChanged, ComplaintConfirmed
- Lifecycle: the status state machine
"""

from campusdesk.complaints.domain.entities import Category, Complaint, utcnow
from campusdesk.complaints.domain.events import (
    ComplaintSubmitted,
    ComplaintStatusChanged,
    ComplaintConfirmed,
)
from campusdesk.complaints.domain.lifecycle import (
    ComplaintLifecycle,
    TransitionOutcome,
    STAFF_TARGETS,
    ADMIN_TARGETS,
    lifecycle,
)

__all__ = [
    "Category",
    "Complaint",
    "utcnow",
    "ComplaintSubmitted",
    "ComplaintStatusChanged",
    "ComplaintConfirmed",
    "ComplaintLifecycle",
    "TransitionOutcome",
    "STAFF_TARGETS",
    "ADMIN_TARGETS",
    "lifecycle",
]
