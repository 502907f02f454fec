"""
Complaint Lifecycle
===================

The status state machine::

    Open -> In Progress -> Pending Student Verification -> Resolved

- Category staff may only target In Progress or Pending Student
  Verification, and only along the forward edges above.
- Admins may set In Progress, Pending Student Verification or Resolved
  from any non-resolved state (force-resolve included).
- Only the owning student may confirm, and only from Pending Student
  Verification.
- Open is the initial state and can never be targeted by an update.
- Resolved is terminal: status changes are rejected, remarks are not.

Who may touch which complaint is decided by the access policy; this
module only decides which statuses are reachable.
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional

from campusdesk.config import ComplaintStatus, UserRole
from campusdesk.core import (
    AccessPolicy,
    Actor,
    ForbiddenTransition,
    InvalidTransition,
    NoChangesSpecified,
    Operation,
    access_policy,
)
from campusdesk.complaints.domain.entities import Complaint

Status = ComplaintStatus

STAFF_TARGETS = (Status.IN_PROGRESS, Status.PENDING_VERIFICATION)
ADMIN_TARGETS = (Status.IN_PROGRESS, Status.PENDING_VERIFICATION, Status.RESOLVED)

STAFF_EDGES: Dict[ComplaintStatus, FrozenSet[ComplaintStatus]] = {
    Status.OPEN: frozenset({Status.IN_PROGRESS}),
    Status.IN_PROGRESS: frozenset({Status.PENDING_VERIFICATION}),
    Status.PENDING_VERIFICATION: frozenset(),
    Status.RESOLVED: frozenset(),
}


@dataclass(frozen=True)
class TransitionOutcome:
    """Result of applying an update or confirmation to a complaint."""
    previous_status: ComplaintStatus
    status: ComplaintStatus
    remarks_changed: bool = False

    @property
    def status_changed(self) -> bool:
        return self.previous_status != self.status


class ComplaintLifecycle:
    """Applies updates and confirmations, mutating the complaint in place."""

    def __init__(self, policy: Optional[AccessPolicy] = None):
        self._policy = policy or access_policy

    def apply_update(
        self,
        complaint: Complaint,
        actor: Actor,
        status: Optional[ComplaintStatus] = None,
        remarks: Optional[str] = None,
    ) -> TransitionOutcome:
        """
        Apply a staff/admin update.

        Args:
            status: Target status, or None to leave it unchanged
            remarks: New remarks; None or blank leaves them unchanged

        Raises:
            NoChangesSpecified: neither status nor remarks given
            AccessDenied: actor may not update this complaint
            ForbiddenTransition: actor's role may not target ``status``
            InvalidTransition: ``status`` is not reachable from the current one
        """
        if remarks is not None and not remarks.strip():
            remarks = None
        if status is None and remarks is None:
            raise NoChangesSpecified()

        self._policy.authorize(actor, Operation.UPDATE_COMPLAINT, category_id=complaint.category_id)

        previous = complaint.status
        target = ComplaintStatus(status) if status is not None else previous

        if target != previous:
            self._check_target(actor, previous, target)

        remarks_changed = remarks is not None and remarks != complaint.remarks

        complaint.status = target
        if remarks is not None:
            complaint.remarks = remarks
        if target != previous or remarks_changed:
            complaint.touch()

        return TransitionOutcome(previous_status=previous, status=target, remarks_changed=remarks_changed)

    def _check_target(self, actor: Actor, current: ComplaintStatus, target: ComplaintStatus) -> None:
        if actor.role == UserRole.CATEGORY_STAFF and target not in STAFF_TARGETS:
            raise ForbiddenTransition(actor.role.value, target.value, [s.value for s in STAFF_TARGETS])

        if current == Status.RESOLVED:
            raise InvalidTransition(
                current.value, target.value,
                "This complaint is already resolved; its status can no longer change."
            )

        if target == Status.OPEN:
            raise InvalidTransition(
                current.value, target.value,
                "A complaint cannot be moved back to 'Open'."
            )

        if actor.role == UserRole.CATEGORY_STAFF and target not in STAFF_EDGES[current]:
            raise InvalidTransition(current.value, target.value)

        if actor.role == UserRole.ADMIN and target not in ADMIN_TARGETS:
            raise InvalidTransition(current.value, target.value)

    def confirm(self, complaint: Complaint, actor: Actor) -> TransitionOutcome:
        """
        Student confirmation: Pending Student Verification -> Resolved.

        Raises:
            AccessDenied: actor is not the owning student
            InvalidTransition: complaint is not pending verification
        """
        self._policy.authorize(actor, Operation.CONFIRM_COMPLAINT, owner_id=complaint.student_id)

        if complaint.status != Status.PENDING_VERIFICATION:
            raise InvalidTransition(
                complaint.status.value, Status.RESOLVED.value,
                "Only complaints pending your verification can be confirmed."
            )

        previous = complaint.status
        complaint.status = Status.RESOLVED
        complaint.touch()
        return TransitionOutcome(previous_status=previous, status=Status.RESOLVED)


lifecycle = ComplaintLifecycle()
