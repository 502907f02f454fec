"""
Unit Tests for the Complaint Lifecycle
Tests for: staff edges, admin overrides, confirmation, remarks-only updates
"""
from uuid import uuid4

import pytest

from campusdesk.config import ComplaintStatus, UserRole
from campusdesk.core import (
    AccessDenied,
    Actor,
    ForbiddenTransition,
    InvalidTransition,
    NoChangesSpecified,
)
from campusdesk.complaints.domain import Complaint, lifecycle

Status = ComplaintStatus


def make_complaint(status: ComplaintStatus = Status.OPEN, **kwargs) -> Complaint:
    return Complaint(
        title="Broken heater",
        description="The heater in room 204 does not turn on.",
        category_id=kwargs.get("category_id", uuid4()),
        student_id=kwargs.get("student_id", uuid4()),
        status=status,
    )


def staff_for(complaint: Complaint) -> Actor:
    return Actor(user_id=uuid4(), role=UserRole.CATEGORY_STAFF, assigned_category_id=complaint.category_id)


def admin() -> Actor:
    return Actor(user_id=uuid4(), role=UserRole.ADMIN)


def owner_of(complaint: Complaint) -> Actor:
    return Actor(user_id=complaint.student_id, role=UserRole.STUDENT)


class TestStaffTransitions:
    """Test the forward-only edges available to category staff"""

    def test_open_to_in_progress(self):
        """Test staff can start work on an open complaint"""
        complaint = make_complaint()

        outcome = lifecycle.apply_update(complaint, staff_for(complaint), status=Status.IN_PROGRESS)

        assert complaint.status == Status.IN_PROGRESS
        assert outcome.status_changed is True
        assert outcome.previous_status == Status.OPEN

    def test_in_progress_to_pending(self):
        """Test staff can hand a complaint to the student for verification"""
        complaint = make_complaint(Status.IN_PROGRESS)

        lifecycle.apply_update(complaint, staff_for(complaint), status=Status.PENDING_VERIFICATION)

        assert complaint.status == Status.PENDING_VERIFICATION

    def test_staff_cannot_skip_in_progress(self):
        """Test Open cannot jump straight to pending verification for staff"""
        complaint = make_complaint()

        with pytest.raises(InvalidTransition):
            lifecycle.apply_update(complaint, staff_for(complaint), status=Status.PENDING_VERIFICATION)

        assert complaint.status == Status.OPEN

    def test_staff_cannot_resolve(self):
        """Test Resolved is not a staff target"""
        complaint = make_complaint(Status.PENDING_VERIFICATION)

        with pytest.raises(ForbiddenTransition) as exc_info:
            lifecycle.apply_update(complaint, staff_for(complaint), status=Status.RESOLVED)

        assert exc_info.value.status_code == 403
        assert exc_info.value.message == (
            "Staff can only set status to: In Progress, Pending Student Verification"
        )
        assert complaint.status == Status.PENDING_VERIFICATION

    def test_staff_cannot_reopen(self):
        """Test Open is not a staff target"""
        complaint = make_complaint(Status.IN_PROGRESS)

        with pytest.raises(ForbiddenTransition):
            lifecycle.apply_update(complaint, staff_for(complaint), status=Status.OPEN)

    def test_staff_cannot_move_backwards(self):
        """Test pending verification cannot return to in progress"""
        complaint = make_complaint(Status.PENDING_VERIFICATION)

        with pytest.raises(InvalidTransition):
            lifecycle.apply_update(complaint, staff_for(complaint), status=Status.IN_PROGRESS)

    def test_staff_other_category_denied(self):
        """Test staff cannot touch complaints outside their category"""
        complaint = make_complaint()
        outsider = Actor(user_id=uuid4(), role=UserRole.CATEGORY_STAFF, assigned_category_id=uuid4())

        with pytest.raises(AccessDenied):
            lifecycle.apply_update(complaint, outsider, status=Status.IN_PROGRESS)


class TestAdminTransitions:
    """Test admin overrides"""

    @pytest.mark.parametrize("start", [Status.OPEN, Status.IN_PROGRESS, Status.PENDING_VERIFICATION])
    def test_force_resolve(self, start):
        """Test admins can resolve from any non-terminal status"""
        complaint = make_complaint(start)

        outcome = lifecycle.apply_update(complaint, admin(), status=Status.RESOLVED)

        assert complaint.status == Status.RESOLVED
        assert outcome.status_changed is True

    def test_admin_can_skip_ahead(self):
        """Test admins can move Open straight to pending verification"""
        complaint = make_complaint()

        lifecycle.apply_update(complaint, admin(), status=Status.PENDING_VERIFICATION)

        assert complaint.status == Status.PENDING_VERIFICATION

    def test_admin_cannot_reopen(self):
        """Test Open can never be targeted"""
        complaint = make_complaint(Status.IN_PROGRESS)

        with pytest.raises(InvalidTransition):
            lifecycle.apply_update(complaint, admin(), status=Status.OPEN)

    def test_resolved_is_terminal(self):
        """Test a resolved complaint's status cannot change"""
        complaint = make_complaint(Status.RESOLVED)

        with pytest.raises(InvalidTransition):
            lifecycle.apply_update(complaint, admin(), status=Status.IN_PROGRESS)

        assert complaint.status == Status.RESOLVED

    def test_remarks_on_resolved_allowed(self):
        """Test remarks can still be edited after resolution"""
        complaint = make_complaint(Status.RESOLVED)

        outcome = lifecycle.apply_update(complaint, admin(), remarks="Closed after inspection")

        assert complaint.remarks == "Closed after inspection"
        assert outcome.status_changed is False
        assert outcome.remarks_changed is True


class TestUpdateShape:
    """Test update payload handling"""

    def test_empty_update_rejected(self):
        """Test an update needs a status or remarks"""
        complaint = make_complaint()

        with pytest.raises(NoChangesSpecified):
            lifecycle.apply_update(complaint, admin())

    def test_same_status_is_noop(self):
        """Test re-setting the current status reports no change"""
        complaint = make_complaint(Status.IN_PROGRESS)
        before = complaint.updated_at

        outcome = lifecycle.apply_update(complaint, staff_for(complaint), status=Status.IN_PROGRESS)

        assert outcome.status_changed is False
        assert complaint.updated_at == before

    @pytest.mark.parametrize("remarks", ["", "   "])
    def test_blank_remarks_alone_rejected(self, remarks):
        """Test blank remarks without a status are not a change"""
        complaint = make_complaint()
        complaint.remarks = "Waiting for parts"

        with pytest.raises(NoChangesSpecified):
            lifecycle.apply_update(complaint, admin(), remarks=remarks)

        assert complaint.remarks == "Waiting for parts"

    def test_blank_remarks_kept_on_status_change(self):
        """Test blank remarks next to a status change leave remarks as they were"""
        complaint = make_complaint()
        complaint.remarks = "Waiting for parts"

        lifecycle.apply_update(complaint, admin(), status=Status.IN_PROGRESS, remarks=" ")

        assert complaint.status == Status.IN_PROGRESS
        assert complaint.remarks == "Waiting for parts"

    def test_same_status_with_new_remarks(self):
        """Test an unchanged status still records new remarks"""
        complaint = make_complaint(Status.IN_PROGRESS)

        outcome = lifecycle.apply_update(
            complaint, staff_for(complaint), status=Status.IN_PROGRESS, remarks="Technician on site"
        )

        assert outcome.status_changed is False
        assert outcome.remarks_changed is True
        assert complaint.remarks == "Technician on site"


class TestConfirmation:
    """Test student confirmation"""

    def test_owner_confirms_pending(self):
        """Test the owner moves pending verification to resolved"""
        complaint = make_complaint(Status.PENDING_VERIFICATION)

        outcome = lifecycle.confirm(complaint, owner_of(complaint))

        assert complaint.status == Status.RESOLVED
        assert outcome.previous_status == Status.PENDING_VERIFICATION

    @pytest.mark.parametrize("start", [Status.OPEN, Status.IN_PROGRESS, Status.RESOLVED])
    def test_confirm_requires_pending(self, start):
        """Test confirmation only works from pending verification"""
        complaint = make_complaint(start)

        with pytest.raises(InvalidTransition):
            lifecycle.confirm(complaint, owner_of(complaint))

        assert complaint.status == start

    def test_non_owner_cannot_confirm(self):
        """Test another student cannot confirm"""
        complaint = make_complaint(Status.PENDING_VERIFICATION)
        stranger = Actor(user_id=uuid4(), role=UserRole.STUDENT)

        with pytest.raises(AccessDenied):
            lifecycle.confirm(complaint, stranger)

        assert complaint.status == Status.PENDING_VERIFICATION
