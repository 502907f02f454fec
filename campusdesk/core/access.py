"""
Access Control
==============

Stateless authorization for every operation the API exposes.

Two kinds of rule are combined:
- Role tables: which roles may invoke an operation at all.
- Resource rules: ownership of a complaint, or a staff member's
  assigned category matching the complaint's category.

Every denial carries a reason and is raised as ``AccessDenied``; callers
never receive a silently filtered result.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional
from uuid import UUID

from campusdesk.config import UserRole
from campusdesk.core.exceptions import AccessDenied


class Operation(str, Enum):
    """Operations subject to authorization."""
    SUBMIT_COMPLAINT = "submit_complaint"
    LIST_OWN_COMPLAINTS = "list_own_complaints"
    LIST_ASSIGNED_COMPLAINTS = "list_assigned_complaints"
    LIST_ALL_COMPLAINTS = "list_all_complaints"
    READ_COMPLAINT = "read_complaint"
    UPDATE_COMPLAINT = "update_complaint"
    CONFIRM_COMPLAINT = "confirm_complaint"
    LIST_CATEGORIES = "list_categories"
    MANAGE_CATEGORIES = "manage_categories"
    LIST_USERS = "list_users"
    LIST_STAFF = "list_staff"
    MANAGE_USERS = "manage_users"
    VIEW_ANALYTICS = "view_analytics"
    USE_CHATBOT = "use_chatbot"
    MANAGE_KNOWLEDGE = "manage_knowledge"


_ALL_ROLES = frozenset(UserRole)
_ADMIN = frozenset({UserRole.ADMIN})
_STAFF_OR_ADMIN = frozenset({UserRole.CATEGORY_STAFF, UserRole.ADMIN})

ROLE_TABLE: Dict[Operation, FrozenSet[UserRole]] = {
    Operation.SUBMIT_COMPLAINT: frozenset({UserRole.STUDENT}),
    Operation.LIST_OWN_COMPLAINTS: frozenset({UserRole.STUDENT}),
    Operation.LIST_ASSIGNED_COMPLAINTS: frozenset({UserRole.CATEGORY_STAFF}),
    Operation.LIST_ALL_COMPLAINTS: _ADMIN,
    Operation.READ_COMPLAINT: _ALL_ROLES,
    Operation.UPDATE_COMPLAINT: _STAFF_OR_ADMIN,
    Operation.CONFIRM_COMPLAINT: frozenset({UserRole.STUDENT}),
    Operation.LIST_CATEGORIES: _ALL_ROLES,
    Operation.MANAGE_CATEGORIES: _ADMIN,
    Operation.LIST_USERS: _ADMIN,
    Operation.LIST_STAFF: _STAFF_OR_ADMIN,
    Operation.MANAGE_USERS: _ADMIN,
    Operation.VIEW_ANALYTICS: _ADMIN,
    Operation.USE_CHATBOT: _ALL_ROLES,
    Operation.MANAGE_KNOWLEDGE: _ADMIN,
}


@dataclass(frozen=True)
class Actor:
    """Authenticated identity as seen by the authorization layer."""
    user_id: UUID
    role: UserRole
    assigned_category_id: Optional[UUID] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


@dataclass(frozen=True)
class AccessDecision:
    """Typed allow/deny result."""
    allowed: bool
    reason: Optional[str] = None

    def enforce(self) -> None:
        """Raise ``AccessDenied`` when the decision is a denial."""
        if not self.allowed:
            raise AccessDenied(self.reason or "Access denied.")


ALLOW = AccessDecision(True)


class AccessPolicy:
    """Evaluates role tables and per-resource ownership/category rules."""

    def __init__(self, role_table: Optional[Dict[Operation, FrozenSet[UserRole]]] = None):
        self._roles = role_table or ROLE_TABLE

    def evaluate(
        self,
        actor: Actor,
        operation: Operation,
        owner_id: Optional[UUID] = None,
        category_id: Optional[UUID] = None,
    ) -> AccessDecision:
        allowed_roles = self._roles.get(operation, frozenset())
        if actor.role not in allowed_roles:
            return AccessDecision(False, "Access denied. Insufficient permissions.")

        if operation == Operation.READ_COMPLAINT:
            if actor.is_admin or owner_id == actor.user_id:
                return ALLOW
            if self._staff_owns_category(actor, category_id):
                return ALLOW
            return AccessDecision(False, "Access denied.")

        if operation == Operation.UPDATE_COMPLAINT:
            if actor.is_admin or self._staff_owns_category(actor, category_id):
                return ALLOW
            return AccessDecision(
                False, "Access denied. This complaint belongs to a different category."
            )

        if operation == Operation.CONFIRM_COMPLAINT:
            if owner_id is not None and owner_id == actor.user_id:
                return ALLOW
            return AccessDecision(False, "Access denied. You can only confirm your own complaints.")

        if operation == Operation.LIST_ASSIGNED_COMPLAINTS and actor.assigned_category_id is None:
            return AccessDecision(False, "Access denied. No category is assigned to your account.")

        return ALLOW

    def authorize(
        self,
        actor: Actor,
        operation: Operation,
        owner_id: Optional[UUID] = None,
        category_id: Optional[UUID] = None,
    ) -> None:
        """Evaluate and raise ``AccessDenied`` on denial."""
        self.evaluate(actor, operation, owner_id, category_id).enforce()

    @staticmethod
    def _staff_owns_category(actor: Actor, category_id: Optional[UUID]) -> bool:
        return (
            actor.role == UserRole.CATEGORY_STAFF
            and actor.assigned_category_id is not None
            and actor.assigned_category_id == category_id
        )


access_policy = AccessPolicy()
