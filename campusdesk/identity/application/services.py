"""
Identity Application Services
=============================

Registration, login, token renewal, federated login and user
administration.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from campusdesk.config import UserRole
from campusdesk.core import (
    Actor,
    AuthenticationError,
    ConflictError,
    Operation,
    ResourceNotFoundException,
    ValidationException,
    access_policy,
)
from campusdesk.identity.domain import FederatedProfile, User
from campusdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

UNSET = object()


# ========== Repository / Port Interfaces ==========

class IUserRepository(ABC):
    """Interface for user data access."""

    @abstractmethod
    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get user by ID."""

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by (normalized) email."""

    @abstractmethod
    async def get_by_google_id(self, google_id: str) -> Optional[User]:
        """Get user by federated identity."""

    @abstractmethod
    async def add(self, user: User) -> User:
        """Persist a new user."""

    @abstractmethod
    async def update(self, user: User) -> User:
        """Persist changes to an existing user."""

    @abstractmethod
    async def delete(self, user_id: UUID) -> None:
        """Hard-delete a user."""

    @abstractmethod
    async def list(self, role: Optional[UserRole], page: int, limit: int) -> Tuple[List[User], int]:
        """Page of users, newest first, with total count."""

    @abstractmethod
    async def list_staff(self) -> List[User]:
        """All category staff, sorted by name."""

    @abstractmethod
    async def commit(self) -> None:
        """Commit the unit of work."""


class ITokenService(ABC):
    """Issues and verifies access/refresh credentials."""

    @abstractmethod
    def issue_access_token(self, user: User) -> str:
        """Short-lived bearer credential."""

    @abstractmethod
    def issue_refresh_token(self, user: User) -> str:
        """Long-lived renewal credential."""

    @abstractmethod
    def verify_refresh_token(self, token: str) -> UUID:
        """Return the user id, or raise AuthenticationError."""


class IPasswordHasher(ABC):

    @abstractmethod
    def hash(self, password: str) -> str:
        """Hash a plain password."""

    @abstractmethod
    def verify(self, password: str, password_hash: str) -> bool:
        """Check a plain password against a hash."""


class ICategoryDirectory(ABC):
    """Category lookups needed when administering staff accounts."""

    @abstractmethod
    async def exists(self, category_id: UUID) -> bool:
        """Whether the category exists."""

    @abstractmethod
    async def bind_staff(self, category_id: UUID, user_id: UUID) -> Optional[UUID]:
        """Bind ``user_id`` as the category's staff; return the previously bound user id."""

    @abstractmethod
    async def release_staff(self, user_id: UUID) -> None:
        """Clear every category binding that points at ``user_id``."""

    @abstractmethod
    async def names(self, category_ids: Iterable[UUID]) -> Dict[UUID, str]:
        """Map category ids to names."""


class ISubmissionCounter(ABC):

    @abstractmethod
    async def count_by_student(self, user_id: UUID) -> int:
        """Number of complaints submitted by the user."""


# ========== Results ==========

@dataclass
class AuthResult:
    """A user plus freshly issued credentials."""
    user: User
    access_token: str
    refresh_token: str


# ========== Application Services ==========

class AuthService:
    """
    Authentication use cases.

    Access credentials are short-lived bearer tokens; refresh credentials
    are carried in an http-only cookie by the interface layer.
    """

    INVALID_CREDENTIALS = "Invalid email or password."

    def __init__(
        self,
        users: IUserRepository,
        tokens: ITokenService,
        hasher: IPasswordHasher,
    ):
        self._users = users
        self._tokens = tokens
        self._hasher = hasher

    def _issue(self, user: User) -> AuthResult:
        return AuthResult(
            user=user,
            access_token=self._tokens.issue_access_token(user),
            refresh_token=self._tokens.issue_refresh_token(user),
        )

    async def register(self, name: str, email: str, password: str) -> AuthResult:
        """Create a student account. Self-registration never grants other roles."""
        if await self._users.get_by_email(email) is not None:
            raise ConflictError("User with this email already exists.")

        user = User(
            name=name,
            email=email,
            role=UserRole.STUDENT,
            password_hash=self._hasher.hash(password),
        )
        user = await self._users.add(user)
        await self._users.commit()

        logger.info("User registered", extra={"user_id": str(user.id)})
        return self._issue(user)

    async def login(self, email: str, password: str) -> AuthResult:
        user = await self._users.get_by_email(email)
        if user is None:
            raise AuthenticationError(self.INVALID_CREDENTIALS)

        if not user.has_password:
            raise AuthenticationError("This account uses Google login. Please sign in with Google.")

        if not self._hasher.verify(password, user.password_hash):
            raise AuthenticationError(self.INVALID_CREDENTIALS)

        return self._issue(user)

    async def refresh(self, refresh_token: Optional[str]) -> AuthResult:
        """Rotate credentials from a valid refresh token."""
        if not refresh_token:
            raise AuthenticationError("No refresh token provided.")

        user_id = self._tokens.verify_refresh_token(refresh_token)
        user = await self._users.get_by_id(user_id)
        if user is None:
            raise AuthenticationError("User not found.")

        return self._issue(user)

    async def federated_login(self, profile: FederatedProfile) -> AuthResult:
        """
        Find or create the user behind a federated identity.

        Lookup order: provider id, then email (linking the provider id to
        the existing account). New accounts are students without a password.
        """
        user = await self._users.get_by_google_id(profile.provider_id)

        if user is None:
            user = await self._users.get_by_email(profile.email)
            if user is not None:
                user.google_id = profile.provider_id
                user.touch()
                user = await self._users.update(user)
            else:
                user = await self._users.add(User(
                    name=profile.name or profile.email.split("@")[0],
                    email=profile.email,
                    role=UserRole.STUDENT,
                    google_id=profile.provider_id,
                ))
                logger.info("User created from federated login", extra={"user_id": str(user.id)})

        await self._users.commit()
        return self._issue(user)

    async def get_user(self, user_id: UUID) -> User:
        user = await self._users.get_by_id(user_id)
        if user is None:
            raise ResourceNotFoundException("User", str(user_id))
        return user


class UserService:
    """User administration, keeping staff/category bindings in sync both ways."""

    def __init__(
        self,
        users: IUserRepository,
        categories: ICategoryDirectory,
        submissions: ISubmissionCounter,
    ):
        self._users = users
        self._categories = categories
        self._submissions = submissions

    async def list_users(
        self,
        actor: Actor,
        role: Optional[UserRole] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[User], int]:
        access_policy.authorize(actor, Operation.LIST_USERS)
        return await self._users.list(role, page, limit)

    async def list_staff(self, actor: Actor) -> List[Tuple[User, Optional[str]]]:
        """Staff accounts with the name of their assigned category."""
        access_policy.authorize(actor, Operation.LIST_STAFF)
        staff = await self._users.list_staff()
        names = await self._categories.names(
            u.assigned_category_id for u in staff if u.assigned_category_id
        )
        return [(u, names.get(u.assigned_category_id)) for u in staff]

    async def update_user(
        self,
        actor: Actor,
        user_id: UUID,
        name: Optional[str] = None,
        role: Optional[UserRole] = None,
        assigned_category_id=UNSET,
    ) -> User:
        """
        Update name, role and/or category assignment.

        Leaving the staff role releases the category binding. Assigning a
        category requires the (resulting) role to be category staff, and
        displaces any staff member previously bound to that category.
        """
        access_policy.authorize(actor, Operation.MANAGE_USERS)

        user = await self._users.get_by_id(user_id)
        if user is None:
            raise ResourceNotFoundException("User", str(user_id))

        if name:
            user.name = name.strip()

        if role is not None and role != user.role:
            user.role = UserRole(role)
            if user.role != UserRole.CATEGORY_STAFF and user.assigned_category_id is not None:
                await self._categories.release_staff(user.id)
                user.assigned_category_id = None

        if assigned_category_id is not UNSET:
            await self._reassign(user, assigned_category_id)

        user.touch()
        user = await self._users.update(user)
        await self._users.commit()

        logger.info("User updated", extra={"user_id": str(user.id), "role": user.role.value})
        return user

    async def _reassign(self, user: User, category_id: Optional[UUID]) -> None:
        if category_id is None:
            if user.assigned_category_id is not None:
                await self._categories.release_staff(user.id)
            user.assigned_category_id = None
            return

        if user.role != UserRole.CATEGORY_STAFF:
            raise ValidationException("Only category staff can be assigned to a category.")

        if not await self._categories.exists(category_id):
            raise ResourceNotFoundException("Category", str(category_id))

        if user.assigned_category_id == category_id:
            return

        await self._categories.release_staff(user.id)
        previous_staff_id = await self._categories.bind_staff(category_id, user.id)
        user.assigned_category_id = category_id

        if previous_staff_id is not None and previous_staff_id != user.id:
            previous = await self._users.get_by_id(previous_staff_id)
            if previous is not None:
                previous.assigned_category_id = None
                previous.touch()
                await self._users.update(previous)

    async def delete_user(self, actor: Actor, user_id: UUID) -> None:
        access_policy.authorize(actor, Operation.MANAGE_USERS)

        if user_id == actor.user_id:
            raise ValidationException("You cannot delete your own account.")

        user = await self._users.get_by_id(user_id)
        if user is None:
            raise ResourceNotFoundException("User", str(user_id))

        submitted = await self._submissions.count_by_student(user_id)
        if submitted > 0:
            raise ConflictError(
                f"Cannot delete user. {submitted} complaint(s) were submitted by this account."
            )

        await self._categories.release_staff(user_id)
        await self._users.delete(user_id)
        await self._users.commit()

        logger.info("User deleted", extra={"user_id": str(user_id)})
