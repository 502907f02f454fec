"""
Identity Application DTOs
=========================

Pydantic models for request/response validation.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from campusdesk.config import UserRole
from campusdesk.shared.api.schemas import CamelModel, Pagination

EMAIL_PATTERN = r"^\S+@\S+\.\S+$"


# ========== Request DTOs ==========

class RegisterRequest(CamelModel):
    """Self-registration. The role is always student."""
    name: str = Field(..., min_length=2, max_length=100)
    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6, max_length=128)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class LoginRequest(CamelModel):
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class UpdateUserRequest(CamelModel):
    """Admin update. ``assignedCategory: null`` explicitly unassigns."""
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    role: Optional[UserRole] = None
    assigned_category: Optional[UUID] = None


# ========== Response DTOs ==========

class UserResponse(CamelModel):
    id: UUID
    name: str
    email: str
    role: UserRole
    assigned_category: Optional[UUID] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, user) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            assigned_category=user.assigned_category_id,
            created_at=user.created_at,
        )


class StaffResponse(CamelModel):
    id: UUID
    name: str
    email: str
    assigned_category: Optional[UUID] = None
    assigned_category_name: Optional[str] = None


class AuthResponse(CamelModel):
    user: UserResponse
    access_token: str


class UserEnvelope(CamelModel):
    user: UserResponse


class UserListResponse(CamelModel):
    users: List[UserResponse]
    pagination: Pagination


class StaffListResponse(CamelModel):
    staff: List[StaffResponse]
