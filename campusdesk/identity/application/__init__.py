"""
Identity Application Layer
==========================

Contains:
- Services: AuthService, UserService
- DTOs: Data transfer objects for API serialization
- Repository and port interfaces
"""

from campusdesk.identity.application.dto import (
    RegisterRequest,
    LoginRequest,
    UpdateUserRequest,
    UserResponse,
    StaffResponse,
    AuthResponse,
    UserEnvelope,
    UserListResponse,
    StaffListResponse,
)
from campusdesk.identity.application.services import (
    AuthService,
    UserService,
    AuthResult,
    IUserRepository,
    ITokenService,
    IPasswordHasher,
    ICategoryDirectory,
    ISubmissionCounter,
    UNSET,
)

__all__ = [
    # DTOs
    "RegisterRequest",
    "LoginRequest",
    "UpdateUserRequest",
    "UserResponse",
    "StaffResponse",
    "AuthResponse",
    "UserEnvelope",
    "UserListResponse",
    "StaffListResponse",
    # Services
    "AuthService",
    "UserService",
    "AuthResult",
    "UNSET",
    # Interfaces
    "IUserRepository",
    "ITokenService",
    "IPasswordHasher",
    "ICategoryDirectory",
    "ISubmissionCounter",
]
