"""
Identity Infrastructure Layer
=============================

Contains:
- Models: SQLAlchemy ORM models
- Repositories: SQLAlchemy implementations
- Security: bcrypt hashing, JWT tokens
- OAuth: Google login client
"""

from campusdesk.identity.infrastructure.repositories import SQLAlchemyUserRepository
from campusdesk.identity.infrastructure.security import (
    AccessClaims,
    BcryptPasswordHasher,
    JWTTokenService,
)
from campusdesk.identity.infrastructure.oauth import GoogleOAuthClient

__all__ = [
    "SQLAlchemyUserRepository",
    "AccessClaims",
    "BcryptPasswordHasher",
    "JWTTokenService",
    "GoogleOAuthClient",
]
