"""
Identity Dependencies
=====================

FastAPI dependencies resolving the authenticated user and wiring
identity services.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from campusdesk.core import Actor, AuthenticationError
from campusdesk.identity.application import AuthService, UserService
from campusdesk.identity.domain import User
from campusdesk.identity.infrastructure import (
    BcryptPasswordHasher,
    GoogleOAuthClient,
    JWTTokenService,
    SQLAlchemyUserRepository,
)
from campusdesk.infrastructure.database import get_session

bearer_scheme = HTTPBearer(auto_error=False)

token_service = JWTTokenService()
password_hasher = BcryptPasswordHasher()


def get_token_service() -> JWTTokenService:
    return token_service


def get_oauth_client() -> GoogleOAuthClient:
    return GoogleOAuthClient()


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_session),
    tokens: JWTTokenService = Depends(get_token_service),
) -> User:
    """
    Resolve the bearer credential to a persisted user.

    Raises:
        AuthenticationError: missing, invalid or expired token, or the
            user no longer exists
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access denied. No token provided.")

    claims = tokens.verify_access_token(credentials.credentials)
    user = await SQLAlchemyUserRepository(session).get_by_id(claims.user_id)
    if user is None:
        raise AuthenticationError("User not found. Token invalid.")
    return user


async def get_actor(user: User = Depends(get_current_user)) -> Actor:
    return user.to_actor()


def get_auth_service(
    session: AsyncSession = Depends(get_session),
    tokens: JWTTokenService = Depends(get_token_service),
) -> AuthService:
    return AuthService(SQLAlchemyUserRepository(session), tokens, password_hasher)


def get_user_service(session: AsyncSession = Depends(get_session)) -> UserService:
    from campusdesk.complaints.infrastructure.repositories import (
        SQLAlchemyCategoryRepository,
        SQLAlchemyComplaintRepository,
    )

    return UserService(
        SQLAlchemyUserRepository(session),
        SQLAlchemyCategoryRepository(session),
        SQLAlchemyComplaintRepository(session),
    )
