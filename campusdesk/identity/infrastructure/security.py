"""
Credential Infrastructure
=========================

bcrypt password hashing and JWT access/refresh tokens (python-jose).

Access and refresh tokens are signed with different secrets, so a
refresh token can never be replayed as a bearer credential.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from campusdesk.config import UserRole, settings
from campusdesk.core import AuthenticationError
from campusdesk.identity.application import IPasswordHasher, ITokenService
from campusdesk.identity.domain import User

ACCESS = "access"
REFRESH = "refresh"


class BcryptPasswordHasher(IPasswordHasher):
    """Hash passwords with configurable rounds."""

    def __init__(self, rounds: Optional[int] = None):
        self._rounds = rounds or settings.bcrypt_rounds

    def hash(self, password: str) -> str:
        # Bcrypt has a 72 byte limit
        password_bytes = password.encode("utf-8")[:72]
        return bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=self._rounds)).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        if not password_hash:
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8")[:72], password_hash.encode("utf-8"))
        except ValueError:
            return False


@dataclass(frozen=True)
class AccessClaims:
    """Verified contents of an access token."""
    user_id: UUID
    role: UserRole


class JWTTokenService(ITokenService):
    """HS256 JWTs carrying the user id (and role, for access tokens)."""

    def __init__(
        self,
        access_secret: Optional[str] = None,
        refresh_secret: Optional[str] = None,
        algorithm: Optional[str] = None,
    ):
        self._access_secret = access_secret or settings.jwt_secret
        self._refresh_secret = refresh_secret or settings.jwt_refresh_secret
        self._algorithm = algorithm or settings.jwt_algorithm

    def _encode(self, claims: dict, secret: str, expires_in: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {**claims, "iat": now, "exp": now + expires_in}
        return jwt.encode(payload, secret, algorithm=self._algorithm)

    def _decode(self, token: str, secret: str, token_type: str) -> dict:
        try:
            payload = jwt.decode(token, secret, algorithms=[self._algorithm])
        except ExpiredSignatureError:
            raise AuthenticationError("Token expired.")
        except JWTError:
            raise AuthenticationError("Invalid token.")

        if payload.get("type") != token_type:
            raise AuthenticationError("Invalid token type.")
        return payload

    def issue_access_token(self, user: User) -> str:
        return self._encode(
            {"sub": str(user.id), "role": user.role.value, "type": ACCESS},
            self._access_secret,
            timedelta(minutes=settings.access_token_expire_minutes),
        )

    def issue_refresh_token(self, user: User) -> str:
        return self._encode(
            {"sub": str(user.id), "type": REFRESH},
            self._refresh_secret,
            timedelta(days=settings.refresh_token_expire_days),
        )

    def verify_access_token(self, token: str) -> AccessClaims:
        payload = self._decode(token, self._access_secret, ACCESS)
        try:
            return AccessClaims(user_id=UUID(payload["sub"]), role=UserRole(payload["role"]))
        except (KeyError, ValueError):
            raise AuthenticationError("Invalid token.")

    def verify_refresh_token(self, token: str) -> UUID:
        payload = self._decode(token, self._refresh_secret, REFRESH)
        try:
            return UUID(payload["sub"])
        except (KeyError, ValueError):
            raise AuthenticationError("Invalid refresh token.")
