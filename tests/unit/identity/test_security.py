"""
Unit Tests for Credential Infrastructure
Tests for: password hashing, access/refresh tokens
"""
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from jose import jwt

from campusdesk.config import UserRole, settings
from campusdesk.core import AuthenticationError
from campusdesk.identity.domain import User
from campusdesk.identity.infrastructure import BcryptPasswordHasher, JWTTokenService


@pytest.fixture
def hasher() -> BcryptPasswordHasher:
    return BcryptPasswordHasher(rounds=4)


@pytest.fixture
def tokens() -> JWTTokenService:
    return JWTTokenService(access_secret="access-secret", refresh_secret="refresh-secret")


@pytest.fixture
def user() -> User:
    return User(name="Dana Staff", email="Dana@Campus.edu", role=UserRole.CATEGORY_STAFF)


class TestPasswordHashing:
    """Test bcrypt hashing"""

    def test_hash_differs_from_password(self, hasher):
        """Test the hash never equals the password"""
        hashed = hasher.hash("secret123")

        assert hashed != "secret123"
        assert hashed.startswith("$2")

    def test_verify_correct(self, hasher):
        """Test verifying the right password"""
        assert hasher.verify("secret123", hasher.hash("secret123")) is True

    def test_verify_incorrect(self, hasher):
        """Test verifying a wrong password"""
        assert hasher.verify("wrong", hasher.hash("secret123")) is False

    def test_verify_without_hash(self, hasher):
        """Test accounts without a password never verify"""
        assert hasher.verify("anything", "") is False
        assert hasher.verify("anything", None) is False

    def test_verify_malformed_hash(self, hasher):
        """Test a corrupt stored hash is a failed verification"""
        assert hasher.verify("secret123", "not-a-bcrypt-hash") is False

    def test_long_password_truncated(self, hasher):
        """Test passwords beyond bcrypt's 72 byte limit still verify"""
        long_password = "a" * 100

        assert hasher.verify(long_password, hasher.hash(long_password)) is True


class TestTokens:
    """Test JWT access and refresh tokens"""

    def test_access_round_trip(self, tokens, user):
        """Test access claims carry the user id and role"""
        claims = tokens.verify_access_token(tokens.issue_access_token(user))

        assert claims.user_id == user.id
        assert claims.role == UserRole.CATEGORY_STAFF

    def test_refresh_round_trip(self, tokens, user):
        """Test refresh tokens resolve to the user id"""
        assert tokens.verify_refresh_token(tokens.issue_refresh_token(user)) == user.id

    def test_refresh_not_accepted_as_access(self, tokens, user):
        """Test a refresh token can never be used as a bearer credential"""
        with pytest.raises(AuthenticationError):
            tokens.verify_access_token(tokens.issue_refresh_token(user))

    def test_access_not_accepted_as_refresh(self, tokens, user):
        """Test an access token cannot renew a session"""
        with pytest.raises(AuthenticationError):
            tokens.verify_refresh_token(tokens.issue_access_token(user))

    def test_expired_token(self, tokens, user):
        """Test expired tokens are rejected with a distinct message"""
        past = datetime.now(timezone.utc) - timedelta(hours=1)
        token = jwt.encode(
            {"sub": str(user.id), "role": "student", "type": "access", "iat": past, "exp": past},
            "access-secret",
            algorithm=settings.jwt_algorithm,
        )

        with pytest.raises(AuthenticationError) as exc_info:
            tokens.verify_access_token(token)

        assert exc_info.value.message == "Token expired."

    def test_wrong_secret(self, tokens, user):
        """Test tokens signed with another secret are rejected"""
        other = JWTTokenService(access_secret="someone-else", refresh_secret="x")

        with pytest.raises(AuthenticationError) as exc_info:
            tokens.verify_access_token(other.issue_access_token(user))

        assert exc_info.value.message == "Invalid token."

    def test_garbage_token(self, tokens):
        """Test non-JWT input"""
        with pytest.raises(AuthenticationError):
            tokens.verify_access_token("not.a.token")

    def test_missing_subject(self, tokens):
        """Test tokens without a subject are rejected"""
        token = jwt.encode(
            {"role": "student", "type": "access", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            "access-secret",
            algorithm=settings.jwt_algorithm,
        )

        with pytest.raises(AuthenticationError):
            tokens.verify_access_token(token)


class TestUserEntity:
    """Test identity normalization"""

    def test_email_normalized(self, user):
        """Test emails are stored lower-case"""
        assert user.email == "dana@campus.edu"

    def test_actor_carries_category_only_for_staff(self):
        """Test non-staff actors never carry a category"""
        category_id = uuid4()
        staff = User(name="S", email="s@campus.edu", role=UserRole.CATEGORY_STAFF, assigned_category_id=category_id)
        student = User(name="T", email="t@campus.edu", role=UserRole.STUDENT, assigned_category_id=category_id)

        assert staff.to_actor().assigned_category_id == category_id
        assert student.to_actor().assigned_category_id is None
