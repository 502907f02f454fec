"""
Integration Tests for Authentication Endpoints
Tests the register / login / refresh / logout flow and /me
"""
import pytest
from faker import Faker
from httpx import AsyncClient

from campusdesk.config import UserRole, settings
from campusdesk.identity.domain import User
from campusdesk.identity.infrastructure import SQLAlchemyUserRepository
from campusdesk.infrastructure.database import get_session_context

fake = Faker()

COOKIE = settings.refresh_cookie_name


def registration(**overrides) -> dict:
    payload = {"name": fake.name(), "email": fake.unique.email(), "password": "secret123"}
    payload.update(overrides)
    return payload


class TestRegister:
    """Test self-registration"""

    @pytest.mark.asyncio
    async def test_register_creates_student(self, client: AsyncClient):
        """Test registering returns a student, an access token and a refresh cookie"""
        payload = registration(role="admin")

        response = await client.post("/api/auth/register", json=payload)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Registration successful."
        assert body["data"]["user"]["role"] == "student"
        assert body["data"]["user"]["email"] == payload["email"].lower()
        assert body["data"]["accessToken"]
        assert "password" not in body["data"]["user"]
        assert COOKIE in response.cookies

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, client: AsyncClient):
        """Test a second account with the same email is rejected"""
        payload = registration()
        await client.post("/api/auth/register", json=payload)

        response = await client.post(
            "/api/auth/register", json=registration(email=payload["email"].upper())
        )

        assert response.status_code == 409
        assert response.json() == {"success": False, "message": "User with this email already exists."}

    @pytest.mark.asyncio
    async def test_register_validation(self, client: AsyncClient):
        """Test malformed input is reported as one 400 message"""
        response = await client.post(
            "/api/auth/register", json={"name": "A", "email": "nope", "password": "123"}
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert "email" in body["message"]
        assert "password" in body["message"]


class TestLogin:
    """Test password login"""

    @pytest.mark.asyncio
    async def test_login_success(self, client: AsyncClient, make_user):
        """Test valid credentials start a session"""
        user = await make_user(UserRole.CATEGORY_STAFF)

        response = await client.post("/api/auth/login", json={"email": user.email, "password": "secret123"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["user"]["id"] == str(user.id)
        assert data["user"]["role"] == "category_staff"
        assert COOKIE in response.cookies

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client: AsyncClient, student):
        """Test a wrong password"""
        response = await client.post("/api/auth/login", json={"email": student.email, "password": "wrong-pass"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password."

    @pytest.mark.asyncio
    async def test_login_unknown_email(self, client: AsyncClient):
        """Test unknown accounts get the same message as wrong passwords"""
        response = await client.post(
            "/api/auth/login", json={"email": fake.unique.email(), "password": "secret123"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password."

    @pytest.mark.asyncio
    async def test_login_federated_account(self, client: AsyncClient, database):
        """Test accounts without a password are pointed at Google login"""
        async with get_session_context() as session:
            user = await SQLAlchemyUserRepository(session).add(
                User(name="Gina", email="gina@campus.edu", google_id="g-123")
            )

        response = await client.post("/api/auth/login", json={"email": user.email, "password": "whatever"})

        assert response.status_code == 401
        assert "Google" in response.json()["message"]


class TestSession:
    """Test refresh, logout and /me"""

    @pytest.mark.asyncio
    async def test_refresh_with_cookie(self, client: AsyncClient, student):
        """Test the refresh cookie yields a new access token"""
        login = await client.post("/api/auth/login", json={"email": student.email, "password": "secret123"})
        client.cookies.clear()
        client.cookies.set(COOKIE, login.cookies[COOKIE])

        response = await client.post("/api/auth/refresh")

        assert response.status_code == 200
        assert response.json()["data"]["accessToken"]
        assert response.json()["data"]["user"]["id"] == str(student.id)
        assert COOKIE in response.cookies

    @pytest.mark.asyncio
    async def test_refresh_without_cookie(self, client: AsyncClient):
        """Test refresh requires the cookie"""
        client.cookies.clear()

        response = await client.post("/api/auth/refresh")

        assert response.status_code == 401
        assert response.json()["message"] == "No refresh token provided."

    @pytest.mark.asyncio
    async def test_refresh_invalid_cookie_cleared(self, client: AsyncClient, database):
        """Test an invalid refresh cookie is rejected and cleared"""
        client.cookies.clear()
        client.cookies.set(COOKIE, "forged")

        response = await client.post("/api/auth/refresh")

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid refresh token."
        assert COOKIE in response.headers.get("set-cookie", "")

    @pytest.mark.asyncio
    async def test_logout(self, client: AsyncClient):
        """Test logout clears the cookie"""
        response = await client.post("/api/auth/logout")

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Logged out successfully."}
        assert COOKIE in response.headers.get("set-cookie", "")

    @pytest.mark.asyncio
    async def test_me(self, client: AsyncClient, staff, category, auth_headers):
        """Test /me returns the caller with their category"""
        response = await client.get("/api/auth/me", headers=auth_headers(staff))

        assert response.status_code == 200
        user = response.json()["data"]["user"]
        assert user["email"] == staff.email
        assert user["assignedCategory"] == str(category.id)

    @pytest.mark.asyncio
    async def test_me_requires_token(self, client: AsyncClient):
        """Test protected routes reject anonymous callers"""
        response = await client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["message"] == "Access denied. No token provided."

    @pytest.mark.asyncio
    async def test_me_rejects_refresh_token(self, client: AsyncClient, student):
        """Test a refresh token is not a bearer credential"""
        login = await client.post("/api/auth/login", json={"email": student.email, "password": "secret123"})

        response = await client.get(
            "/api/auth/me", headers={"Authorization": f"Bearer {login.cookies[COOKIE]}"}
        )

        assert response.status_code == 401


class TestGoogleLogin:
    """Test the federated login redirects"""

    @pytest.mark.asyncio
    async def test_callback_without_state_redirects_to_login(self, client: AsyncClient):
        """Test a callback that fails state validation goes back to the client login page"""
        response = await client.get("/api/auth/google/callback?code=abc&state=xyz")

        assert response.status_code == 302
        assert response.headers["location"] == f"{settings.client_url}/login?error=oauth_failed"

    @pytest.mark.asyncio
    async def test_google_not_configured(self, client: AsyncClient):
        """Test the consent redirect reports an unconfigured provider"""
        response = await client.get("/api/auth/google")

        assert response.status_code == 503
        assert response.json()["message"].startswith("Google OAuth:")
