"""
Identity Controllers (API Routes)
=================================

FastAPI routes for authentication and user administration.

Controllers delegate to application services.
"""

import secrets
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.responses import JSONResponse, RedirectResponse

from campusdesk.config import UserRole, settings
from campusdesk.core import Actor, ApplicationException, AuthenticationError
from campusdesk.identity.application import (
    UNSET,
    AuthResponse,
    AuthResult,
    AuthService,
    LoginRequest,
    RegisterRequest,
    StaffListResponse,
    StaffResponse,
    UpdateUserRequest,
    UserEnvelope,
    UserListResponse,
    UserResponse,
    UserService,
)
from campusdesk.identity.domain import User
from campusdesk.identity.infrastructure import GoogleOAuthClient
from campusdesk.identity.interfaces.dependencies import (
    get_actor,
    get_auth_service,
    get_current_user,
    get_oauth_client,
    get_user_service,
)
from campusdesk.shared.api.rate_limit import limiter
from campusdesk.shared.api.responses import error_body, ok
from campusdesk.shared.api.schemas import Pagination
from campusdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

auth_router = APIRouter(prefix="/auth", tags=["Auth"])
users_router = APIRouter(prefix="/users", tags=["Users"])

OAUTH_STATE_COOKIE = "oauthState"


# ========== Cookie helpers ==========

def _cookie_options() -> dict:
    production = settings.environment == "production"
    return {
        "httponly": True,
        "secure": production,
        "samesite": "none" if production else "lax",
        "path": "/",
    }


def set_refresh_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        settings.refresh_cookie_name,
        token,
        max_age=settings.refresh_token_expire_days * 24 * 60 * 60,
        **_cookie_options(),
    )


def clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(settings.refresh_cookie_name, **_cookie_options())


def _auth_payload(result: AuthResult) -> AuthResponse:
    return AuthResponse(user=UserResponse.from_entity(result.user), access_token=result.access_token)


# ========== Auth Routes ==========

@auth_router.post("/register", status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.auth_rate_limit)
async def register(
    request: Request,
    response: Response,
    payload: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
):
    """Register a student account and start a session."""
    result = await service.register(payload.name, payload.email, payload.password)
    set_refresh_cookie(response, result.refresh_token)
    return ok(_auth_payload(result), "Registration successful.")


@auth_router.post("/login")
@limiter.limit(settings.auth_rate_limit)
async def login(
    request: Request,
    response: Response,
    payload: LoginRequest,
    service: AuthService = Depends(get_auth_service),
):
    result = await service.login(payload.email, payload.password)
    set_refresh_cookie(response, result.refresh_token)
    return ok(_auth_payload(result), "Login successful.")


@auth_router.post("/refresh")
async def refresh(
    request: Request,
    response: Response,
    service: AuthService = Depends(get_auth_service),
):
    """
    Issue a fresh access token from the http-only refresh cookie.

    The refresh cookie is rotated on success and cleared on failure.
    """
    token = request.cookies.get(settings.refresh_cookie_name)
    try:
        result = await service.refresh(token)
    except AuthenticationError as e:
        message = e.message if not token else "Invalid refresh token."
        failure = JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content=error_body(message))
        clear_refresh_cookie(failure)
        return failure

    set_refresh_cookie(response, result.refresh_token)
    return ok(_auth_payload(result))


@auth_router.post("/logout")
async def logout(response: Response):
    clear_refresh_cookie(response)
    return ok(message="Logged out successfully.")


@auth_router.get("/me")
async def me(user: User = Depends(get_current_user)):
    return ok(UserEnvelope(user=UserResponse.from_entity(user)))


@auth_router.get("/google")
async def google_login(oauth: GoogleOAuthClient = Depends(get_oauth_client)):
    """Redirect to Google's consent screen."""
    state = secrets.token_urlsafe(16)
    redirect = RedirectResponse(oauth.authorization_url(state), status_code=status.HTTP_302_FOUND)
    redirect.set_cookie(OAUTH_STATE_COOKIE, state, max_age=600, **_cookie_options())
    return redirect


@auth_router.get("/google/callback")
async def google_callback(
    request: Request,
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    service: AuthService = Depends(get_auth_service),
    oauth: GoogleOAuthClient = Depends(get_oauth_client),
):
    """
    Complete Google login and hand the access token to the client app.

    Any failure redirects to the client login page with an error flag.
    """
    failure_url = f"{settings.client_url}/login?error=oauth_failed"

    expected_state = request.cookies.get(OAUTH_STATE_COOKIE)
    if not code or not state or state != expected_state:
        logger.warning("Google callback rejected", extra={"has_code": bool(code)})
        return RedirectResponse(failure_url, status_code=status.HTTP_302_FOUND)

    try:
        profile = await oauth.fetch_profile(code)
        result = await service.federated_login(profile)
    except ApplicationException as e:
        logger.warning("Google login failed", extra={"error": e.message})
        return RedirectResponse(failure_url, status_code=status.HTTP_302_FOUND)

    redirect = RedirectResponse(
        f"{settings.client_url}/auth/google/callback?token={result.access_token}",
        status_code=status.HTTP_302_FOUND,
    )
    set_refresh_cookie(redirect, result.refresh_token)
    redirect.delete_cookie(OAUTH_STATE_COOKIE, **_cookie_options())
    return redirect


# ========== User Administration Routes ==========

@users_router.get("")
async def list_users(
    role: Optional[UserRole] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    actor: Actor = Depends(get_actor),
    service: UserService = Depends(get_user_service),
):
    users, total = await service.list_users(actor, role, page, limit)
    return ok(UserListResponse(
        users=[UserResponse.from_entity(u) for u in users],
        pagination=Pagination.build(total, page, limit),
    ))


@users_router.get("/staff")
async def list_staff(
    actor: Actor = Depends(get_actor),
    service: UserService = Depends(get_user_service),
):
    staff = await service.list_staff(actor)
    return ok(StaffListResponse(staff=[
        StaffResponse(
            id=user.id,
            name=user.name,
            email=user.email,
            assigned_category=user.assigned_category_id,
            assigned_category_name=category_name,
        )
        for user, category_name in staff
    ]))


@users_router.put("/{user_id}")
async def update_user(
    user_id: UUID,
    payload: UpdateUserRequest,
    actor: Actor = Depends(get_actor),
    service: UserService = Depends(get_user_service),
):
    assigned = payload.assigned_category if "assigned_category" in payload.model_fields_set else UNSET
    user = await service.update_user(
        actor,
        user_id,
        name=payload.name,
        role=payload.role,
        assigned_category_id=assigned,
    )
    return ok(UserEnvelope(user=UserResponse.from_entity(user)), "User updated successfully.")


@users_router.delete("/{user_id}")
async def delete_user(
    user_id: UUID,
    actor: Actor = Depends(get_actor),
    service: UserService = Depends(get_user_service),
):
    await service.delete_user(actor, user_id)
    return ok(message="User deleted successfully.")
