"""
Google OAuth Client
===================

Authorization-code flow against Google using httpx.
"""

from typing import Optional
from urllib.parse import urlencode

import httpx

from campusdesk.config import settings
from campusdesk.core import AuthenticationError, ExternalServiceUnavailable
from campusdesk.identity.domain import FederatedProfile
from campusdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"


class GoogleOAuthClient:
    """Builds the consent redirect and exchanges codes for a profile."""

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        redirect_uri: Optional[str] = None,
        timeout: float = 10.0,
    ):
        self._client_id = client_id or settings.google_client_id
        self._client_secret = client_secret or settings.google_client_secret
        self._redirect_uri = redirect_uri or settings.google_redirect_uri
        self._timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self._client_id and self._client_secret)

    def _require_configured(self) -> None:
        if not self.is_configured:
            raise ExternalServiceUnavailable("Google OAuth", "Google login is not configured")

    def authorization_url(self, state: Optional[str] = None) -> str:
        self._require_configured()
        params = {
            "client_id": self._client_id,
            "redirect_uri": self._redirect_uri,
            "response_type": "code",
            "scope": "openid email profile",
            "access_type": "online",
            "prompt": "select_account",
        }
        if state:
            params["state"] = state
        return f"{AUTHORIZE_URL}?{urlencode(params)}"

    async def fetch_profile(self, code: str) -> FederatedProfile:
        """Exchange an authorization code for the user's Google profile."""
        self._require_configured()

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            try:
                token_response = await client.post(TOKEN_URL, data={
                    "code": code,
                    "client_id": self._client_id,
                    "client_secret": self._client_secret,
                    "redirect_uri": self._redirect_uri,
                    "grant_type": "authorization_code",
                })
            except httpx.HTTPError as e:
                raise ExternalServiceUnavailable("Google OAuth", f"Token exchange failed: {e}")

            if token_response.status_code != 200:
                logger.warning("Google token exchange rejected", extra={"status_code": token_response.status_code})
                raise AuthenticationError("Google login failed.")

            access_token = token_response.json().get("access_token")

            try:
                profile_response = await client.get(
                    USERINFO_URL,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
            except httpx.HTTPError as e:
                raise ExternalServiceUnavailable("Google OAuth", f"Profile fetch failed: {e}")

        if profile_response.status_code != 200:
            raise AuthenticationError("Google login failed.")

        data = profile_response.json()
        if not data.get("sub") or not data.get("email"):
            raise AuthenticationError("Google account has no email address.")

        return FederatedProfile(
            provider_id=data["sub"],
            email=data["email"].lower(),
            name=data.get("name") or data["email"].split("@")[0],
        )
