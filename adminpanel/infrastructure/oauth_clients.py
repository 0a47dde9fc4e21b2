"""OAuth 2.0 HTTP clients for Google and GitHub.

Each client builds the provider's authorization URL, exchanges the callback
code for an access token and fetches the raw user profile. Normalizing that
profile into our own shape happens in the OAuth sign-in service.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx
import structlog

from adminpanel.config import Settings, get_settings
from adminpanel.core.exceptions import AppError

logger = structlog.get_logger(__name__)

HTTP_TIMEOUT = 10


class OAuthProviderError(AppError):
    """The provider rejected the exchange or returned something unusable."""
    def __init__(self, message: str = "OAuth provider error", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, 502, details)


def _json_object(response: httpx.Response) -> Dict[str, Any]:
    payload = response.json()
    if not isinstance(payload, dict):
        raise ValueError("Expected a JSON object")
    return payload


class OAuthClient(ABC):
    name: str = ""
    authorize_url: str = ""
    token_url: str = ""
    scope: str = ""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=HTTP_TIMEOUT, transport=self.transport)

    def authorization_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": self.scope,
            "state": state,
        }
        return f"{self.authorize_url}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> str:
        """Trade the authorization code for an access token."""
        data = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "code": code,
            "redirect_uri": self.redirect_uri,
            "grant_type": "authorization_code",
        }
        try:
            async with self._client() as client:
                response = await client.post(
                    self.token_url, data=data, headers={"Accept": "application/json"}
                )
                response.raise_for_status()
                payload = _json_object(response)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("OAuth token exchange failed", provider=self.name, error=str(e))
            raise OAuthProviderError("Token exchange failed", {"provider": self.name}) from e

        access_token = payload.get("access_token")
        if not access_token:
            logger.warning(
                "OAuth token response without access token",
                provider=self.name,
                error=payload.get("error"),
            )
            raise OAuthProviderError("Token exchange failed", {"provider": self.name})
        return access_token

    @abstractmethod
    async def fetch_profile(self, access_token: str) -> Dict[str, Any]:
        """Raw profile of the signed-in provider user."""


class GoogleOAuthClient(OAuthClient):
    name = "google"
    authorize_url = "https://accounts.google.com/o/oauth2/v2/auth"
    token_url = "https://oauth2.googleapis.com/token"
    userinfo_url = "https://openidconnect.googleapis.com/v1/userinfo"
    scope = "openid email profile"

    async def fetch_profile(self, access_token: str) -> Dict[str, Any]:
        try:
            async with self._client() as client:
                response = await client.get(
                    self.userinfo_url, headers={"Authorization": f"Bearer {access_token}"}
                )
                response.raise_for_status()
                return _json_object(response)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Google profile fetch failed", error=str(e))
            raise OAuthProviderError("Profile fetch failed", {"provider": self.name}) from e


class GitHubOAuthClient(OAuthClient):
    name = "github"
    authorize_url = "https://github.com/login/oauth/authorize"
    token_url = "https://github.com/login/oauth/access_token"
    api_url = "https://api.github.com"
    scope = "read:user user:email"

    def _api_headers(self, access_token: str) -> Dict[str, str]:
        return {
            "Authorization": f"token {access_token}",
            "Accept": "application/vnd.github+json",
            "User-Agent": "adminpanel",
        }

    async def fetch_profile(self, access_token: str) -> Dict[str, Any]:
        try:
            async with self._client() as client:
                response = await client.get(f"{self.api_url}/user", headers=self._api_headers(access_token))
                response.raise_for_status()
                profile = _json_object(response)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("GitHub profile fetch failed", error=str(e))
            raise OAuthProviderError("Profile fetch failed", {"provider": self.name}) from e

        if not profile.get("email"):
            primary = await self.fetch_primary_email(access_token)
            if primary:
                profile["email"] = primary
                logger.info("GitHub primary email retrieved from API")
        return profile

    async def fetch_primary_email(self, access_token: str) -> Optional[str]:
        """Primary address from /user/emails; None when it cannot be read."""
        try:
            async with self._client() as client:
                response = await client.get(
                    f"{self.api_url}/user/emails", headers=self._api_headers(access_token)
                )
                response.raise_for_status()
                emails = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Error fetching GitHub emails", error=str(e))
            return None

        if not isinstance(emails, list):
            return None
        for entry in emails:
            if isinstance(entry, dict) and entry.get("primary"):
                return entry.get("email")
        return None


OAUTH_CLIENTS = {
    GoogleOAuthClient.name: GoogleOAuthClient,
    GitHubOAuthClient.name: GitHubOAuthClient,
}


def build_oauth_client(
    provider: str,
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Optional[OAuthClient]:
    """Client for a configured provider, or None when it is unknown or lacks credentials."""
    settings = settings or get_settings()
    client_cls = OAUTH_CLIENTS.get(provider)
    if client_cls is None:
        return None

    prefix = provider.upper()
    client_id = getattr(settings, f"{prefix}_CLIENT_ID", None)
    client_secret = getattr(settings, f"{prefix}_CLIENT_SECRET", None)
    if not client_id or not client_secret:
        return None

    redirect_uri = f"{settings.APP_URL.rstrip('/')}/api/auth/callback/{provider}"
    return client_cls(client_id, client_secret, redirect_uri, transport=transport)
