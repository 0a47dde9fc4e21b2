"""OAuth API routes — redirect to Google/GitHub and handle their callbacks."""

import secrets
from typing import Callable, Optional

import structlog
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from adminpanel.application.services.oauth_service import (
    OAUTH_PROVIDERS,
    complete_oauth_sign_in,
    is_provider_enabled,
    resolve_redirect,
)
from adminpanel.application.services.session_service import create_session
from adminpanel.config import get_settings
from adminpanel.core.exceptions import EntityNotFoundException, UnauthorizedException
from adminpanel.core.rate_limit import limiter, rate_limit
from adminpanel.infrastructure.database import get_db
from adminpanel.infrastructure.oauth_clients import OAuthClient, OAuthProviderError, build_oauth_client

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["OAuth"])

STATE_COOKIE = "oauth-state"
CALLBACK_COOKIE = "oauth-callback"
STATE_MAX_AGE = 600

OAuthClientFactory = Callable[[str], Optional[OAuthClient]]


def get_oauth_client_factory() -> OAuthClientFactory:
    return build_oauth_client


def _client_for(provider: str, factory: OAuthClientFactory) -> OAuthClient:
    if provider not in OAUTH_PROVIDERS or not is_provider_enabled(provider):
        raise EntityNotFoundException("Sign-in provider not available", {"provider": provider})
    client = factory(provider)
    if client is None:
        raise EntityNotFoundException("Sign-in provider not available", {"provider": provider})
    return client


def _signin_error(error: str) -> RedirectResponse:
    url = f"{get_settings().APP_URL.rstrip('/')}/auth/signin?error={error}"
    response = RedirectResponse(url, status_code=status.HTTP_302_FOUND)
    response.delete_cookie(STATE_COOKIE, path="/")
    response.delete_cookie(CALLBACK_COOKIE, path="/")
    return response


@router.get("/oauth/{provider}")
@limiter.limit(rate_limit("auth"))
def start_oauth(
    request: Request,
    provider: str,
    callbackUrl: Optional[str] = None,
    factory: OAuthClientFactory = Depends(get_oauth_client_factory),
):
    """Redirect to the provider's consent screen."""
    client = _client_for(provider, factory)
    state = secrets.token_urlsafe(32)
    secure = get_settings().is_production

    response = RedirectResponse(client.authorization_url(state), status_code=status.HTTP_302_FOUND)
    response.set_cookie(
        STATE_COOKIE, state, max_age=STATE_MAX_AGE, path="/", httponly=True, secure=secure, samesite="lax"
    )
    if callbackUrl:
        response.set_cookie(
            CALLBACK_COOKIE, callbackUrl, max_age=STATE_MAX_AGE, path="/", httponly=True, secure=secure, samesite="lax"
        )
    return response


@router.get("/callback/{provider}")
async def oauth_callback(
    request: Request,
    provider: str,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    db: Session = Depends(get_db),
    factory: OAuthClientFactory = Depends(get_oauth_client_factory),
):
    client = _client_for(provider, factory)

    if error:
        logger.warning("OAuth provider returned an error", provider=provider, error=error)
        return _signin_error("OAuthCallback")

    expected_state = request.cookies.get(STATE_COOKIE)
    if not code or not state or not expected_state or not secrets.compare_digest(state, expected_state):
        logger.warning("OAuth state mismatch", provider=provider)
        return _signin_error("OAuthCallback")

    try:
        access_token = await client.exchange_code(code)
        profile = await client.fetch_profile(access_token)
    except OAuthProviderError:
        return _signin_error("OAuthCallback")

    try:
        user = complete_oauth_sign_in(db, provider, profile)
    except UnauthorizedException:
        return _signin_error("AccessDenied")

    base_url = get_settings().APP_URL
    target = resolve_redirect(request.cookies.get(CALLBACK_COOKIE) or "/", base_url)
    response = RedirectResponse(target, status_code=status.HTTP_302_FOUND)
    response.delete_cookie(STATE_COOKIE, path="/")
    response.delete_cookie(CALLBACK_COOKIE, path="/")
    create_session(response, user.id)
    logger.info("User signed in", user_id=user.id, method=provider)
    return response
