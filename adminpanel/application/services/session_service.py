"""The ``auth-token`` session cookie, carrying an access token."""

from typing import Optional

from fastapi import Response

from adminpanel.application.services.token_service import (
    TOKEN_EXPIRY,
    generate_token,
    verify_token_of_type,
)
from adminpanel.config import get_settings

SESSION_COOKIE = "auth-token"
SESSION_MAX_AGE = int(TOKEN_EXPIRY["access"].total_seconds())


def create_session(response: Response, user_id: str) -> str:
    token = generate_token(user_id, "access")
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        max_age=SESSION_MAX_AGE,
        path="/",
        httponly=True,
        secure=get_settings().is_production,
        samesite="lax",
    )
    return token


def clear_session(response: Response) -> None:
    response.delete_cookie(
        key=SESSION_COOKIE,
        path="/",
        httponly=True,
        secure=get_settings().is_production,
        samesite="lax",
    )


def get_session(token: Optional[str]) -> Optional[dict]:
    """``{"userId": ...}`` for a valid access token, otherwise None."""
    payload = verify_token_of_type(token, "access")
    if payload is None:
        return None
    return {"userId": payload.user_id}
