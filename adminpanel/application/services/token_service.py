"""Signed JWTs for sessions, email verification, password reset and magic links."""

from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import ValidationError

from adminpanel.config import UNSET_SECRET, get_settings
from adminpanel.domain.schemas.auth import TokenPayload, TokenType

logger = structlog.get_logger(__name__)

TOKEN_EXPIRY = {
    "access": timedelta(days=7),
    "verification": timedelta(days=1),
    "reset": timedelta(hours=1),
    "magic_link": timedelta(days=1),
}


def _secret() -> Optional[str]:
    secret = get_settings().SECRET_KEY
    if not secret or secret == UNSET_SECRET:
        return None
    return secret


def generate_token(user_id: str, type: TokenType) -> str:
    """Sign ``{userId, type, iat, exp}``. Raises ValueError if it cannot be issued safely."""
    if not user_id:
        raise ValueError("Cannot generate token without user id")
    if type not in TOKEN_EXPIRY:
        raise ValueError(f"Unknown token type: {type}")

    secret = _secret()
    if secret is None:
        raise ValueError("SECRET_KEY is not configured for token generation")

    now = datetime.now(timezone.utc)
    claims = {
        "userId": user_id,
        "type": type,
        "iat": now,
        "exp": now + TOKEN_EXPIRY[type],
    }
    return jwt.encode(claims, secret, algorithm=get_settings().JWT_ALGORITHM)


def verify_token(token: Optional[str]) -> Optional[TokenPayload]:
    """Decode a token; None for anything invalid, never raises."""
    if not token:
        return None

    secret = _secret()
    if secret is None:
        logger.error("SECRET_KEY is not configured; rejecting token")
        return None

    try:
        claims = jwt.decode(token, secret, algorithms=[get_settings().JWT_ALGORITHM])
    except ExpiredSignatureError:
        logger.debug("Token expired")
        return None
    except JWTError as e:
        logger.debug("Token verification failed", error=str(e))
        return None

    try:
        return TokenPayload(user_id=claims.get("userId"), type=claims.get("type"))
    except ValidationError:
        logger.debug("Token has malformed claims")
        return None


def verify_token_of_type(token: Optional[str], type: TokenType) -> Optional[TokenPayload]:
    payload = verify_token(token)
    if payload is None or payload.type != type:
        return None
    return payload
