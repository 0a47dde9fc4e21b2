"""Session cookie and bearer token authentication dependencies."""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from adminpanel.application.services.auth_service import get_active_user
from adminpanel.application.services.role_service import is_admin
from adminpanel.application.services.session_service import SESSION_COOKIE, get_session
from adminpanel.core.exceptions import ForbiddenException, UnauthorizedException
from adminpanel.domain.models.user import User
from adminpanel.infrastructure.database import get_db

security = HTTPBearer(auto_error=False)


def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """The signed-in user, from the bearer token or the session cookie."""
    token = credentials.credentials if credentials else request.cookies.get(SESSION_COOKIE)
    session = get_session(token)
    if session is None:
        return None
    return get_active_user(db, session["userId"])


def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if user is None:
        raise UnauthorizedException("Authentication required")
    return user


def require_admin(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> User:
    """Require admin role."""
    if not is_admin(db, user.id):
        raise ForbiddenException("Admin access required")
    return user
