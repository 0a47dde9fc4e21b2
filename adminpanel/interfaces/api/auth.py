"""Auth API routes — sign-in, sign-up, sessions, password reset and magic links."""

from typing import Optional

import structlog
from fastapi import APIRouter, Body, Depends, Request, Response, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from adminpanel.application.services.auth_service import (
    authorize_credentials,
    get_active_user,
    get_user_by_email,
    mark_email_verified,
    register_user,
    set_password,
    setup_admin,
    touch_last_signed_in,
)
from adminpanel.application.services.email_templates import (
    magic_link_email,
    password_reset_email,
    verification_email,
)
from adminpanel.application.services.oauth_service import (
    disconnect_account,
    get_enabled_providers,
    linked_providers,
)
from adminpanel.application.services.session_service import clear_session, create_session
from adminpanel.application.services.token_service import generate_token, verify_token_of_type
from adminpanel.config import get_settings
from adminpanel.core.exceptions import (
    EntityNotFoundException,
    ForbiddenException,
    UnauthorizedException,
    ValidationException,
)
from adminpanel.core.rate_limit import limiter, rate_limit
from adminpanel.domain.models.user import User
from adminpanel.domain.schemas.auth import (
    ForgotPasswordRequest,
    MeResponse,
    MessageResponse,
    PasswordSignIn,
    ProvidersResponse,
    ResetPasswordRequest,
    SetupAdminRequest,
    SignInRequest,
    SignUpRequest,
    TokenRequest,
)
from adminpanel.infrastructure.database import get_db
from adminpanel.infrastructure.email import send_email
from adminpanel.interfaces.api.deps import get_current_user

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

MIN_PASSWORD_LENGTH = 8
GENERIC_RESET_MESSAGE = "If an account with that email exists, we've sent a password reset link"
GENERIC_MAGIC_LINK_MESSAGE = "If an account with that email exists, we've sent a sign-in link"


def _app_url(path: str) -> str:
    return f"{get_settings().APP_URL.rstrip('/')}{path}"


@router.post("/signin")
@limiter.limit(rate_limit("auth_sign_in"))
def signin(
    request: Request,
    response: Response,
    body: SignInRequest = Body(...),
    db: Session = Depends(get_db),
):
    providers = get_enabled_providers()

    if isinstance(body, PasswordSignIn):
        if not providers["credentials"]:
            raise ForbiddenException("Email/password sign-in is disabled")
        user = authorize_credentials(db, body.email, body.password)
        if user is None:
            raise UnauthorizedException("Invalid email or password")
        create_session(response, user.id)
        logger.info("User signed in", user_id=user.id, method="password")
        return {"success": True, "user": user}

    if not providers["magic_link"]:
        raise ForbiddenException("Magic link sign-in is disabled")

    user = get_user_by_email(db, body.email)
    if user is not None:
        token = generate_token(user.id, "magic_link")
        send_email(magic_link_email(user.email, token, get_settings().APP_URL))
        logger.info("Magic link sent", user_id=user.id)
    return MessageResponse(message=GENERIC_MAGIC_LINK_MESSAGE)


@router.post("/signup", response_model=MessageResponse)
@limiter.limit(rate_limit("auth_sign_up"))
def signup(request: Request, body: SignUpRequest, db: Session = Depends(get_db)):
    if not get_enabled_providers()["credentials"]:
        raise ForbiddenException("Email/password sign-up is disabled")

    user = register_user(db, body.email, body.password)
    token = generate_token(user.id, "verification")
    send_email(verification_email(user.email, token, get_settings().APP_URL))

    return MessageResponse(
        message="Account created successfully. Please check your email to verify your account."
    )


@router.post("/logout", response_model=MessageResponse)
def logout(response: Response):
    clear_session(response)
    return MessageResponse(message="Logged out successfully")


@router.get("/magic-link")
def magic_link(token: Optional[str] = None, db: Session = Depends(get_db)):
    """Exchange an emailed magic link for a session, then redirect."""
    if not token:
        return RedirectResponse(_app_url("/auth/signin?error=no_token"), status_code=status.HTTP_302_FOUND)

    payload = verify_token_of_type(token, "magic_link")
    if payload is None:
        return RedirectResponse(_app_url("/auth/signin?error=invalid_token"), status_code=status.HTTP_302_FOUND)

    user = get_active_user(db, payload.user_id)
    if user is None:
        return RedirectResponse(_app_url("/auth/signin?error=user_not_found"), status_code=status.HTTP_302_FOUND)

    touch_last_signed_in(db, user)
    mark_email_verified(db, user)
    response = RedirectResponse(_app_url("/?message=magic_link_success"), status_code=status.HTTP_302_FOUND)
    create_session(response, user.id)
    logger.info("User signed in", user_id=user.id, method="magic_link")
    return response


@router.post("/forgot-password", response_model=MessageResponse)
@limiter.limit(rate_limit("password_reset"))
def forgot_password(request: Request, body: ForgotPasswordRequest, db: Session = Depends(get_db)):
    user = get_user_by_email(db, body.email)
    if user is not None:
        token = generate_token(user.id, "reset")
        send_email(password_reset_email(user.email, token, get_settings().APP_URL))
        logger.info("Password reset requested", user_id=user.id)
    return MessageResponse(message=GENERIC_RESET_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse)
@limiter.limit(rate_limit("password_reset"))
def reset_password(request: Request, body: ResetPasswordRequest, db: Session = Depends(get_db)):
    if not body.token or not body.password:
        raise ValidationException("Token and password are required")
    if len(body.password) < MIN_PASSWORD_LENGTH:
        raise ValidationException(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    payload = verify_token_of_type(body.token, "reset")
    if payload is None:
        raise ValidationException("Invalid or expired reset token")

    user = get_active_user(db, payload.user_id)
    if user is None:
        raise EntityNotFoundException("User not found")

    set_password(db, user, body.password)
    logger.info("Password reset", user_id=user.id)
    return MessageResponse(message="Password reset successfully")


@router.post("/verify-reset-token")
def verify_reset_token(body: TokenRequest):
    if not body.token:
        raise ValidationException("Token is required")
    payload = verify_token_of_type(body.token, "reset")
    if payload is None:
        raise ValidationException("Invalid or expired token")
    return {"valid": True, "userId": payload.user_id}


@router.get("/verify-email", response_model=MessageResponse)
def verify_email(token: Optional[str] = None, db: Session = Depends(get_db)):
    payload = verify_token_of_type(token, "verification")
    if payload is None:
        raise ValidationException("Invalid or expired verification token")

    user = get_active_user(db, payload.user_id)
    if user is None:
        raise EntityNotFoundException("User not found")

    mark_email_verified(db, user)
    return MessageResponse(message="Email verified successfully")


@router.post("/setup-admin")
@limiter.limit(rate_limit("auth"))
def setup_admin_user(request: Request, body: SetupAdminRequest, db: Session = Depends(get_db)):
    user = setup_admin(db, body.email, body.password)
    return {
        "success": True,
        "message": "Admin user created successfully",
        "user": {"id": user.id, "email": user.email},
    }


@router.get("/me", response_model=MeResponse)
def get_me(user: User = Depends(get_current_user)):
    return MeResponse(
        id=user.id,
        email=user.email,
        name=user.display_name,
        image=user.image,
        roles=user.roles,
        email_verified=user.email_verified,
        last_signed_in=user.last_signed_in,
        has_password=bool(user.password),
        linked_providers=linked_providers(user),
    )


@router.get("/providers", response_model=ProvidersResponse)
def providers():
    return ProvidersResponse(**get_enabled_providers())


@router.post("/change-password-link")
def change_password_link(user: User = Depends(get_current_user)):
    token = generate_token(user.id, "reset")
    return {"success": True, "resetUrl": f"/auth/reset-password?token={token}&fromProfile=true"}


@router.delete("/accounts/{provider}", response_model=MessageResponse)
def disconnect_provider(
    provider: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    disconnect_account(db, user, provider)
    return MessageResponse(message=f"Disconnected {provider} account")
