"""OAuth service — provider availability, profile normalization and the sign-in chain.

The chain mirrors what happens after a provider redirects back to us:

1. ``normalize_profile`` maps the provider's raw profile to ``{id, email, name, image}``.
2. ``sign_in_callback`` decides whether the sign-in may proceed and, for users we
   already know, repairs missing roles and syncs name/avatar.
3. ``complete_oauth_sign_in`` creates the user when the email is new, links the
   provider account and records the sign-in.
"""

from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from adminpanel.application.services.auth_service import (
    get_user_by_email,
    normalize_email,
)
from adminpanel.application.services.role_service import assign_default_user_role, get_user_roles
from adminpanel.config import Settings, get_settings
from adminpanel.core.exceptions import (
    BusinessRuleViolationException,
    EntityNotFoundException,
    UnauthorizedException,
)
from adminpanel.domain.models.account import Account
from adminpanel.domain.models.mixins import utcnow
from adminpanel.domain.models.user import User, UserProfile

logger = structlog.get_logger(__name__)

OAUTH_PROVIDERS = ("google", "github")
MAGIC_LINK_PROVIDER = "email"


def get_enabled_providers(settings: Optional[Settings] = None) -> Dict[str, bool]:
    settings = settings or get_settings()
    return {
        "credentials": settings.ENABLE_EMAIL_PASSWORD,
        "magic_link": settings.ENABLE_MAGIC_LINK,
        "google": bool(
            settings.ENABLE_GOOGLE_AUTH and settings.GOOGLE_CLIENT_ID and settings.GOOGLE_CLIENT_SECRET
        ),
        "github": bool(
            settings.ENABLE_GITHUB_AUTH and settings.GITHUB_CLIENT_ID and settings.GITHUB_CLIENT_SECRET
        ),
    }


def is_provider_enabled(provider: str, settings: Optional[Settings] = None) -> bool:
    return get_enabled_providers(settings).get(provider, False)


def normalize_profile(provider: str, profile: Dict[str, Any]) -> Dict[str, Optional[str]]:
    if provider == "google":
        return {
            "id": str(profile.get("sub") or ""),
            "email": profile.get("email"),
            "name": profile.get("name"),
            "image": profile.get("picture"),
        }
    if provider == "github":
        return {
            "id": str(profile.get("id") or ""),
            "email": profile.get("email"),
            "name": profile.get("name") or profile.get("login"),
            "image": profile.get("avatar_url"),
        }
    raise ValueError(f"Unsupported OAuth provider: {provider}")


def sync_oauth_profile(db: Session, user_id: str, provider: str, profile: Dict[str, Any]) -> None:
    """Fill a missing name and keep the avatar in step with the provider."""
    try:
        user = db.query(User).filter(User.id == user_id).first()
        if user is None:
            return

        changed = []
        if not user.name and profile.get("name"):
            user.name = profile["name"]
            changed.append("name")

        avatar_url = profile.get("picture") if provider == "google" else profile.get("avatar_url")
        if avatar_url and user.image != avatar_url:
            user.image = avatar_url
            changed.append("image")

        if changed:
            db.commit()
            logger.info("Synced OAuth profile", user_id=user_id, provider=provider, fields=changed)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Error syncing OAuth profile", user_id=user_id, provider=provider, error=str(e))


def sign_in_callback(db: Session, provider: str, email: Optional[str], profile: Optional[Dict[str, Any]] = None) -> bool:
    """Whether the sign-in may proceed."""
    if provider == MAGIC_LINK_PROVIDER:
        return True

    if provider not in OAUTH_PROVIDERS:
        return True

    if not email:
        logger.warning("OAuth user has no email address available", provider=provider)
        return False

    try:
        user = get_user_by_email(db, email)
        if user is not None:
            if not get_user_roles(db, user.id):
                if assign_default_user_role(db, user.id):
                    logger.info("Assigned default role on sign-in", user_id=user.id, provider=provider)
            if profile:
                sync_oauth_profile(db, user.id, provider, profile)
        else:
            logger.info("New OAuth user", provider=provider)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Error in sign-in callback", provider=provider, error=str(e))

    return True


def _find_linked_user(db: Session, provider: str, provider_account_id: str) -> Optional[User]:
    """Owner of the provider account link, soft-deleted owners included."""
    account = (
        db.query(Account)
        .filter(Account.provider == provider, Account.provider_account_id == provider_account_id)
        .first()
    )
    if account is None:
        return None
    return db.query(User).filter(User.id == account.user_id).first()


def complete_oauth_sign_in(db: Session, provider: str, profile: Dict[str, Any]) -> User:
    """Run the sign-in chain for a provider profile and return the signed-in user."""
    normalized = normalize_profile(provider, profile)
    email = normalize_email(normalized["email"]) or None

    if not sign_in_callback(db, provider, email, profile):
        raise UnauthorizedException("Access denied", {"provider": provider})

    user = None
    if normalized["id"]:
        user = _find_linked_user(db, provider, normalized["id"])
        if user is not None and user.is_deleted:
            raise UnauthorizedException("Account disabled", {"provider": provider})
    if user is None:
        user = get_user_by_email(db, email)

    is_new_user = user is None
    if is_new_user:
        if get_user_by_email(db, email, include_deleted=True):
            raise UnauthorizedException("Account disabled", {"provider": provider})
        now = utcnow()
        user = User(
            email=email,
            name=normalized["name"],
            image=normalized["image"],
            email_verified=now,
        )
        db.add(user)
        db.flush()
        db.add(UserProfile(user_id=user.id))
        logger.info("Created OAuth user", user_id=user.id, provider=provider)

    if normalized["id"] and not any(
        a.provider == provider and a.provider_account_id == normalized["id"] for a in user.accounts
    ):
        db.add(Account(user_id=user.id, provider=provider, provider_account_id=normalized["id"]))

    user.last_signed_in = utcnow()
    db.commit()
    db.refresh(user)

    if is_new_user and assign_default_user_role(db, user.id):
        logger.info("Assigned default role to new OAuth user", user_id=user.id, provider=provider)

    db.refresh(user)
    return user


def resolve_redirect(url: str, base_url: str) -> str:
    """Only allow post sign-in redirects that stay on our own origin."""
    base_url = base_url.rstrip("/")
    parsed = urlparse(url)
    same_origin = bool(parsed.scheme and parsed.netloc) and f"{parsed.scheme}://{parsed.netloc}" == base_url
    relative = url.startswith("/") and not url.startswith("//")

    if parsed.path.startswith("/auth/signin") and (same_origin or relative):
        return url

    if url == base_url:
        return f"{base_url}/"

    if relative:
        return f"{base_url}{url}"

    if same_origin:
        return url

    return f"{base_url}/"


def linked_providers(user: User) -> List[str]:
    return sorted({account.provider for account in user.accounts if account.deleted_at is None})


def disconnect_account(db: Session, user: User, provider: str) -> None:
    """Unlink an OAuth provider; users must keep a password to sign in with."""
    if not user.password:
        raise BusinessRuleViolationException(
            "Set a password before disconnecting your last sign-in method"
        )

    account = (
        db.query(Account)
        .filter(Account.user_id == user.id, Account.provider == provider)
        .first()
    )
    if account is None:
        raise EntityNotFoundException("Account not linked", {"provider": provider})

    db.delete(account)
    db.commit()
    logger.info("Disconnected OAuth account", user_id=user.id, provider=provider)
