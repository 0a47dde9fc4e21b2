"""User service for the users admin screen."""

from typing import Any, Dict, List, Optional

import structlog

from adminpanel.application.services.auth_service import hash_password, normalize_email
from adminpanel.application.services.email_templates import password_reset_email
from adminpanel.application.services.token_service import generate_token
from adminpanel.config import get_settings
from adminpanel.core.exceptions import (
    BusinessRuleViolationException,
    ConflictException,
    EntityNotFoundException,
    ValidationException,
)
from adminpanel.domain.models.role import ADMIN_ROLE, USER_ROLE
from adminpanel.domain.models.user import User, UserProfile
from adminpanel.domain.repositories.role_repository import RoleRepository
from adminpanel.domain.repositories.user_repository import UserRepository
from adminpanel.domain.schemas.user import (
    ProfileRead,
    UserCreate,
    UserFilter,
    UserPage,
    UserRead,
    UserUpdate,
)
from adminpanel.infrastructure.email import send_email

logger = structlog.get_logger(__name__)

MIN_ADMIN_PASSWORD_LENGTH = 6


def to_user_read(user: User) -> UserRead:
    return UserRead(
        id=user.id,
        email=user.email,
        name=user.name,
        image=user.image,
        email_verified=user.email_verified,
        last_signed_in=user.last_signed_in,
        created_at=user.created_at,
        roles=user.roles,
        profile=ProfileRead.model_validate(user.profile) if user.profile else None,
    )


def list_users(repo: UserRepository, filters: UserFilter) -> UserPage:
    if filters.page < 1 or filters.page_size < 1:
        raise ValidationException("Invalid pagination parameters")
    result = repo.get_with_filters(filters)
    return UserPage(
        items=[to_user_read(user) for user in result["items"]],
        total=result["total"],
        page=result["page"],
        page_size=result["page_size"],
        total_pages=result["total_pages"],
    )


def get_user(repo: UserRepository, user_id: str) -> User:
    user = repo.get_by_id(user_id)
    if user is None:
        raise EntityNotFoundException("User not found")
    return user


def _resolve_roles(role_repo: RoleRepository, names: List[str]) -> list:
    roles = []
    for name in dict.fromkeys(names):
        role = role_repo.get_by_name(name)
        if role is None:
            raise ValidationException(f"Role not found: {name}", {"role": name})
        roles.append(role)
    return roles


def create_user(repo: UserRepository, role_repo: RoleRepository, body: UserCreate) -> User:
    email = normalize_email(body.email)
    if repo.get_by_email(email, include_deleted=True):
        raise ConflictException("User with this email already exists")

    roles = _resolve_roles(role_repo, body.roles or [USER_ROLE])
    user = repo.create({
        "email": email,
        "password": hash_password(body.password),
        "name": body.name,
        "image": body.image,
    })
    repo.db.add(UserProfile(user_id=user.id))
    repo.db.commit()
    for role in roles:
        role_repo.grant(user.id, role.id)

    repo.db.refresh(user)
    logger.info("User created", user_id=user.id, roles=[r.name for r in roles])
    return user


def update_user(
    repo: UserRepository,
    role_repo: RoleRepository,
    user_id: str,
    body: UserUpdate,
    acting_user_id: str,
) -> User:
    user = get_user(repo, user_id)
    email = normalize_email(body.email)
    if not email:
        raise ValidationException("Email is required")

    other = repo.get_by_email(email, include_deleted=True)
    if other is not None and other.id != user.id:
        raise ConflictException("Email is already used by another user")

    updates: Dict[str, Any] = {"email": email, "name": body.name, "image": body.image}
    if body.password:
        if len(body.password) < MIN_ADMIN_PASSWORD_LENGTH:
            raise ValidationException(
                f"Password must be at least {MIN_ADMIN_PASSWORD_LENGTH} characters"
            )
        updates["password"] = hash_password(body.password)

    if body.roles is not None:
        _replace_roles(role_repo, user, body.roles, acting_user_id)

    user = repo.update(user, updates)
    logger.info("User updated", user_id=user.id)
    return user


def _replace_roles(role_repo: RoleRepository, user: User, names: List[str], acting_user_id: str) -> None:
    wanted = {role.name: role for role in _resolve_roles(role_repo, names)}
    current = {user_role.role.name: user_role.role for user_role in user.active_user_roles}

    if ADMIN_ROLE in current and ADMIN_ROLE not in wanted:
        if user.id == acting_user_id:
            raise BusinessRuleViolationException("Cannot remove admin role from yourself")
        if role_repo.count_holders(current[ADMIN_ROLE].id) <= 1:
            raise BusinessRuleViolationException("Cannot remove the last admin")

    for name, role in current.items():
        if name not in wanted:
            role_repo.revoke(user.id, role.id)
    for name, role in wanted.items():
        if name not in current:
            role_repo.grant(user.id, role.id)


def delete_user(repo: UserRepository, user_id: str, acting_user_id: str) -> Dict[str, Any]:
    user = get_user(repo, user_id)
    if user.id == acting_user_id:
        raise BusinessRuleViolationException("Cannot delete your own account")
    if ADMIN_ROLE in user.roles and len(repo.list_role_holders(ADMIN_ROLE)) <= 1:
        raise BusinessRuleViolationException("Cannot delete the last admin")

    repo.delete(user.id)
    logger.info("User deleted", user_id=user.id)
    return {"success": True, "message": "User deleted successfully"}


def send_password_reset(repo: UserRepository, user_id: str, app_url: Optional[str] = None) -> Dict[str, Any]:
    user = get_user(repo, user_id)
    token = generate_token(user.id, "reset")
    send_email(password_reset_email(user.email, token, app_url or get_settings().APP_URL))
    logger.info("Password reset email sent by admin", user_id=user.id)
    return {"success": True, "message": f"Password reset email sent to {user.email}"}
