"""Role service — role checks used by authentication plus the roles admin screen."""

from typing import Any, Dict, List

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from adminpanel.core.exceptions import (
    BusinessRuleViolationException,
    ConflictException,
    EntityNotFoundException,
)
from adminpanel.domain.models.role import ADMIN_ROLE, PROTECTED_ROLES, USER_ROLE, Role, UserRole
from adminpanel.domain.models.user import User
from adminpanel.domain.repositories.role_repository import RoleRepository
from adminpanel.domain.repositories.user_repository import UserRepository
from adminpanel.domain.schemas.role import RoleCreate, RoleRead, RoleWithCount
from adminpanel.infrastructure.repositories.role_repository import SQLAlchemyRoleRepository

logger = structlog.get_logger(__name__)


def has_role(db: Session, user_id: str, role_name: str) -> bool:
    """True when the user holds an active grant of an active role with that name."""
    grant = (
        db.query(UserRole.id)
        .join(Role, Role.id == UserRole.role_id)
        .filter(
            UserRole.user_id == user_id,
            UserRole.deleted_at.is_(None),
            Role.name == role_name,
            Role.deleted_at.is_(None),
        )
        .first()
    )
    return grant is not None


def is_admin(db: Session, user_id: str) -> bool:
    return has_role(db, user_id, ADMIN_ROLE)


def get_user_roles(db: Session, user_id: str) -> List[str]:
    try:
        rows = (
            db.query(Role.name)
            .join(UserRole, UserRole.role_id == Role.id)
            .filter(
                UserRole.user_id == user_id,
                UserRole.deleted_at.is_(None),
                Role.deleted_at.is_(None),
            )
            .order_by(Role.name)
            .all()
        )
        return [name for (name,) in rows]
    except SQLAlchemyError as e:
        logger.error("Error fetching user roles", user_id=user_id, error=str(e))
        return []


def assign_default_user_role(db: Session, user_id: str) -> bool:
    """Grant the ``user`` role; False when the role is missing or the write fails."""
    try:
        role = SQLAlchemyRoleRepository(db, Role).get_by_name(USER_ROLE)
        if role is None:
            logger.warning("Default role missing", role=USER_ROLE)
            return False
        SQLAlchemyRoleRepository(db, Role).grant(user_id, role.id)
        return True
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Error assigning default user role", user_id=user_id, error=str(e))
        return False


def ensure_default_roles(db: Session) -> None:
    """Seed the ``user`` and ``admin`` roles."""
    repo = SQLAlchemyRoleRepository(db, Role)
    for name in PROTECTED_ROLES:
        role = repo.get_by_name(name, include_deleted=True)
        if role is None:
            repo.create({"name": name})
            logger.info("Seeded role", role=name)
        elif role.is_deleted:
            repo.update(role, {"deleted_at": None})
            logger.info("Restored role", role=name)


def list_roles(repo: RoleRepository) -> List[RoleWithCount]:
    return [
        RoleWithCount(id=role.id, name=role.name, created_at=role.created_at, user_count=count)
        for role, count in repo.list_with_user_counts()
    ]


def create_role(repo: RoleRepository, body: RoleCreate) -> RoleRead:
    existing = repo.get_by_name(body.name, include_deleted=True)
    if existing is not None and not existing.is_deleted:
        raise ConflictException("Role already exists", {"name": body.name})

    if existing is not None:
        role = repo.update(existing, {"deleted_at": None})
    else:
        role = repo.create({"name": body.name})
    logger.info("Role created", role=role.name)
    return RoleRead.model_validate(role)


def delete_role(repo: RoleRepository, role_id: str) -> Dict[str, Any]:
    role = repo.get_by_id(role_id)
    if role is None:
        raise EntityNotFoundException("Role not found")
    if role.name in PROTECTED_ROLES:
        raise BusinessRuleViolationException("Cannot delete system roles", {"role": role.name})

    holders = repo.count_holders(role.id)
    if holders > 0:
        raise BusinessRuleViolationException(
            f"Cannot delete role. {holders} user(s) currently have this role.",
            {"user_count": holders},
        )

    repo.delete(role.id)
    logger.info("Role deleted", role=role.name)
    return {"success": True, "message": "Role deleted successfully"}


def grant_role(user_repo: UserRepository, role_repo: RoleRepository, user_id: str, role_name: str) -> User:
    user = user_repo.get_by_id(user_id)
    if user is None:
        raise EntityNotFoundException("User not found")
    role = role_repo.get_by_name(role_name)
    if role is None:
        raise EntityNotFoundException("Role not found")

    grant = role_repo.get_grant(user.id, role.id)
    if grant is not None and not grant.is_deleted:
        raise ConflictException("User already has this role", {"role": role_name})

    role_repo.grant(user.id, role.id)
    logger.info("Role granted", user_id=user.id, role=role_name)
    return user


def revoke_role(
    user_repo: UserRepository,
    role_repo: RoleRepository,
    user_id: str,
    role_name: str,
    acting_user_id: str,
) -> User:
    user = user_repo.get_by_id(user_id)
    if user is None:
        raise EntityNotFoundException("User not found")
    role = role_repo.get_by_name(role_name)
    if role is None:
        raise EntityNotFoundException("Role not found")

    grant = role_repo.get_grant(user.id, role.id)
    if grant is None or grant.is_deleted:
        raise EntityNotFoundException("User does not have this role")

    if role.name == ADMIN_ROLE:
        if user.id == acting_user_id:
            raise BusinessRuleViolationException("Cannot remove admin role from yourself")
        if role_repo.count_holders(role.id) <= 1:
            raise BusinessRuleViolationException("Cannot remove the last admin")

    role_repo.revoke(user.id, role.id)
    logger.info("Role revoked", user_id=user.id, role=role_name)
    return user
