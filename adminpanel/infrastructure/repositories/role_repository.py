"""
SQLAlchemy Implementation of Role Repository.
"""

from typing import List, Optional, Tuple

from sqlalchemy import and_, func

from adminpanel.domain.models.role import Role, UserRole
from adminpanel.domain.models.user import User
from adminpanel.domain.repositories.role_repository import RoleRepository
from adminpanel.infrastructure.repositories.base_repository import SQLAlchemyRepository


class SQLAlchemyRoleRepository(SQLAlchemyRepository[Role], RoleRepository):
    """Role repository implementation using SQLAlchemy."""

    def get_by_name(self, name: str, include_deleted: bool = False) -> Optional[Role]:
        query = self.db.query(Role) if include_deleted else self.active()
        return query.filter(Role.name == name).first()

    def list_with_user_counts(self) -> List[Tuple[Role, int]]:
        holders = (
            self.db.query(UserRole.role_id, func.count(UserRole.id).label("user_count"))
            .join(User, and_(User.id == UserRole.user_id, User.deleted_at.is_(None)))
            .filter(UserRole.deleted_at.is_(None))
            .group_by(UserRole.role_id)
            .subquery()
        )
        rows = (
            self.db.query(Role, func.coalesce(holders.c.user_count, 0))
            .outerjoin(holders, holders.c.role_id == Role.id)
            .filter(Role.deleted_at.is_(None))
            .order_by(Role.name.asc())
            .all()
        )
        return [(role, int(count)) for role, count in rows]

    def count_holders(self, role_id: str) -> int:
        return (
            self.db.query(func.count(UserRole.id))
            .join(User, User.id == UserRole.user_id)
            .filter(
                UserRole.role_id == role_id,
                UserRole.deleted_at.is_(None),
                User.deleted_at.is_(None),
            )
            .scalar()
            or 0
        )

    def get_grant(self, user_id: str, role_id: str) -> Optional[UserRole]:
        return (
            self.db.query(UserRole)
            .filter(UserRole.user_id == user_id, UserRole.role_id == role_id)
            .first()
        )

    def grant(self, user_id: str, role_id: str) -> UserRole:
        user_role = self.get_grant(user_id, role_id)
        if user_role is None:
            user_role = UserRole(user_id=user_id, role_id=role_id)
            self.db.add(user_role)
        else:
            user_role.deleted_at = None
        self.db.commit()
        self.db.refresh(user_role)
        return user_role

    def revoke(self, user_id: str, role_id: str) -> Optional[UserRole]:
        user_role = self.get_grant(user_id, role_id)
        if user_role is None or user_role.deleted_at is not None:
            return None
        user_role.soft_delete()
        self.db.commit()
        return user_role
