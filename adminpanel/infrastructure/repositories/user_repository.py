"""
SQLAlchemy Implementation of User Repository.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy.orm import selectinload

from adminpanel.domain.models.role import Role, UserRole
from adminpanel.domain.models.user import User
from adminpanel.domain.repositories.user_repository import UserRepository
from adminpanel.domain.schemas.user import UserFilter
from adminpanel.infrastructure.repositories.base_repository import SQLAlchemyRepository


class SQLAlchemyUserRepository(SQLAlchemyRepository[User], UserRepository):
    """User repository implementation using SQLAlchemy."""

    def get_by_email(self, email: str, include_deleted: bool = False) -> Optional[User]:
        query = self.db.query(User) if include_deleted else self.active()
        return query.filter(User.email == email).first()

    def get_with_filters(self, filters: UserFilter) -> Dict[str, Any]:
        """Get users with email search and pagination."""
        query = self.active().options(
            selectinload(User.profile),
            selectinload(User.user_roles).selectinload(UserRole.role),
        )

        if filters.search:
            query = query.filter(User.email.ilike(f"%{filters.search.strip()}%"))

        total = query.count()
        offset = (filters.page - 1) * filters.page_size
        users = (
            query.order_by(User.created_at.desc(), User.id.desc())
            .offset(offset)
            .limit(filters.page_size)
            .all()
        )

        return {
            "items": users,
            "total": total,
            "page": filters.page,
            "page_size": filters.page_size,
            "total_pages": (total + filters.page_size - 1) // filters.page_size,
        }

    def list_role_holders(self, role_name: str) -> List[User]:
        return (
            self.active()
            .join(UserRole, UserRole.user_id == User.id)
            .join(Role, Role.id == UserRole.role_id)
            .filter(
                Role.name == role_name,
                Role.deleted_at.is_(None),
                UserRole.deleted_at.is_(None),
            )
            .all()
        )
