"""
Role Repository Interface.
Defines data access operations for Roles and role grants.
"""

from typing import List, Optional, Tuple

from adminpanel.domain.models.role import Role, UserRole
from adminpanel.domain.repositories.base import BaseRepository


class RoleRepository(BaseRepository[Role]):
    """Interface for Role-specific operations."""

    def get_by_name(self, name: str, include_deleted: bool = False) -> Optional[Role]:
        ...

    def list_with_user_counts(self) -> List[Tuple[Role, int]]:
        """Active roles and how many active users hold each one."""
        ...

    def count_holders(self, role_id: str) -> int:
        ...

    def get_grant(self, user_id: str, role_id: str) -> Optional[UserRole]:
        """The grant row for a user and role, including soft-deleted ones."""
        ...

    def grant(self, user_id: str, role_id: str) -> UserRole:
        """Grant a role, reviving a soft-deleted grant when one exists."""
        ...

    def revoke(self, user_id: str, role_id: str) -> Optional[UserRole]:
        ...
