"""
User Repository Interface.
Defines specific data access operations for Users.
"""

from typing import Any, Dict, List, Optional

from adminpanel.domain.models.user import User
from adminpanel.domain.repositories.base import BaseRepository
from adminpanel.domain.schemas.user import UserFilter


class UserRepository(BaseRepository[User]):
    """Interface for User-specific operations."""

    def get_by_email(self, email: str, include_deleted: bool = False) -> Optional[User]:
        """Find a user by normalized email."""
        ...

    def get_with_filters(self, filters: UserFilter) -> Dict[str, Any]:
        """Search active users by email with pagination, newest first."""
        ...

    def list_role_holders(self, role_name: str) -> List[User]:
        """Active users holding an active grant of the given role."""
        ...
