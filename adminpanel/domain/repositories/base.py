"""
Base Repository Interface.
Defines the standard contract for data access operations on soft-deletable rows.
"""

from typing import List, Optional, Any, Protocol, TypeVar

T = TypeVar("T")


class BaseRepository(Protocol[T]):
    """Interface for generic CRUD operations. Reads only see active rows."""

    def get_by_id(self, id: str) -> Optional[T]:
        """Get a single active entity by ID."""
        ...

    def list(self, skip: int = 0, limit: int = 100) -> List[T]:
        """List active entities with pagination."""
        ...

    def create(self, obj_in: Any) -> T:
        """Create a new entity."""
        ...

    def update(self, db_obj: T, obj_in: Any) -> T:
        """Update an existing entity."""
        ...

    def delete(self, id: str) -> Optional[T]:
        """Soft delete an entity by ID."""
        ...
