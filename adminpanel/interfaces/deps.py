"""
API Dependencies.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from adminpanel.domain.models.role import Role
from adminpanel.domain.models.user import User
from adminpanel.domain.repositories.role_repository import RoleRepository
from adminpanel.domain.repositories.user_repository import UserRepository
from adminpanel.infrastructure.database import get_db
from adminpanel.infrastructure.environment import DotEnvStore, get_env_store
from adminpanel.infrastructure.repositories.role_repository import SQLAlchemyRoleRepository
from adminpanel.infrastructure.repositories.user_repository import SQLAlchemyUserRepository
from adminpanel.infrastructure.storage import LocalStorageProvider, get_storage_provider


def get_user_repository(db: Session = Depends(get_db)) -> UserRepository:
    """Get user repository instance."""
    return SQLAlchemyUserRepository(db, User)


def get_role_repository(db: Session = Depends(get_db)) -> RoleRepository:
    """Get role repository instance."""
    return SQLAlchemyRoleRepository(db, Role)


def get_storage() -> LocalStorageProvider:
    return get_storage_provider()


def get_environment_store() -> DotEnvStore:
    return get_env_store()
