"""Admin user management routes."""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Request, status

from adminpanel.application.services.role_service import grant_role, revoke_role
from adminpanel.application.services.user_service import (
    create_user,
    delete_user,
    get_user,
    list_users,
    send_password_reset,
    to_user_read,
    update_user,
)
from adminpanel.core.rate_limit import limiter, rate_limit
from adminpanel.domain.models.user import User
from adminpanel.domain.repositories.role_repository import RoleRepository
from adminpanel.domain.repositories.user_repository import UserRepository
from adminpanel.domain.schemas.user import (
    RoleGrantRequest,
    UserCreate,
    UserFilter,
    UserPage,
    UserRead,
    UserUpdate,
)
from adminpanel.interfaces.api.deps import require_admin
from adminpanel.interfaces.deps import get_role_repository, get_user_repository

router = APIRouter(prefix="/api/admin/users", tags=["Admin Users"])


@router.get("", response_model=UserPage)
@limiter.limit(rate_limit("admin"))
def list_all_users(
    request: Request,
    search: Optional[str] = None,
    page: int = 1,
    page_size: int = 10,
    repo: UserRepository = Depends(get_user_repository),
    admin: User = Depends(require_admin),
):
    """List users with email search and pagination."""
    return list_users(repo, UserFilter(search=search, page=page, page_size=page_size))


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
@limiter.limit(rate_limit("admin"))
def create_new_user(
    request: Request,
    body: UserCreate,
    repo: UserRepository = Depends(get_user_repository),
    role_repo: RoleRepository = Depends(get_role_repository),
    admin: User = Depends(require_admin),
):
    return to_user_read(create_user(repo, role_repo, body))


@router.get("/{user_id}", response_model=UserRead)
def get_one_user(
    user_id: str,
    repo: UserRepository = Depends(get_user_repository),
    admin: User = Depends(require_admin),
):
    return to_user_read(get_user(repo, user_id))


@router.patch("/{user_id}", response_model=UserRead)
@limiter.limit(rate_limit("admin"))
def update_one_user(
    request: Request,
    user_id: str,
    body: UserUpdate,
    repo: UserRepository = Depends(get_user_repository),
    role_repo: RoleRepository = Depends(get_role_repository),
    admin: User = Depends(require_admin),
):
    return to_user_read(update_user(repo, role_repo, user_id, body, acting_user_id=admin.id))


@router.delete("/{user_id}")
@limiter.limit(rate_limit("admin"))
def delete_one_user(
    request: Request,
    user_id: str,
    repo: UserRepository = Depends(get_user_repository),
    admin: User = Depends(require_admin),
):
    return delete_user(repo, user_id, acting_user_id=admin.id)


@router.post("/{user_id}/roles", response_model=UserRead)
def add_user_role(
    user_id: str,
    body: RoleGrantRequest,
    repo: UserRepository = Depends(get_user_repository),
    role_repo: RoleRepository = Depends(get_role_repository),
    admin: User = Depends(require_admin),
):
    user = grant_role(repo, role_repo, user_id, body.roleName)
    repo.db.refresh(user)
    return to_user_read(user)


@router.delete("/{user_id}/roles", response_model=UserRead)
def remove_user_role(
    user_id: str,
    body: RoleGrantRequest = Body(...),
    repo: UserRepository = Depends(get_user_repository),
    role_repo: RoleRepository = Depends(get_role_repository),
    admin: User = Depends(require_admin),
):
    user = revoke_role(repo, role_repo, user_id, body.roleName, acting_user_id=admin.id)
    repo.db.refresh(user)
    return to_user_read(user)


@router.post("/{user_id}/reset-password")
@limiter.limit(rate_limit("password_reset"))
def send_user_password_reset(
    request: Request,
    user_id: str,
    repo: UserRepository = Depends(get_user_repository),
    admin: User = Depends(require_admin),
):
    return send_password_reset(repo, user_id)
