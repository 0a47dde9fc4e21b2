"""Admin API routes — roles and the first-admin check."""

from typing import List

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from adminpanel.application.services.auth_service import check_admin_exists
from adminpanel.application.services.role_service import create_role, delete_role, list_roles
from adminpanel.core.rate_limit import limiter, rate_limit
from adminpanel.domain.models.user import User
from adminpanel.domain.repositories.role_repository import RoleRepository
from adminpanel.domain.schemas.role import RoleCreate, RoleRead, RoleWithCount
from adminpanel.infrastructure.database import get_db
from adminpanel.interfaces.api.deps import require_admin
from adminpanel.interfaces.deps import get_role_repository

router = APIRouter(prefix="/api/admin", tags=["Admin Roles"])


@router.get("/check")
def admin_check(db: Session = Depends(get_db)):
    """Public: lets the UI decide whether to show first-admin setup."""
    return {"adminExists": check_admin_exists(db)}


@router.get("/roles", response_model=List[RoleWithCount])
def get_roles(
    repo: RoleRepository = Depends(get_role_repository),
    admin: User = Depends(require_admin),
):
    return list_roles(repo)


@router.post("/roles", response_model=RoleRead, status_code=status.HTTP_201_CREATED)
@limiter.limit(rate_limit("admin"))
def add_role(
    request: Request,
    body: RoleCreate,
    repo: RoleRepository = Depends(get_role_repository),
    admin: User = Depends(require_admin),
):
    return create_role(repo, body)


@router.delete("/roles/{role_id}")
@limiter.limit(rate_limit("admin"))
def remove_role(
    request: Request,
    role_id: str,
    repo: RoleRepository = Depends(get_role_repository),
    admin: User = Depends(require_admin),
):
    return delete_role(repo, role_id)
