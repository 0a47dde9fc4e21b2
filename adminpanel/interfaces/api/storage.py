"""Serve media files according to their visibility."""

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from adminpanel.application.services.role_service import has_role
from adminpanel.core.exceptions import EntityNotFoundException, ForbiddenException, UnauthorizedException
from adminpanel.domain.models.role import ADMIN_ROLE, USER_ROLE
from adminpanel.domain.models.user import User
from adminpanel.infrastructure.database import get_db
from adminpanel.infrastructure.storage import LocalStorageProvider
from adminpanel.interfaces.api.deps import get_optional_user
from adminpanel.interfaces.deps import get_storage

router = APIRouter(prefix="/api/storage", tags=["Storage"])


@router.get("/files/{path:path}")
def serve_file(
    path: str,
    storage: LocalStorageProvider = Depends(get_storage),
    user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    stored = storage.get_file(path)
    if stored is None:
        raise EntityNotFoundException("File not found", {"path": path})

    if stored.visibility == "private":
        if user is None:
            raise UnauthorizedException("Authentication required")
        if not (has_role(db, user.id, USER_ROLE) or has_role(db, user.id, ADMIN_ROLE)):
            raise ForbiddenException("Access denied")

    headers = {"Cache-Control": "public, max-age=3600" if stored.visibility == "public" else "private, no-store"}
    return FileResponse(storage.file_path(stored.key), media_type=stored.content_type, headers=headers)
