"""Media library routes."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile

from adminpanel.application.services.media_service import (
    delete_file,
    list_files,
    set_visibility,
    upload_file,
)
from adminpanel.config import get_settings
from adminpanel.core.exceptions import ValidationException
from adminpanel.core.rate_limit import limiter, rate_limit
from adminpanel.domain.models.user import User
from adminpanel.domain.schemas.media import UploadResult, VisibilityUpdate
from adminpanel.infrastructure.storage import LocalStorageProvider
from adminpanel.interfaces.api.deps import require_admin
from adminpanel.interfaces.deps import get_storage

router = APIRouter(prefix="/api/admin/media", tags=["Admin Media"])


@router.get("/files")
def get_files(storage: LocalStorageProvider = Depends(get_storage), admin: User = Depends(require_admin)):
    return {"files": list_files(storage)}


@router.post("/upload", response_model=UploadResult)
@limiter.limit(rate_limit("admin"))
async def upload(
    request: Request,
    file: Optional[UploadFile] = File(None),
    visibility: Optional[str] = Form(None),
    folder: Optional[str] = Form(None),
    storage: LocalStorageProvider = Depends(get_storage),
    admin: User = Depends(require_admin),
):
    if file is None or not file.filename:
        raise ValidationException("No file provided")

    max_bytes = get_settings().MEDIA_MAX_UPLOAD_BYTES
    data = await file.read(max_bytes + 1)
    return upload_file(storage, file.filename, data, visibility, folder, max_bytes=max_bytes)


@router.patch("/files/{path:path}")
def change_visibility(
    path: str,
    body: VisibilityUpdate,
    storage: LocalStorageProvider = Depends(get_storage),
    admin: User = Depends(require_admin),
):
    return set_visibility(storage, path, body.visibility)


@router.delete("/files/{path:path}")
def remove_file(
    path: str,
    storage: LocalStorageProvider = Depends(get_storage),
    admin: User = Depends(require_admin),
):
    return delete_file(storage, path)
