"""Media service — listing, uploading and managing stored files."""

import secrets
from pathlib import PurePosixPath
from typing import Any, Dict, List, Optional

import structlog

from adminpanel.core.exceptions import EntityNotFoundException, ValidationException
from adminpanel.domain.schemas.media import FileInfo, UploadResult
from adminpanel.infrastructure.storage import VISIBILITIES, LocalStorageProvider, StoredFile, normalize_key

logger = structlog.get_logger(__name__)


def _to_file_info(stored: StoredFile) -> FileInfo:
    return FileInfo(
        name=stored.name,
        path=stored.key,
        size=stored.size,
        last_modified=stored.last_modified,
        content_type=stored.content_type,
        visibility=stored.visibility,
        url=stored.public_url,
    )


def unique_file_name(original_name: str) -> str:
    """``photo.png`` becomes ``photo-1a2b3c4d.png``."""
    name = PurePosixPath((original_name or "").replace("\\", "/")).name or "file"
    suffix = PurePosixPath(name).suffix
    base = name[: -len(suffix)] if suffix else name
    return f"{base or 'file'}-{secrets.token_hex(4)}{suffix}"


def list_files(storage: LocalStorageProvider) -> List[FileInfo]:
    files = [_to_file_info(stored) for stored in storage.list_files()]
    files.sort(key=lambda info: info.last_modified, reverse=True)
    return files


def upload_file(
    storage: LocalStorageProvider,
    original_name: str,
    data: bytes,
    visibility: Optional[str] = None,
    folder: Optional[str] = None,
    max_bytes: int = 50 * 1024 * 1024,
) -> UploadResult:
    visibility = visibility or "private"
    if visibility not in VISIBILITIES:
        raise ValidationException("Invalid visibility value", {"visibility": visibility})
    if len(data) > max_bytes:
        raise ValidationException(
            f"File too large (max {max_bytes // (1024 * 1024)}MB)", {"size": len(data)}
        )

    file_name = unique_file_name(original_name)
    key = f"{normalize_key(folder)}/{file_name}" if folder and folder.strip("/ ") else file_name
    stored = storage.upload_file(key, data, visibility)
    return UploadResult(**_to_file_info(stored).model_dump())


def set_visibility(storage: LocalStorageProvider, path: str, visibility: str) -> Dict[str, Any]:
    if visibility not in VISIBILITIES:
        raise ValidationException("Invalid visibility value", {"visibility": visibility})
    if not storage.file_exists(path):
        raise EntityNotFoundException("File not found", {"path": path})

    stored = storage.set_file_visibility(path, visibility)
    if stored is None:
        raise EntityNotFoundException("File not found", {"path": path})
    return {
        "success": True,
        "message": f"File visibility changed to {visibility}",
        "file": _to_file_info(stored),
    }


def delete_file(storage: LocalStorageProvider, path: str) -> Dict[str, Any]:
    if not storage.file_exists(path):
        raise EntityNotFoundException("File not found", {"path": path})
    storage.delete_file(path)
    return {"success": True, "message": "File deleted successfully"}
