"""Local filesystem storage for media files.

Files live under ``<root>/public/<key>`` or ``<root>/private/<key>``; moving a
file between the two directories changes its visibility.
"""

import mimetypes
import shutil
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import List, Optional

import structlog

from adminpanel.config import get_settings
from adminpanel.core.exceptions import ValidationException

logger = structlog.get_logger(__name__)

VISIBILITIES = ("public", "private")
PUBLIC_URL_PREFIX = "/api/storage/files"


@dataclass
class StoredFile:
    key: str
    size: int
    last_modified: datetime
    content_type: str
    visibility: str

    @property
    def name(self) -> str:
        return PurePosixPath(self.key).name

    @property
    def public_url(self) -> Optional[str]:
        if self.visibility != "public":
            return None
        return f"{PUBLIC_URL_PREFIX}/{self.key}"


def normalize_key(key: str) -> str:
    """Validate a relative POSIX key; rejects empty, absolute and parent-relative paths."""
    key = (key or "").strip().replace("\\", "/")
    if not key or key.startswith("/"):
        raise ValidationException("Invalid file path", {"path": key})
    parts = [part for part in key.split("/") if part not in ("", ".")]
    if not parts or ".." in parts:
        raise ValidationException("Invalid file path", {"path": key})
    return "/".join(parts)


def guess_content_type(key: str) -> str:
    content_type, _ = mimetypes.guess_type(key)
    return content_type or "application/octet-stream"


class LocalStorageProvider:
    def __init__(self, root: str):
        self.root = Path(root)

    def _path(self, key: str, visibility: str) -> Path:
        return self.root / visibility / normalize_key(key)

    def _locate(self, key: str) -> Optional[Path]:
        for visibility in VISIBILITIES:
            path = self._path(key, visibility)
            if path.is_file():
                return path
        return None

    def _describe(self, key: str, path: Path, visibility: str) -> StoredFile:
        stat = path.stat()
        return StoredFile(
            key=key,
            size=stat.st_size,
            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            content_type=guess_content_type(key),
            visibility=visibility,
        )

    def list_files(self) -> List[StoredFile]:
        files = []
        for visibility in VISIBILITIES:
            base = self.root / visibility
            if not base.is_dir():
                continue
            for path in base.rglob("*"):
                if path.is_file():
                    key = path.relative_to(base).as_posix()
                    files.append(self._describe(key, path, visibility))
        return files

    def file_exists(self, key: str) -> bool:
        return self._locate(key) is not None

    def get_file(self, key: str) -> Optional[StoredFile]:
        key = normalize_key(key)
        for visibility in VISIBILITIES:
            path = self._path(key, visibility)
            if path.is_file():
                return self._describe(key, path, visibility)
        return None

    def upload_file(self, key: str, data: bytes, visibility: str = "private") -> StoredFile:
        if visibility not in VISIBILITIES:
            raise ValidationException("Invalid visibility value", {"visibility": visibility})
        key = normalize_key(key)
        path = self._path(key, visibility)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.info("File stored", key=key, visibility=visibility, size=len(data))
        return self._describe(key, path, visibility)

    def get_file_visibility(self, key: str) -> Optional[str]:
        stored = self.get_file(key)
        return stored.visibility if stored else None

    def set_file_visibility(self, key: str, visibility: str) -> Optional[StoredFile]:
        if visibility not in VISIBILITIES:
            raise ValidationException("Invalid visibility value", {"visibility": visibility})
        stored = self.get_file(key)
        if stored is None:
            return None
        if stored.visibility != visibility:
            target = self._path(stored.key, visibility)
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(self._path(stored.key, stored.visibility)), str(target))
            logger.info("File visibility changed", key=stored.key, visibility=visibility)
        return self.get_file(stored.key)

    def delete_file(self, key: str) -> None:
        """Remove the file from either location; already gone counts as deleted."""
        key = normalize_key(key)
        for visibility in VISIBILITIES:
            self._path(key, visibility).unlink(missing_ok=True)
        logger.info("File deleted", key=key)

    def file_path(self, key: str) -> Optional[Path]:
        return self._locate(key)


def get_storage_provider() -> LocalStorageProvider:
    return LocalStorageProvider(get_settings().MEDIA_DIR)
