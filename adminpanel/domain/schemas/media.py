"""Pydantic schemas for media files."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel

Visibility = Literal["public", "private"]


class FileInfo(BaseModel):
    name: str
    path: str
    size: int
    last_modified: datetime
    content_type: str
    visibility: Visibility
    url: Optional[str] = None


class UploadResult(FileInfo):
    success: bool = True


class VisibilityUpdate(BaseModel):
    visibility: str
