"""Pydantic schemas for roles."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class RoleCreate(BaseModel):
    name: str = Field(min_length=1, max_length=50, pattern=r"^[a-z0-9_-]+$")


class RoleRead(BaseModel):
    id: str
    name: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RoleWithCount(RoleRead):
    user_count: int = 0
