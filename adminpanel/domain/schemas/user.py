"""Pydantic schemas for the users admin screen."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class ProfileRead(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    model_config = {"from_attributes": True}


class UserRead(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    image: Optional[str] = None
    email_verified: Optional[datetime] = None
    last_signed_in: Optional[datetime] = None
    created_at: Optional[datetime] = None
    roles: list[str] = []
    profile: Optional[ProfileRead] = None

    model_config = {"from_attributes": True}


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    name: Optional[str] = None
    image: Optional[str] = None
    roles: list[str] = []


class UserUpdate(BaseModel):
    email: EmailStr
    name: Optional[str] = None
    image: Optional[str] = None
    password: Optional[str] = None
    roles: Optional[list[str]] = None


class UserFilter(BaseModel):
    search: Optional[str] = None
    page: int = 1
    page_size: int = 10


class UserPage(BaseModel):
    items: list[UserRead]
    total: int
    page: int
    page_size: int
    total_pages: int


class RoleGrantRequest(BaseModel):
    roleName: str
