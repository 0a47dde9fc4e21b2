"""Pydantic schemas for environment variables and settings screens."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr


class EnvironmentVariable(BaseModel):
    key: str
    value: str
    is_secret: bool


class PlatformInfo(BaseModel):
    type: Literal["local", "remote"] = "local"
    supports_secrets: bool = False
    is_platform_environment: bool = False


class EnvironmentListing(BaseModel):
    variables: list[EnvironmentVariable]
    platform: PlatformInfo
    timestamp: datetime


class EnvironmentUpdate(BaseModel):
    key: str = ""
    value: Optional[str] = None


class EnvironmentDelete(BaseModel):
    key: str = ""


class AuthSettings(BaseModel):
    enable_email_password: bool = True
    enable_magic_link: bool = False
    enable_google_auth: bool = False
    enable_github_auth: bool = False
    google_client_id: Optional[str] = None
    google_client_secret: Optional[str] = None
    github_client_id: Optional[str] = None
    github_client_secret: Optional[str] = None


class EmailSettings(BaseModel):
    provider: Literal["console", "smtp"] = "console"
    from_address: str = "noreply@example.com"
    smtp_host: Optional[str] = None
    smtp_port: Optional[int] = None
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None


class EmailTestRequest(BaseModel):
    to: EmailStr


class EmailTemplateInfo(BaseModel):
    id: str
    name: str
    description: str


class EmailTemplatePreview(BaseModel):
    id: str
    subject: str
    html: str
    text: Optional[str] = None
