"""Pydantic schemas for sign-in, sign-up, tokens and sessions."""

from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, EmailStr, Field

TokenType = Literal["access", "verification", "reset", "magic_link"]


class TokenPayload(BaseModel):
    user_id: str
    type: TokenType


class PasswordSignIn(BaseModel):
    type: Literal["password"]
    email: EmailStr
    password: str


class MagicLinkSignIn(BaseModel):
    type: Literal["magiclink"]
    email: EmailStr


SignInRequest = Annotated[Union[PasswordSignIn, MagicLinkSignIn], Field(discriminator="type")]


class SignUpRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)


class SetupAdminRequest(SignUpRequest):
    pass


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = ""
    password: str = ""


class TokenRequest(BaseModel):
    token: str = ""


class SessionUser(BaseModel):
    """What a signed-in user looks like to the client."""
    id: str
    email: str
    name: Optional[str] = None
    image: Optional[str] = None
    roles: list[str] = []


class MeResponse(SessionUser):
    email_verified: Optional[datetime] = None
    last_signed_in: Optional[datetime] = None
    has_password: bool = False
    linked_providers: list[str] = []


class ProvidersResponse(BaseModel):
    credentials: bool
    magic_link: bool
    google: bool
    github: bool


class MessageResponse(BaseModel):
    success: bool = True
    message: str
