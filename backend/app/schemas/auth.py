"""
Portcullis Backend - Auth Schemas
=================================

Login bodies, the token response, and the profile Google's userinfo
endpoint returns.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.security.sanitize import sanitize_email


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=72)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        if isinstance(v, str):
            return sanitize_email(v) or v.strip()
        return v


class AuthUser(BaseModel):
    """The slice of the user returned alongside a fresh token."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: Optional[str] = None


class AuthResponse(BaseModel):
    token: str = Field(description="HS256 bearer token, valid for 7 days by default")
    user: AuthUser


class GoogleUser(BaseModel):
    """
    Google userinfo (v1) payload.

    Only `id` and `email` are required; unknown keys (verified_email, locale,
    ...) are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    email: str
    name: Optional[str] = None
    picture: Optional[str] = None
