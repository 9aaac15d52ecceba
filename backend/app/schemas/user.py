"""
Portcullis Backend - User Request/Response Schemas
==================================================

What:  The API contract for /users.
How:   Request models sanitize as they validate: names lose HTML tags,
       emails are trimmed and lowercased, avatar URLs with a javascript:,
       data: or vbscript: scheme are rejected.
       UserResponse is built from the ORM row and leaves out `password` and
       `google_id`; timestamps serialize as `createdAt` / `updatedAt`.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.security.sanitize import sanitize_email, sanitize_url, strip_html


def _normalize_email(value: Any) -> Any:
    if isinstance(value, str):
        return sanitize_email(value) or value.strip()
    return value


def _clean_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return strip_html(value).strip()


def _check_avatar(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = sanitize_url(value)
    if cleaned is None:
        raise ValueError("Avatar URL scheme is not allowed")
    return cleaned


class CreateUser(BaseModel):
    """
    Body of POST /users.

    `password` is optional: accounts may be created without one and later
    sign in through Google.
    """

    model_config = ConfigDict(extra="ignore")

    email: EmailStr
    name: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, min_length=6, max_length=72)
    avatar: Optional[str] = None

    clean_email = field_validator("email", mode="before")(_normalize_email)
    clean_name = field_validator("name")(_clean_name)
    check_avatar = field_validator("avatar")(_check_avatar)


class UpdateUser(BaseModel):
    """Body of PUT /users/{id}; every field optional, only sent fields change."""

    model_config = ConfigDict(extra="ignore")

    email: Optional[EmailStr] = None
    name: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, min_length=6, max_length=72)
    avatar: Optional[str] = None

    clean_email = field_validator("email", mode="before")(_normalize_email)
    clean_name = field_validator("name")(_clean_name)
    check_avatar = field_validator("avatar")(_check_avatar)


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    email: str
    name: Optional[str] = None
    avatar: Optional[str] = None
    created_at: datetime = Field(
        validation_alias=AliasChoices("created_at", "createdAt"),
        serialization_alias="createdAt",
    )
    updated_at: datetime = Field(
        validation_alias=AliasChoices("updated_at", "updatedAt"),
        serialization_alias="updatedAt",
    )
