"""User schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from identity_manager.core.validation import (
    NAME_MESSAGE,
    PASSWORD_BYTES_MESSAGE,
    PASSWORD_MAX_BYTES,
    PASSWORD_MIN_LENGTH,
    PHONE_MESSAGE,
    is_valid_name,
    is_valid_phone,
)


def _strip(v):
    return v.strip() if isinstance(v, str) else v


def _blank_to_none(v):
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


class UserProfileFields(BaseModel):
    """Editable profile fields shared by registration and updates."""

    first_name: str = Field(..., min_length=2, max_length=50)
    last_name: str = Field(..., min_length=2, max_length=50)
    phone: str | None = Field(default=None, max_length=20)

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def normalize_name(cls, v: str) -> str:
        """Normalize names by stripping whitespace."""
        return _strip(v)

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not is_valid_name(v):
            raise ValueError(NAME_MESSAGE)
        return v

    @field_validator("phone", mode="before")
    @classmethod
    def normalize_phone(cls, v: str | None) -> str | None:
        return _blank_to_none(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str | None) -> str | None:
        if not is_valid_phone(v):
            raise ValueError(PHONE_MESSAGE)
        return v


class UserCreate(UserProfileFields):
    """User registration request schema."""

    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)
    is_privacy_enabled: bool = False

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _strip(v)

    @field_validator("password")
    @classmethod
    def validate_password_bytes(cls, v: str) -> str:
        if len(v.encode("utf-8")) > PASSWORD_MAX_BYTES:
            raise ValueError(PASSWORD_BYTES_MESSAGE)
        return v


class UserUpdate(UserProfileFields):
    """Profile update request schema. Email and password are not editable here."""


class PrivacyUpdate(BaseModel):
    """Privacy toggle request schema."""

    is_privacy_enabled: bool


class UserResponse(BaseModel):
    """Read-only projection of a user."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    email: str
    first_name: str
    last_name: str
    phone: str | None = None
    is_privacy_enabled: bool
    roles: frozenset[str]
    created_at: datetime
    updated_at: datetime
    avatar_filename: str | None = None
    avatar_url: str | None = None


class PrivacyStats(BaseModel):
    """Privacy statistics response schema."""

    users_with_privacy_enabled: int


class AvatarResponse(BaseModel):
    """Avatar upload/delete response schema."""

    message: str
    filename: str | None = None
