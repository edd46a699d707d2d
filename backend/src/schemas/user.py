"""Pydantic schemas for users, profiles, and the auth endpoints."""
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from schemas.validators import (
    MAX_BIO_LENGTH,
    MAX_LOCATION_LENGTH,
    validate_name,
    validate_optional_text,
    validate_optional_url,
    validate_password_strength,
    validate_username,
)


class UserProfile(BaseModel):
    """
    Public projection of a user: everything except the password hash.

    This is the payload stored in the profile cache. When fields are added,
    removed, or renamed, bump PROFILE_SCHEMA_VERSION in core/profile_cache.py
    so entries written by the previous shape are never read back.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    username: str
    first_name: str | None
    last_name: str | None
    bio: str | None
    profile_pic: str | None
    avatar: str | None
    location: str | None
    website: str | None
    role: str
    created_at: datetime
    updated_at: datetime


class UserSummary(BaseModel):
    """The other party shown on connection requests and connection lists."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    first_name: str | None
    last_name: str | None
    profile_pic: str | None
    bio: str | None


class ProfileSource(StrEnum):
    """Where a profile read was served from."""

    CACHE = "cache"
    DATABASE = "database"


class _ProfileFields(BaseModel):
    """Optional profile fields shared by signup and profile update."""

    first_name: str | None = None
    last_name: str | None = None
    bio: str | None = None
    profile_pic: str | None = None
    avatar: str | None = None
    location: str | None = None
    website: str | None = None

    @field_validator("first_name")
    @classmethod
    def validate_first_name(cls, v: str | None) -> str | None:
        """Validate first name length."""
        return validate_name(v, "First name")

    @field_validator("last_name")
    @classmethod
    def validate_last_name(cls, v: str | None) -> str | None:
        """Validate last name length."""
        return validate_name(v, "Last name")

    @field_validator("bio")
    @classmethod
    def validate_bio(cls, v: str | None) -> str | None:
        """Validate bio is at most 500 characters."""
        return validate_optional_text(v, "Bio", MAX_BIO_LENGTH)

    @field_validator("location")
    @classmethod
    def validate_location(cls, v: str | None) -> str | None:
        """Validate location is at most 100 characters."""
        return validate_optional_text(v, "Location", MAX_LOCATION_LENGTH)

    @field_validator("profile_pic", "avatar", "website")
    @classmethod
    def validate_urls(cls, v: str | None) -> str | None:
        """Validate picture/avatar/website are http(s) URLs."""
        return validate_optional_url(v, "URL")


class SignupRequest(_ProfileFields):
    """Schema for creating an account."""

    email: EmailStr
    password: str
    username: str | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Store and compare emails in lowercase."""
        return v.lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        """Enforce password policy."""
        return validate_password_strength(v)

    @field_validator("username")
    @classmethod
    def validate_username_format(cls, v: str | None) -> str | None:
        """Validate username format."""
        return validate_username(v)


class LoginRequest(BaseModel):
    """Schema for logging in."""

    email: EmailStr
    password: str = Field(min_length=1, max_length=255)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Compare emails in lowercase."""
        return v.lower()


class ProfileUpdate(_ProfileFields):
    """
    Schema for updating the current user's profile.

    Only fields present in the request body are applied (exclude_unset).
    Empty strings clear optional text and URL fields.
    """

    username: str | None = None

    @field_validator("username")
    @classmethod
    def validate_username_format(cls, v: str | None) -> str | None:
        """Validate username format."""
        return validate_username(v)


class AuthPayload(BaseModel):
    """Data returned by signup and login."""

    user: UserProfile
    token: str
    expires_at: datetime


class ProfilePayload(BaseModel):
    """Data returned by profile reads."""

    user: UserProfile
    source: ProfileSource | None = None
