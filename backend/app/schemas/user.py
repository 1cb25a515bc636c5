"""
Shutterfeed Backend — User Schemas
===================================

What:  Request and response models for auth, profile and user pages.

Display identity:
    Anywhere a user is embedded in another resource (comment author,
    mentions, likes, activity author) only UserSummary is exposed:
    id, first name, last name, username. Profile fields and the password
    hash never leave UserResponse / the database respectively.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from app.schemas.common import ApiModel


USERNAME_PATTERN = r"^[A-Za-z0-9_]+$"


class UserSummary(ApiModel):
    id: uuid.UUID = Field(alias="_id")
    first_name: str
    last_name: str
    username: str


class UserResponse(UserSummary):
    """Full public profile (no credentials)."""
    location: str = ""
    description: str = ""
    occupation: str = ""
    created_at: datetime
    last_activity_id: Optional[uuid.UUID] = Field(default=None, alias="lastActivity")


class RegisterRequest(ApiModel):
    """
    Body of POST /api/auth/register.

    Usernames are restricted to word characters so that every account can
    be reached by an `@username` mention.
    """
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    username: str = Field(min_length=1, max_length=64, pattern=USERNAME_PATTERN)
    password: str = Field(min_length=1, max_length=72)
    location: str = ""
    occupation: str = ""
    description: str = ""

    @field_validator("first_name", "last_name", "username", mode="before")
    @classmethod
    def strip_whitespace(cls, v):
        return v.strip() if isinstance(v, str) else v


class LoginRequest(ApiModel):
    username: str
    password: str


class AuthResponse(ApiModel):
    """Returned by register (201) and login (200)."""
    token: str
    user: UserResponse


class ProfileUpdate(ApiModel):
    """Only non-empty fields are applied; omitted or blank ones are kept."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    location: Optional[str] = None
    occupation: Optional[str] = None
    description: Optional[str] = None
