"""User-related Pydantic schemas."""

import re
import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from orbit_social.models.user import Privacy, Role
from orbit_social.schemas.common import Pagination

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")
PASSWORD_MIN_LENGTH = 8


class RegisterRequest(BaseModel):
    """Schema for account registration."""

    email: EmailStr
    username: str = Field(..., min_length=3, max_length=30)
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)
    full_name: str | None = Field(None, max_length=100)

    @field_validator("username")
    @classmethod
    def normalize_username(cls, v: str) -> str:
        """Allow letters, digits and underscores; store lower-case."""
        if not USERNAME_PATTERN.match(v):
            raise ValueError("Username can only contain letters, numbers, and underscores")
        return v.lower()


class RegisterResponse(BaseModel):
    """Registration response."""

    id: uuid.UUID
    email: str
    username: str
    full_name: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LoginRequest(BaseModel):
    """Schema for login submissions; ``identifier`` is an email or a username."""

    identifier: str = Field(..., min_length=1, description="Email or username")
    password: str = Field(..., min_length=1)


class ChangePasswordRequest(BaseModel):
    """Schema for password changes."""

    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)


class ProfileUpdateRequest(BaseModel):
    """Schema for updating the caller's own profile."""

    full_name: str | None = Field(None, max_length=100)
    bio: str | None = Field(None, max_length=500)
    privacy: Privacy | None = None


class UserSummary(BaseModel):
    """Author information embedded in posts and comments."""

    id: uuid.UUID
    username: str
    full_name: str | None
    avatar_url: str | None

    model_config = ConfigDict(from_attributes=True)


class UserResponse(BaseModel):
    """Full account view returned to the account owner."""

    id: uuid.UUID
    email: str
    username: str
    full_name: str | None
    bio: str | None
    avatar_url: str | None
    role: Role
    privacy: Privacy
    is_active: bool
    followers_count: int
    following_count: int
    posts_count: int
    created_at: datetime
    updated_at: datetime
    last_login: datetime | None

    model_config = ConfigDict(from_attributes=True)


class ProfileResponse(BaseModel):
    """Profile as seen by another user.

    When ``is_private`` is True the profile was redacted: ``bio`` is null and
    ``posts_count``/``following_count`` are zeroed. ``followers_count`` is
    always the real value.
    """

    id: uuid.UUID
    username: str
    full_name: str | None
    bio: str | None
    avatar_url: str | None
    privacy: Privacy
    followers_count: int
    following_count: int
    posts_count: int
    created_at: datetime
    is_following: bool = False
    is_private: bool = False

    model_config = ConfigDict(from_attributes=True)

    def redacted(self) -> "ProfileResponse":
        """Return a copy with details hidden from non-followers."""
        return self.model_copy(
            update={"bio": None, "posts_count": 0, "following_count": 0, "is_private": True}
        )


class UserSearchResult(UserSummary):
    """Search hit annotated with the caller's relationship to it."""

    is_following: bool
    is_current_user: bool


class FollowListEntry(UserSummary):
    """Entry in a following/followers list."""

    followers_count: int


class FollowListResponse(BaseModel):
    """One page of a following/followers list."""

    users: list[FollowListEntry]
    pagination: Pagination


class LoginResponse(BaseModel):
    """Response returned after successful login."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field("bearer", description="Token type")
    expires_in: int = Field(..., description="Token lifetime in seconds")
    profile: UserResponse


class SessionResponse(BaseModel):
    """The caller's identity as derived from the presented token."""

    id: uuid.UUID
    email: str
    username: str
    role: Role
