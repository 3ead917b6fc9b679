"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .admin import AdminUserListResponse, StatsResponse
from .common import MessageResponse, Pagination
from .notification import NotificationListResponse, NotificationResponse
from .post import (
    CommentCreate,
    CommentListResponse,
    CommentResponse,
    PostCreate,
    PostListResponse,
    PostResponse,
    PostUpdate,
)
from .user import (
    ChangePasswordRequest,
    FollowListEntry,
    FollowListResponse,
    LoginRequest,
    LoginResponse,
    ProfileResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    RegisterResponse,
    SessionResponse,
    UserResponse,
    UserSearchResult,
    UserSummary,
)

__all__ = [
    "AdminUserListResponse", "StatsResponse",
    "MessageResponse", "Pagination",
    "NotificationListResponse", "NotificationResponse",
    "CommentCreate", "CommentListResponse", "CommentResponse",
    "PostCreate", "PostListResponse", "PostResponse", "PostUpdate",
    "ChangePasswordRequest", "FollowListEntry", "FollowListResponse", "LoginRequest", "LoginResponse",
    "ProfileResponse", "ProfileUpdateRequest", "RegisterRequest",
    "RegisterResponse", "SessionResponse", "UserResponse", "UserSearchResult", "UserSummary",
]
