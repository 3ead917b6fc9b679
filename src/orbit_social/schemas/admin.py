"""Admin dashboard schemas."""

from pydantic import BaseModel

from orbit_social.schemas.common import Pagination
from orbit_social.schemas.user import UserResponse


class UserStats(BaseModel):
    total: int
    active: int


class StatsResponse(BaseModel):
    """Site-wide totals."""

    users: UserStats
    posts: int
    likes: int
    comments: int


class AdminUserListResponse(BaseModel):
    users: list[UserResponse]
    pagination: Pagination
