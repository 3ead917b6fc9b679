"""Post and comment Pydantic schemas."""

import uuid
from datetime import datetime

from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field

from orbit_social.models.post import COMMENT_MAX_LENGTH, POST_MAX_LENGTH
from orbit_social.schemas.common import Pagination
from orbit_social.schemas.user import UserSummary


class PostCreate(BaseModel):
    """Schema for creating a new post."""

    content: str = Field(
        ...,
        min_length=1,
        max_length=POST_MAX_LENGTH,
        description=f"Post text, at most {POST_MAX_LENGTH} characters",
    )
    image_url: AnyHttpUrl | None = Field(None, description="Public URL of an attached image")
    category: str | None = Field(None, max_length=50)


class PostUpdate(BaseModel):
    """Schema for editing a post; only the text can change."""

    content: str | None = Field(None, min_length=1, max_length=POST_MAX_LENGTH)


class PostResponse(BaseModel):
    """Schema for post information returned by the API."""

    id: uuid.UUID
    content: str
    image_url: str | None
    category: str | None
    like_count: int
    comment_count: int
    created_at: datetime
    updated_at: datetime
    user_id: uuid.UUID
    user: UserSummary | None = None

    model_config = ConfigDict(from_attributes=True)


class PostListResponse(BaseModel):
    """Page of posts."""

    posts: list[PostResponse]
    pagination: Pagination


class CommentCreate(BaseModel):
    """Schema for creating a comment."""

    content: str = Field(..., min_length=1, max_length=COMMENT_MAX_LENGTH)


class CommentResponse(BaseModel):
    """Schema for comment information returned by the API."""

    id: uuid.UUID
    content: str
    created_at: datetime
    updated_at: datetime
    user_id: uuid.UUID
    post_id: uuid.UUID
    user: UserSummary | None = None

    model_config = ConfigDict(from_attributes=True)


class CommentListResponse(BaseModel):
    """Page of comments."""

    comments: list[CommentResponse]
    pagination: Pagination
