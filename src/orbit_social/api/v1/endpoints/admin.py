# src/orbit_social/api/v1/endpoints/admin.py
"""Administrative endpoints. Every route requires an ADMIN account."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import func, or_, select

from orbit_social.models import Comment, Like, Post, User
from orbit_social.schemas.admin import AdminUserListResponse, StatsResponse, UserStats
from orbit_social.schemas.common import MessageResponse, Pagination
from orbit_social.schemas.post import PostListResponse, PostResponse
from orbit_social.schemas.user import UserResponse
from orbit_social.services import post_service, user_service

from ..dependencies import AdminUserDep, PageDep, SessionDep

router = APIRouter(prefix="/admin", tags=["admin"])


def _count(db: SessionDep, model: type, *criteria: object) -> int:
    query = select(func.count()).select_from(model)
    if criteria:
        query = query.where(*criteria)
    return int(db.execute(query).scalar_one())


def _get_user_or_404(db: SessionDep, user_id: uuid.UUID) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def _refuse_admin_target(user: User, action: str) -> None:
    if user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Cannot {action} admin users",
        )


@router.get("/stats", response_model=StatsResponse)
async def get_stats(admin: AdminUserDep, db: SessionDep) -> StatsResponse:
    """Site-wide totals."""
    return StatsResponse(
        users=UserStats(
            total=_count(db, User),
            active=_count(db, User, User.is_active.is_(True)),
        ),
        posts=_count(db, Post),
        likes=_count(db, Like),
        comments=_count(db, Comment),
    )


@router.get("/users", response_model=AdminUserListResponse)
async def list_users(
    admin: AdminUserDep,
    db: SessionDep,
    page: PageDep,
    q: str | None = Query(None, description="Filter by email, username or full name"),
) -> AdminUserListResponse:
    """Every account, newest first, regardless of privacy or active state."""
    criteria = []
    if q and q.strip():
        pattern = f"%{q.strip()}%"
        criteria.append(
            or_(User.email.ilike(pattern), User.username.ilike(pattern), User.full_name.ilike(pattern))
        )

    rows = db.execute(
        select(User)
        .where(*criteria)
        .order_by(User.created_at.desc())
        .offset(page.offset)
        .limit(page.limit)
    ).scalars().all()
    return AdminUserListResponse(
        users=[UserResponse.model_validate(user) for user in rows],
        pagination=Pagination.build(page.page, page.limit, _count(db, User, *criteria)),
    )


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(user_id: uuid.UUID, admin: AdminUserDep, db: SessionDep) -> User:
    return _get_user_or_404(db, user_id)


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user(user_id: uuid.UUID, admin: AdminUserDep, db: SessionDep) -> MessageResponse:
    """Delete a non-admin account with all of its content."""
    user = _get_user_or_404(db, user_id)
    _refuse_admin_target(user, "delete")
    user_service.delete_account(db, user)
    return MessageResponse(message="User deleted successfully")


@router.post("/users/{user_id}/deactivate", response_model=UserResponse)
async def deactivate_user(user_id: uuid.UUID, admin: AdminUserDep, db: SessionDep) -> User:
    """Block a non-admin account from logging in or using its tokens."""
    user = _get_user_or_404(db, user_id)
    _refuse_admin_target(user, "deactivate")
    user.is_active = False
    db.commit()
    db.refresh(user)
    return user


@router.post("/users/{user_id}/activate", response_model=UserResponse)
async def activate_user(user_id: uuid.UUID, admin: AdminUserDep, db: SessionDep) -> User:
    user = _get_user_or_404(db, user_id)
    user.is_active = True
    db.commit()
    db.refresh(user)
    return user


@router.get("/posts", response_model=PostListResponse)
async def list_all_posts(admin: AdminUserDep, db: SessionDep, page: PageDep) -> PostListResponse:
    """Every post, newest first. Privacy settings do not apply to admins here."""
    rows = db.execute(
        select(Post).order_by(Post.created_at.desc()).offset(page.offset).limit(page.limit)
    ).scalars().all()
    return PostListResponse(
        posts=[PostResponse.model_validate(post) for post in rows],
        pagination=Pagination.build(page.page, page.limit, _count(db, Post)),
    )


@router.delete("/posts/{post_id}", response_model=MessageResponse)
async def delete_any_post(post_id: uuid.UUID, admin: AdminUserDep, db: SessionDep) -> MessageResponse:
    post = db.get(Post, post_id)
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    post_service.delete_post(db, post)
    return MessageResponse(message="Post deleted successfully")
