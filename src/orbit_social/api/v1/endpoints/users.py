# src/orbit_social/api/v1/endpoints/users.py
"""User profile, search and follow endpoints."""

import uuid

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import InstrumentedAttribute

from orbit_social.core.settings import settings
from orbit_social.models import Follow, Like, Post, User
from orbit_social.schemas.common import MessageResponse, Pagination
from orbit_social.schemas.post import PostListResponse, PostResponse
from orbit_social.schemas.user import (
    FollowListEntry,
    FollowListResponse,
    ProfileResponse,
    ProfileUpdateRequest,
    UserResponse,
    UserSearchResult,
)
from orbit_social.services import privacy, relationships
from orbit_social.services.notifications import FanoutAction, fanout_on_action

from ..dependencies import CurrentUserDep, OptionalUserDep, PageDep, PageParams, SessionDep

router = APIRouter(prefix="/users", tags=["users"])


def _get_user_or_404(db: SessionDep, user_id: uuid.UUID) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def _require_full_access(db: SessionDep, owner: User, viewer: User | None) -> None:
    """Follow lists are only shown to viewers who may see the whole profile."""
    viewer_id = viewer.id if viewer else None
    following = relationships.is_following(db, viewer_id, owner.id)
    if not privacy.can_view(owner.privacy, owner.id, viewer_id, following):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=privacy.PRIVATE_PROFILE_DETAIL,
        )


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: CurrentUserDep) -> User:
    """Return the caller's full account."""
    return current_user


@router.patch("/me", response_model=UserResponse)
async def update_me(
    payload: ProfileUpdateRequest,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> User:
    """Update name, bio or privacy. Omitted fields are left unchanged."""
    for field, value in payload.model_dump(exclude_unset=True).items():
        if field == "privacy" and value is None:
            continue
        setattr(current_user, field, value)
    db.commit()
    db.refresh(current_user)
    return current_user


@router.get("/me/likes", response_model=PostListResponse)
async def list_my_likes(
    current_user: CurrentUserDep,
    db: SessionDep,
    page: PageDep,
) -> PostListResponse:
    """Posts the caller has liked, most recently liked first."""
    rows = db.execute(
        select(Post)
        .join(Like, Like.post_id == Post.id)
        .where(Like.user_id == current_user.id)
        .order_by(Like.created_at.desc())
        .offset(page.offset)
        .limit(page.limit)
    ).scalars().all()

    # Authors may have gone private since the like was made.
    visible = privacy.filter_visible_posts(
        rows,
        current_user.id,
        relationships.following_ids(db, current_user.id),
    )
    total = db.execute(
        select(func.count()).select_from(Like).where(Like.user_id == current_user.id)
    ).scalar_one()
    return PostListResponse(
        posts=[PostResponse.model_validate(post) for post in visible],
        pagination=Pagination.build(page.page, page.limit, int(total)),
    )


@router.get("/search", response_model=list[UserSearchResult])
async def search_users(
    current_user: CurrentUserDep,
    db: SessionDep,
    q: str = Query("", description="Part of a username or full name"),
) -> list[UserSearchResult]:
    """Find active users whose username or full name contains ``q``."""
    term = q.strip()
    if not term:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Search query is required",
        )

    pattern = f"%{term}%"
    users = db.execute(
        select(User)
        .where(
            User.is_active.is_(True),
            or_(User.username.ilike(pattern), User.full_name.ilike(pattern)),
        )
        .order_by(User.username)
        .limit(settings.search_result_limit)
    ).scalars().all()

    followed = relationships.following_ids(db, current_user.id)
    return [
        UserSearchResult(
            id=user.id,
            username=user.username,
            full_name=user.full_name,
            avatar_url=user.avatar_url,
            is_following=user.id in followed,
            is_current_user=user.id == current_user.id,
        )
        for user in users
    ]


@router.get("/{user_id}", response_model=ProfileResponse)
async def get_profile(
    user_id: uuid.UUID,
    db: SessionDep,
    viewer: OptionalUserDep,
) -> ProfileResponse:
    """Return a profile, redacted when the viewer may only know it exists."""
    owner = _get_user_or_404(db, user_id)
    viewer_id = viewer.id if viewer else None
    following = relationships.is_following(db, viewer_id, owner.id)

    verdict = privacy.evaluate_profile_visibility(owner, viewer_id, following)
    if verdict is privacy.Visibility.DENY:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=privacy.PRIVATE_PROFILE_DETAIL,
        )

    profile = ProfileResponse.model_validate(owner).model_copy(update={"is_following": following})
    if verdict is privacy.Visibility.ALLOW_REDACTED:
        return profile.redacted()
    return profile


def _follow_page(
    db: SessionDep,
    page: PageParams,
    match_column: InstrumentedAttribute[uuid.UUID],
    user_column: InstrumentedAttribute[uuid.UUID],
    owner_id: uuid.UUID,
) -> FollowListResponse:
    """Page through the users at the ``user_column`` end of ``owner_id``'s edges."""
    users = db.execute(
        select(User)
        .join(Follow, user_column == User.id)
        .where(match_column == owner_id)
        .order_by(Follow.created_at.desc())
        .offset(page.offset)
        .limit(page.limit)
    ).scalars().all()
    total = db.execute(
        select(func.count()).select_from(Follow).where(match_column == owner_id)
    ).scalar_one()
    return FollowListResponse(
        users=[FollowListEntry.model_validate(user) for user in users],
        pagination=Pagination.build(page.page, page.limit, int(total)),
    )


@router.get("/{user_id}/following", response_model=FollowListResponse)
async def list_following(
    user_id: uuid.UUID,
    db: SessionDep,
    viewer: OptionalUserDep,
    page: PageDep,
) -> FollowListResponse:
    """Users that ``user_id`` follows."""
    owner = _get_user_or_404(db, user_id)
    _require_full_access(db, owner, viewer)
    return _follow_page(db, page, Follow.follower_id, Follow.following_id, owner.id)


@router.get("/{user_id}/followers", response_model=FollowListResponse)
async def list_followers(
    user_id: uuid.UUID,
    db: SessionDep,
    viewer: OptionalUserDep,
    page: PageDep,
) -> FollowListResponse:
    """Users following ``user_id``."""
    owner = _get_user_or_404(db, user_id)
    _require_full_access(db, owner, viewer)
    return _follow_page(db, page, Follow.following_id, Follow.follower_id, owner.id)


@router.post(
    "/{user_id}/follow",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def follow_user(
    user_id: uuid.UUID,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> MessageResponse:
    """Follow ``user_id`` and notify them."""
    if user_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot follow yourself",
        )
    target = _get_user_or_404(db, user_id)
    if relationships.get_follow(db, current_user.id, target.id) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Already following this user",
        )

    try:
        relationships.follow(db, current_user, target)
        db.commit()
    except IntegrityError as err:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Already following this user",
        ) from err

    response = MessageResponse(message=f"You are now following {target.username}")
    fanout_on_action(db, FanoutAction.FOLLOW, current_user, target)
    return response


@router.delete("/{user_id}/follow", response_model=MessageResponse)
async def unfollow_user(
    user_id: uuid.UUID,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> MessageResponse:
    """Stop following ``user_id``."""
    edge = relationships.get_follow(db, current_user.id, user_id)
    if edge is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="You are not following this user",
        )
    relationships.unfollow(db, edge)
    db.commit()
    return MessageResponse(message="Unfollowed successfully")
