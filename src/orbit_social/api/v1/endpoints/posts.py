# src/orbit_social/api/v1/endpoints/posts.py
"""Post, like and comment endpoints for the Orbit API."""

import uuid

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from orbit_social.models import Comment, Like, Post, User
from orbit_social.schemas.common import MessageResponse, Pagination
from orbit_social.schemas.post import (
    CommentCreate,
    CommentListResponse,
    CommentResponse,
    PostCreate,
    PostListResponse,
    PostResponse,
    PostUpdate,
)
from orbit_social.services import counters, post_service, privacy, relationships
from orbit_social.services.notifications import FanoutAction, fanout_on_action

from ..dependencies import CurrentUserDep, OptionalUserDep, PageDep, SessionDep

router = APIRouter(prefix="/posts", tags=["posts"])


def _get_post_or_404(db: SessionDep, post_id: uuid.UUID) -> Post:
    post = db.get(Post, post_id)
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return post


def _get_visible_post(db: SessionDep, post_id: uuid.UUID, viewer: User | None) -> Post:
    """Load a post and enforce its owner's privacy setting.

    A missing post is 404; a post the viewer may not see is 403.
    """
    post = _get_post_or_404(db, post_id)
    viewer_id = viewer.id if viewer else None
    following = relationships.is_following(db, viewer_id, post.user_id)
    verdict = privacy.evaluate_post_visibility(post.user, viewer_id, following)
    if verdict is privacy.Visibility.DENY:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=privacy.post_denial_reason(post.user.privacy, viewer_id),
        )
    return post


@router.get("", response_model=PostListResponse)
async def list_posts(
    db: SessionDep,
    viewer: OptionalUserDep,
    page: PageDep,
    user_id: uuid.UUID | None = Query(None, description="Only posts by this user"),
) -> PostListResponse:
    """List posts newest first, dropping any the viewer may not see."""
    viewer_id = viewer.id if viewer else None
    following = relationships.following_ids(db, viewer_id)

    query = select(Post)
    count_query = select(func.count()).select_from(Post)
    if user_id is not None:
        owner = db.get(User, user_id)
        if owner is None or not privacy.can_view(
            owner.privacy, owner.id, viewer_id, owner.id in following
        ):
            return PostListResponse(posts=[], pagination=Pagination.build(page.page, page.limit, 0))
        query = query.where(Post.user_id == user_id)
        count_query = count_query.where(Post.user_id == user_id)

    rows = db.execute(
        query.order_by(Post.created_at.desc()).offset(page.offset).limit(page.limit)
    ).scalars().all()
    visible = privacy.filter_visible_posts(rows, viewer_id, following)
    total = db.execute(count_query).scalar_one()

    return PostListResponse(
        posts=[PostResponse.model_validate(post) for post in visible],
        pagination=Pagination.build(page.page, page.limit, int(total)),
    )


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    payload: PostCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> PostResponse:
    """Publish a post and notify the author's followers."""
    post = post_service.create_post(db, current_user, payload)

    response = PostResponse.model_validate(post)
    fanout_on_action(db, FanoutAction.POST, current_user, post)
    return response


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(post_id: uuid.UUID, db: SessionDep, viewer: OptionalUserDep) -> PostResponse:
    """Fetch a single post."""
    return PostResponse.model_validate(_get_visible_post(db, post_id, viewer))


@router.patch("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: uuid.UUID,
    payload: PostUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> PostResponse:
    """Edit the text of one of the caller's posts."""
    post = _get_post_or_404(db, post_id)
    if post.user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only edit your own posts",
        )
    if payload.content is not None:
        post.content = payload.content
        db.commit()
        db.refresh(post)
    return PostResponse.model_validate(post)


@router.delete("/{post_id}", response_model=MessageResponse)
async def delete_post(
    post_id: uuid.UUID,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> MessageResponse:
    """Delete a post. Authors may delete their own; admins may delete any."""
    post = _get_post_or_404(db, post_id)
    if post.user_id != current_user.id and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only delete your own posts",
        )
    post_service.delete_post(db, post)
    return MessageResponse(message="Post deleted successfully")


@router.post(
    "/{post_id}/like",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def like_post(
    post_id: uuid.UUID,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> MessageResponse:
    """Like a post the caller can see."""
    post = _get_visible_post(db, post_id, current_user)
    existing = db.execute(
        select(Like.id).where(Like.user_id == current_user.id, Like.post_id == post.id)
    ).first()
    if existing is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Already liked this post")

    try:
        db.add(Like(user_id=current_user.id, post_id=post.id))
        db.flush()
        counters.increment_like_count(db, post.id)
        db.commit()
    except IntegrityError as err:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Already liked this post",
        ) from err

    fanout_on_action(db, FanoutAction.LIKE, current_user, post)
    return MessageResponse(message="Post liked successfully")


@router.delete("/{post_id}/like", response_model=MessageResponse)
async def unlike_post(
    post_id: uuid.UUID,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> MessageResponse:
    """Remove the caller's like."""
    post = _get_post_or_404(db, post_id)
    like = db.execute(
        select(Like).where(Like.user_id == current_user.id, Like.post_id == post.id)
    ).scalars().first()
    if like is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Like not found")

    db.delete(like)
    db.flush()
    counters.decrement_like_count(db, post.id)
    db.commit()
    return MessageResponse(message="Post unliked successfully")


@router.get("/{post_id}/comments", response_model=CommentListResponse)
async def list_comments(
    post_id: uuid.UUID,
    db: SessionDep,
    viewer: OptionalUserDep,
    page: PageDep,
) -> CommentListResponse:
    """Comments on a visible post, oldest first."""
    post = _get_visible_post(db, post_id, viewer)
    rows = db.execute(
        select(Comment)
        .where(Comment.post_id == post.id)
        .order_by(Comment.created_at.asc())
        .offset(page.offset)
        .limit(page.limit)
    ).scalars().all()
    total = db.execute(
        select(func.count()).select_from(Comment).where(Comment.post_id == post.id)
    ).scalar_one()
    return CommentListResponse(
        comments=[CommentResponse.model_validate(comment) for comment in rows],
        pagination=Pagination.build(page.page, page.limit, int(total)),
    )


@router.post(
    "/{post_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    post_id: uuid.UUID,
    payload: CommentCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> CommentResponse:
    """Comment on a post the caller can see and notify its author."""
    post = _get_visible_post(db, post_id, current_user)
    comment = Comment(user_id=current_user.id, post_id=post.id, content=payload.content)
    db.add(comment)
    db.flush()
    counters.increment_comment_count(db, post.id)
    db.commit()
    db.refresh(comment)

    response = CommentResponse.model_validate(comment)
    fanout_on_action(db, FanoutAction.COMMENT, current_user, post)
    return response
