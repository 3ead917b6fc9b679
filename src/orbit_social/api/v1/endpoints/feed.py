# src/orbit_social/api/v1/endpoints/feed.py
"""Home timeline."""

from fastapi import APIRouter
from sqlalchemy import func, select

from orbit_social.models import Post
from orbit_social.schemas.common import Pagination
from orbit_social.schemas.post import PostListResponse, PostResponse
from orbit_social.services import privacy, relationships

from ..dependencies import CurrentUserDep, PageDep, SessionDep

router = APIRouter(prefix="/feed", tags=["feed"])


@router.get("", response_model=PostListResponse)
async def get_feed(current_user: CurrentUserDep, db: SessionDep, page: PageDep) -> PostListResponse:
    """The caller's own posts plus posts by everyone they follow, newest first.

    Following someone does not override a PRIVATE setting, so each post is
    still checked against its own author.
    """
    following = relationships.following_ids(db, current_user.id)
    author_ids = {current_user.id, *following}

    rows = db.execute(
        select(Post)
        .where(Post.user_id.in_(author_ids))
        .order_by(Post.created_at.desc())
        .offset(page.offset)
        .limit(page.limit)
    ).scalars().all()
    visible = privacy.filter_visible_posts(rows, current_user.id, following)
    total = db.execute(
        select(func.count()).select_from(Post).where(Post.user_id.in_(author_ids))
    ).scalar_one()

    return PostListResponse(
        posts=[PostResponse.model_validate(post) for post in visible],
        pagination=Pagination.build(page.page, page.limit, int(total)),
    )
