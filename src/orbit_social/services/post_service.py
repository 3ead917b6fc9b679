"""Service-level helpers for creating and removing posts."""
from __future__ import annotations

from sqlalchemy.orm import Session

from orbit_social.models import Post, User
from orbit_social.schemas.post import PostCreate
from orbit_social.services import counters


def create_post(db: Session, author: User, payload: PostCreate) -> Post:
    """Persist a new post and bump the author's ``posts_count``.

    Args:
        db: Database session; committed on success.
        author: Account publishing the post.
        payload: Validated request body.

    Returns:
        The refreshed post.

    Notes:
        Follower notifications are not sent here; the caller triggers fan-out
        once the post is committed.
    """
    post = Post(
        user_id=author.id,
        content=payload.content,
        image_url=str(payload.image_url) if payload.image_url else None,
        category=payload.category,
    )
    db.add(post)
    db.flush()
    counters.increment_posts_count(db, author.id)
    db.commit()
    db.refresh(post)
    return post


def delete_post(db: Session, post: Post) -> None:
    """Delete a post and decrement its author's ``posts_count``.

    Likes and comments on the post go with it; notifications that referenced
    it keep their text and lose the link.
    """
    owner_id = post.user_id
    db.delete(post)
    db.flush()
    counters.decrement_posts_count(db, owner_id)
    db.commit()
