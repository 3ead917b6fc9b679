# src/orbit_social/services/counters.py
"""Atomic updates for denormalized counters.

Each helper issues a single ``UPDATE ... SET col = col + delta`` so concurrent
requests cannot lose an update. Decrements never go below zero.
"""

from __future__ import annotations

import uuid

from sqlalchemy import case, update
from sqlalchemy.orm import InstrumentedAttribute, Session

from orbit_social.models import Post, User


def _adjust(
    db: Session,
    model: type[Post] | type[User],
    column: InstrumentedAttribute[int],
    row_id: uuid.UUID,
    delta: int,
) -> None:
    if delta >= 0:
        new_value = column + delta
    else:
        new_value = case((column + delta < 0, 0), else_=column + delta)
    db.execute(
        update(model)
        .where(model.id == row_id)
        .values({column.key: new_value})
        .execution_options(synchronize_session="fetch")
    )


def increment_like_count(db: Session, post_id: uuid.UUID) -> None:
    _adjust(db, Post, Post.like_count, post_id, 1)


def decrement_like_count(db: Session, post_id: uuid.UUID) -> None:
    _adjust(db, Post, Post.like_count, post_id, -1)


def increment_comment_count(db: Session, post_id: uuid.UUID) -> None:
    _adjust(db, Post, Post.comment_count, post_id, 1)


def decrement_comment_count(db: Session, post_id: uuid.UUID) -> None:
    _adjust(db, Post, Post.comment_count, post_id, -1)


def increment_posts_count(db: Session, user_id: uuid.UUID) -> None:
    _adjust(db, User, User.posts_count, user_id, 1)


def decrement_posts_count(db: Session, user_id: uuid.UUID) -> None:
    _adjust(db, User, User.posts_count, user_id, -1)


def adjust_follow_counts(
    db: Session,
    follower_id: uuid.UUID,
    following_id: uuid.UUID,
    delta: int,
) -> None:
    """Move ``following_count`` of the follower and ``followers_count`` of the target together."""
    _adjust(db, User, User.following_count, follower_id, delta)
    _adjust(db, User, User.followers_count, following_id, delta)
