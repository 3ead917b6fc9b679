# src/orbit_social/services/relationships.py
"""Follow-graph queries and mutations."""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from orbit_social.models import Follow, User
from orbit_social.services import counters

__all__ = [
    "follow",
    "follower_ids",
    "following_ids",
    "get_follow",
    "is_following",
    "unfollow",
]


def get_follow(db: Session, follower_id: uuid.UUID, following_id: uuid.UUID) -> Follow | None:
    """Return the follow edge between two users, if any."""
    return db.execute(
        select(Follow).where(
            Follow.follower_id == follower_id,
            Follow.following_id == following_id,
        )
    ).scalars().first()


def is_following(
    db: Session,
    follower_id: uuid.UUID | None,
    following_id: uuid.UUID | None,
) -> bool:
    """Return True if ``follower_id`` follows ``following_id``.

    Missing ids and self-relationships are always False and never hit the
    database.
    """
    if follower_id is None or following_id is None or follower_id == following_id:
        return False
    return get_follow(db, follower_id, following_id) is not None


def following_ids(db: Session, user_id: uuid.UUID | None) -> set[uuid.UUID]:
    """Return ids of every user ``user_id`` follows."""
    if user_id is None:
        return set()
    rows = db.execute(select(Follow.following_id).where(Follow.follower_id == user_id))
    return set(rows.scalars())


def follower_ids(db: Session, user_id: uuid.UUID) -> list[uuid.UUID]:
    """Return a snapshot of the ids currently following ``user_id``."""
    rows = db.execute(select(Follow.follower_id).where(Follow.following_id == user_id))
    return list(rows.scalars())


def follow(db: Session, follower: User, target: User) -> Follow:
    """Create a follow edge and bump both counters.

    Callers reject self-follows and duplicates before calling; the unique
    constraint is the final guard. The caller commits.
    """
    edge = Follow(follower_id=follower.id, following_id=target.id)
    db.add(edge)
    db.flush()
    counters.adjust_follow_counts(db, follower.id, target.id, 1)
    return edge


def unfollow(db: Session, edge: Follow) -> None:
    """Delete a follow edge and decrement both counters. The caller commits."""
    follower_id, following_id = edge.follower_id, edge.following_id
    db.delete(edge)
    db.flush()
    counters.adjust_follow_counts(db, follower_id, following_id, -1)
