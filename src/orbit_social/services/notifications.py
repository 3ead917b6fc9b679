# src/orbit_social/services/notifications.py
"""Notification fan-out and read-state handling.

Fan-out runs after the triggering action has been committed and is strictly
best-effort: if inserting notifications fails the error is logged, the
notification transaction is rolled back, and the caller carries on. Nothing
here ever undoes or fails the primary action.
"""

from __future__ import annotations

import enum
import logging
import uuid
from collections.abc import Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from orbit_social.models import Notification, NotificationType, Post, User
from orbit_social.services import relationships
from orbit_social.services.broker import NotificationBroker, get_notification_broker

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 50
ELLIPSIS = "…"


class FanoutAction(str, enum.Enum):
    """Actions that trigger notifications."""

    LIKE = "like"
    COMMENT = "comment"
    FOLLOW = "follow"
    POST = "post"


class NotificationAccessError(Exception):
    """Raised when a caller touches a notification addressed to someone else."""


def post_preview(username: str, content: str) -> str:
    """Return the text of a new-post notification.

    The first 50 characters of the post are quoted; an ellipsis is appended
    only when the post is longer than that.
    """
    preview = content[:PREVIEW_LENGTH]
    if len(content) > PREVIEW_LENGTH:
        preview += ELLIPSIS
    return f"{username} posted: {preview}"


class NotificationFanout:
    """Create notification rows for the recipients of an action."""

    def __init__(self, db: Session, broker: NotificationBroker | None = None) -> None:
        self.db = db
        self.broker = broker or get_notification_broker()

    def on_like(self, actor: User, post: Post) -> list[Notification]:
        """Notify the post owner that ``actor`` liked their post."""
        if actor.id == post.user_id:
            return []
        return self._deliver([
            Notification(
                type=NotificationType.LIKE,
                content=f"{actor.username} liked your post",
                user_id=post.user_id,
                post_id=post.id,
            )
        ])

    def on_comment(self, actor: User, post: Post) -> list[Notification]:
        """Notify the post owner that ``actor`` commented on their post."""
        if actor.id == post.user_id:
            return []
        return self._deliver([
            Notification(
                type=NotificationType.COMMENT,
                content=f"{actor.username} commented on your post",
                user_id=post.user_id,
                post_id=post.id,
            )
        ])

    def on_follow(self, actor: User, target: User) -> list[Notification]:
        """Notify ``target`` of a new follower."""
        if actor.id == target.id:
            return []
        return self._deliver([
            Notification(
                type=NotificationType.FOLLOW,
                content=f"{actor.username} started following you",
                user_id=target.id,
            )
        ])

    def on_post_created(self, actor: User, post: Post) -> list[Notification]:
        """Notify every current follower of ``actor`` about a new post.

        The follower set is read once, now; later followers are not notified.
        """
        try:
            recipients = relationships.follower_ids(self.db, actor.id)
        except SQLAlchemyError:
            logger.exception("Could not load followers of %s for post fan-out", actor.id)
            return []

        content = post_preview(actor.username, post.content)
        return self._deliver([
            Notification(
                type=NotificationType.POST,
                content=content,
                user_id=recipient_id,
                post_id=post.id,
            )
            for recipient_id in recipients
            if recipient_id != actor.id
        ])

    def dispatch(self, action: FanoutAction | str, actor: User, target: User | Post) -> list[Notification]:
        """Route ``action`` to the matching handler."""
        action = FanoutAction(action)
        if action is FanoutAction.FOLLOW:
            if not isinstance(target, User):
                raise TypeError("follow notifications target a user")
            return self.on_follow(actor, target)
        if not isinstance(target, Post):
            raise TypeError(f"{action.value} notifications target a post")
        if action is FanoutAction.LIKE:
            return self.on_like(actor, target)
        if action is FanoutAction.COMMENT:
            return self.on_comment(actor, target)
        return self.on_post_created(actor, target)

    def _deliver(self, notifications: list[Notification]) -> list[Notification]:
        if not notifications:
            return []
        try:
            self.db.add_all(notifications)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(
                "Failed to store %d %s notification(s)",
                len(notifications),
                notifications[0].type.value,
            )
            return []

        self.broker.publish_many(notifications)
        return notifications


def fanout_on_action(
    db: Session,
    action: FanoutAction | str,
    actor: User,
    target: User | Post,
    broker: NotificationBroker | None = None,
) -> None:
    """Fire-and-forget entry point used by the routes."""
    try:
        NotificationFanout(db, broker).dispatch(action, actor, target)
    except (SQLAlchemyError, ValueError, TypeError):
        logger.exception("Notification fan-out for %s failed", action)


def list_notifications(
    db: Session,
    user_id: uuid.UUID,
    *,
    offset: int,
    limit: int,
) -> tuple[Sequence[Notification], int]:
    """Return one page of a user's notifications, newest first, and the total."""
    rows = db.execute(
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc())
        .offset(offset)
        .limit(limit)
    ).scalars().all()
    total = db.execute(
        select(func.count()).select_from(Notification).where(Notification.user_id == user_id)
    ).scalar_one()
    return rows, int(total)


def unread_count(db: Session, user_id: uuid.UUID) -> int:
    """Return how many of a user's notifications are unread."""
    return int(
        db.execute(
            select(func.count())
            .select_from(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        ).scalar_one()
    )


def mark_as_read(db: Session, notification: Notification, caller_id: uuid.UUID) -> Notification:
    """Flip ``is_read`` to True for the recipient. Repeating the call is harmless.

    Raises:
        NotificationAccessError: If ``caller_id`` is not the recipient.
    """
    if notification.user_id != caller_id:
        raise NotificationAccessError("Forbidden")
    if not notification.is_read:
        notification.is_read = True
        db.commit()
    return notification
