# tests/test_notifications_service.py
"""Tests for notification fan-out and read-state handling."""

import logging
import uuid
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from orbit_social.models import Notification, NotificationType, Post, User
from orbit_social.services.notifications import (
    FanoutAction,
    NotificationAccessError,
    NotificationFanout,
    fanout_on_action,
    list_notifications,
    mark_as_read,
    post_preview,
    unread_count,
)


class RecordingBroker:
    """Broker stand-in that remembers what was published."""

    def __init__(self) -> None:
        self.published: list[Notification] = []

    def publish_many(self, notifications: list[Notification]) -> None:
        self.published.extend(notifications)


def _notifications_for(db_session, user: User) -> list[Notification]:
    return list(
        db_session.execute(select(Notification).where(Notification.user_id == user.id)).scalars()
    )


@pytest.fixture()
def broker() -> RecordingBroker:
    return RecordingBroker()


class TestPostPreview:
    def test_short_post_is_quoted_whole(self):
        assert post_preview("alice", "short and sweet") == "alice posted: short and sweet"

    def test_exactly_fifty_characters_has_no_ellipsis(self):
        content = "x" * 50
        assert post_preview("alice", content) == f"alice posted: {content}"

    def test_long_post_is_truncated_with_ellipsis(self):
        content = "y" * 51
        assert post_preview("alice", content) == f"alice posted: {'y' * 50}…"


class TestFanout:
    def test_like_notifies_post_owner(self, db_session, alice, bob, make_post, broker):
        post = make_post(alice)

        created = NotificationFanout(db_session, broker).on_like(bob, post)

        assert len(created) == 1
        stored = _notifications_for(db_session, alice)
        assert [n.type for n in stored] == [NotificationType.LIKE]
        assert stored[0].content == "bob liked your post"
        assert stored[0].post_id == post.id
        assert stored[0].is_read is False
        assert broker.published == created

    def test_comment_notifies_post_owner(self, db_session, alice, bob, make_post, broker):
        post = make_post(alice)

        NotificationFanout(db_session, broker).on_comment(bob, post)

        stored = _notifications_for(db_session, alice)
        assert stored[0].type is NotificationType.COMMENT
        assert stored[0].content == "bob commented on your post"

    def test_follow_notifies_target_without_post(self, db_session, alice, bob, broker):
        NotificationFanout(db_session, broker).on_follow(bob, alice)

        stored = _notifications_for(db_session, alice)
        assert stored[0].type is NotificationType.FOLLOW
        assert stored[0].content == "bob started following you"
        assert stored[0].post_id is None

    def test_self_actions_are_suppressed(self, db_session, alice, make_post, broker):
        """Liking or commenting on your own post never notifies you."""
        post = make_post(alice)
        fanout = NotificationFanout(db_session, broker)

        assert fanout.on_like(alice, post) == []
        assert fanout.on_comment(alice, post) == []
        assert fanout.on_follow(alice, alice) == []
        assert _notifications_for(db_session, alice) == []
        assert broker.published == []

    def test_new_post_notifies_each_current_follower(
        self, db_session, alice, make_user, make_follow, make_post, broker
    ):
        followers = [make_user(f"reader{i}") for i in range(3)]
        for follower in followers:
            make_follow(follower, alice)
        post = make_post(alice, "z" * 60)

        created = NotificationFanout(db_session, broker).on_post_created(alice, post)

        assert {n.user_id for n in created} == {f.id for f in followers}
        for follower in followers:
            (note,) = _notifications_for(db_session, follower)
            assert note.type is NotificationType.POST
            assert note.content == f"alice posted: {'z' * 50}…"
            assert note.post_id == post.id

    def test_post_without_followers_creates_nothing(self, db_session, alice, make_post, broker):
        post = make_post(alice)

        assert NotificationFanout(db_session, broker).on_post_created(alice, post) == []
        assert db_session.execute(select(Notification)).scalars().all() == []

    def test_follower_set_is_a_snapshot(
        self, db_session, alice, bob, make_user, make_follow, make_post, broker
    ):
        """Followers who arrive after the post do not get a retroactive notification."""
        make_follow(bob, alice)
        post = make_post(alice)
        NotificationFanout(db_session, broker).on_post_created(alice, post)

        latecomer = make_user("latecomer")
        make_follow(latecomer, alice)

        assert _notifications_for(db_session, latecomer) == []
        assert len(_notifications_for(db_session, bob)) == 1

    def test_dispatch_rejects_mismatched_target(self, db_session, alice, broker):
        with pytest.raises(TypeError):
            NotificationFanout(db_session, broker).dispatch(FanoutAction.LIKE, alice, alice)

    def test_dispatch_routes_by_action_name(self, db_session, alice, bob, make_post, broker):
        post = make_post(alice)

        NotificationFanout(db_session, broker).dispatch("like", bob, post)

        assert _notifications_for(db_session, alice)[0].type is NotificationType.LIKE


class TestBestEffortDelivery:
    def test_storage_failure_is_logged_and_swallowed(self, caplog, broker):
        """A failed insert rolls back the notification batch and reports nothing delivered."""
        db = MagicMock()
        db.commit.side_effect = OperationalError("INSERT", {}, Exception("disk full"))
        actor = User(id=uuid.uuid4(), username="bob")
        post = Post(id=uuid.uuid4(), user_id=uuid.uuid4(), content="hello")

        with caplog.at_level(logging.ERROR, logger="orbit_social.services.notifications"):
            created = NotificationFanout(db, broker).on_like(actor, post)

        assert created == []
        db.rollback.assert_called_once()
        assert broker.published == []
        assert "Failed to store" in caplog.text

    def test_fanout_on_action_never_raises(self, caplog):
        db = MagicMock()
        actor = User(id=uuid.uuid4(), username="bob")

        with caplog.at_level(logging.ERROR):
            fanout_on_action(db, "not-an-action", actor, actor, broker=RecordingBroker())

        assert "fan-out" in caplog.text


class TestReadState:
    def _notify(self, db_session, recipient: User, **fields) -> Notification:
        note = Notification(
            type=NotificationType.FOLLOW,
            content="someone started following you",
            user_id=recipient.id,
            **fields,
        )
        db_session.add(note)
        db_session.flush()
        return note

    def test_mark_as_read_is_idempotent(self, db_session, alice):
        note = self._notify(db_session, alice)

        mark_as_read(db_session, note, alice.id)
        mark_as_read(db_session, note, alice.id)

        assert note.is_read is True
        assert unread_count(db_session, alice.id) == 0

    def test_only_recipient_may_mark_read(self, db_session, alice, bob):
        note = self._notify(db_session, alice)

        with pytest.raises(NotificationAccessError):
            mark_as_read(db_session, note, bob.id)
        assert note.is_read is False

    def test_list_is_newest_first_with_total(self, db_session, alice, bob):
        start = datetime(2026, 3, 1, tzinfo=UTC)
        for minutes in (1, 3, 2):
            self._notify(db_session, alice, created_at=start + timedelta(minutes=minutes))
        self._notify(db_session, bob)

        rows, total = list_notifications(db_session, alice.id, offset=0, limit=2)

        assert total == 3
        assert [row.created_at.minute for row in rows] == [3, 2]
        assert unread_count(db_session, alice.id) == 3
