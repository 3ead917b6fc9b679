# tests/test_admin_tools.py
"""Tests for the operator maintenance commands."""

import pytest

from orbit_social.models import Role
from orbit_social.scripts.admin_tools import recount, set_role


def test_set_role_promotes_by_username_or_email(db_session, alice):
    set_role(db_session, "@Alice", Role.ADMIN)
    assert alice.role is Role.ADMIN

    set_role(db_session, "alice@example.com", Role.USER)
    assert alice.role is Role.USER


def test_set_role_unknown_account(db_session):
    with pytest.raises(LookupError):
        set_role(db_session, "nobody", Role.ADMIN)


def test_recount_repairs_drifted_counters(db_session, alice, bob, make_post, make_follow):
    post = make_post(alice)
    make_follow(bob, alice)
    alice.posts_count = 42
    alice.followers_count = 0
    post.like_count = 7
    db_session.flush()

    recount(db_session)
    db_session.refresh(alice)
    db_session.refresh(post)

    assert alice.posts_count == 1
    assert alice.followers_count == 1
    assert post.like_count == 0
    assert post.comment_count == 0
