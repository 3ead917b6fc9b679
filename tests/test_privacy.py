# tests/test_privacy.py
"""Unit tests for the visibility rules."""

import uuid

import pytest

from orbit_social.models import Post, Privacy, User
from orbit_social.services.privacy import (
    FOLLOWERS_ONLY_POST_DETAIL,
    PRIVATE_POST_DETAIL,
    Visibility,
    can_view,
    evaluate_post_visibility,
    evaluate_profile_visibility,
    filter_visible_posts,
    post_denial_reason,
)


def _owner(privacy: Privacy) -> User:
    return User(id=uuid.uuid4(), username=f"u_{privacy.value.lower()}", privacy=privacy)


OWNER = uuid.uuid4()
VIEWER = uuid.uuid4()


class TestCanView:
    """Rule order: public, anonymous, self, private, followers-only, fallback."""

    @pytest.mark.parametrize("viewer", [None, VIEWER, OWNER])
    @pytest.mark.parametrize("following", [True, False])
    def test_public_is_visible_to_everyone(self, viewer, following):
        """PUBLIC content is visible regardless of who asks."""
        assert can_view(Privacy.PUBLIC, OWNER, viewer, following) is True

    @pytest.mark.parametrize("privacy", [Privacy.PRIVATE, Privacy.FOLLOWERS_ONLY])
    def test_anonymous_viewer_sees_only_public(self, privacy):
        """Anonymous viewers are denied even with a follow flag set."""
        assert can_view(privacy, OWNER, None, True) is False

    @pytest.mark.parametrize("privacy", list(Privacy))
    def test_owner_always_sees_own_content(self, privacy):
        assert can_view(privacy, OWNER, OWNER) is True

    def test_private_hides_from_followers(self):
        """Following a PRIVATE owner grants nothing."""
        assert can_view(Privacy.PRIVATE, OWNER, VIEWER, True) is False

    def test_followers_only_requires_follow(self):
        assert can_view(Privacy.FOLLOWERS_ONLY, OWNER, VIEWER, True) is True
        assert can_view(Privacy.FOLLOWERS_ONLY, OWNER, VIEWER, False) is False

    def test_string_privacy_values_are_accepted(self):
        assert can_view("FOLLOWERS_ONLY", OWNER, VIEWER, True) is True

    @pytest.mark.parametrize("privacy", ["SECRET", "", None])
    def test_unknown_privacy_is_denied(self, privacy):
        """Unrecognised settings fall through to deny."""
        assert can_view(privacy, OWNER, VIEWER, True) is False

    def test_unknown_privacy_still_visible_to_owner(self):
        assert can_view("SECRET", OWNER, OWNER) is True


class TestProfileVisibility:
    def test_public_profile_is_allowed_in_full(self):
        owner = _owner(Privacy.PUBLIC)
        assert evaluate_profile_visibility(owner, None, False) is Visibility.ALLOW
        assert evaluate_profile_visibility(owner, VIEWER, False) is Visibility.ALLOW

    def test_followers_only_non_follower_gets_redacted_profile(self):
        """A signed-in stranger learns the profile exists but not its details."""
        owner = _owner(Privacy.FOLLOWERS_ONLY)
        assert evaluate_profile_visibility(owner, VIEWER, False) is Visibility.ALLOW_REDACTED

    def test_followers_only_follower_gets_full_profile(self):
        owner = _owner(Privacy.FOLLOWERS_ONLY)
        assert evaluate_profile_visibility(owner, VIEWER, True) is Visibility.ALLOW

    def test_followers_only_anonymous_is_denied(self):
        owner = _owner(Privacy.FOLLOWERS_ONLY)
        assert evaluate_profile_visibility(owner, None, False) is Visibility.DENY

    @pytest.mark.parametrize("following", [True, False])
    def test_private_profile_is_denied_to_others(self, following):
        owner = _owner(Privacy.PRIVATE)
        assert evaluate_profile_visibility(owner, VIEWER, following) is Visibility.DENY

    @pytest.mark.parametrize("privacy", list(Privacy))
    def test_owner_sees_own_profile_in_full(self, privacy):
        owner = _owner(privacy)
        assert evaluate_profile_visibility(owner, owner.id, False) is Visibility.ALLOW


class TestPostVisibility:
    def test_posts_are_never_redacted(self):
        """A followers-only post is either shown or refused."""
        owner = _owner(Privacy.FOLLOWERS_ONLY)
        assert evaluate_post_visibility(owner, VIEWER, False) is Visibility.DENY
        assert evaluate_post_visibility(owner, VIEWER, True) is Visibility.ALLOW

    def test_denial_reason_for_signed_in_non_follower(self):
        assert post_denial_reason(Privacy.FOLLOWERS_ONLY, VIEWER) == FOLLOWERS_ONLY_POST_DETAIL

    def test_denial_reason_for_anonymous_viewer_is_generic(self):
        """Anonymous viewers are not told that following would help."""
        assert post_denial_reason(Privacy.FOLLOWERS_ONLY, None) == PRIVATE_POST_DETAIL
        assert post_denial_reason(Privacy.PRIVATE, VIEWER) == PRIVATE_POST_DETAIL


class TestFilterVisiblePosts:
    def _post(self, owner: User, content: str) -> Post:
        return Post(id=uuid.uuid4(), user_id=owner.id, user=owner, content=content)

    def test_mixed_owners_are_checked_individually(self):
        """Each post is judged against its own author, preserving order."""
        public = _owner(Privacy.PUBLIC)
        followed = _owner(Privacy.FOLLOWERS_ONLY)
        stranger = _owner(Privacy.FOLLOWERS_ONLY)
        private = _owner(Privacy.PRIVATE)
        posts = [
            self._post(public, "a"),
            self._post(stranger, "b"),
            self._post(followed, "c"),
            self._post(private, "d"),
            self._post(public, "e"),
        ]

        visible = filter_visible_posts(posts, VIEWER, {followed.id, private.id})

        assert [post.content for post in visible] == ["a", "c", "e"]

    def test_anonymous_viewer_sees_only_public_posts(self):
        public = _owner(Privacy.PUBLIC)
        hidden = _owner(Privacy.FOLLOWERS_ONLY)
        posts = [self._post(hidden, "x"), self._post(public, "y")]

        assert [post.content for post in filter_visible_posts(posts, None, set())] == ["y"]

    def test_empty_input(self):
        assert filter_visible_posts([], VIEWER, set()) == []
