# src/orbit_social/services/privacy.py
"""Visibility rules for profiles and posts.

Every read path funnels through :func:`can_view`. The rule order is fixed and
the first matching rule wins:

1. PUBLIC owners are visible to everyone, including anonymous viewers.
2. Anonymous viewers see nothing else.
3. Owners always see their own content.
4. PRIVATE owners are hidden from everyone else.
5. FOLLOWERS_ONLY owners are visible to their followers.
6. Anything unrecognised is hidden.

None of the functions here touch the database or raise; callers gather the
follow relationship first and pass it in.
"""

from __future__ import annotations

import enum
import uuid
from collections.abc import Collection, Iterable
from typing import TypeVar

from orbit_social.models import Post, Privacy, User

__all__ = [
    "Visibility",
    "can_view",
    "evaluate_post_visibility",
    "evaluate_profile_visibility",
    "filter_visible_posts",
    "post_denial_reason",
    "should_redact_profile",
]

PostT = TypeVar("PostT", bound=Post)

PRIVATE_POST_DETAIL = "This post is private"
FOLLOWERS_ONLY_POST_DETAIL = "This post is only visible to followers"
PRIVATE_PROFILE_DETAIL = "This profile is private"


class Visibility(str, enum.Enum):
    """Verdict for a single resource fetch."""

    ALLOW = "allow"
    DENY = "deny"
    ALLOW_REDACTED = "allow_redacted"


def _coerce_privacy(value: Privacy | str | None) -> Privacy | None:
    if isinstance(value, Privacy):
        return value
    try:
        return Privacy(value)
    except ValueError:
        return None


def can_view(
    owner_privacy: Privacy | str | None,
    owner_id: uuid.UUID | None,
    viewer_id: uuid.UUID | None,
    is_following: bool = False,
) -> bool:
    """Return True if ``viewer_id`` may see content owned by ``owner_id``."""
    privacy = _coerce_privacy(owner_privacy)

    if privacy is Privacy.PUBLIC:
        return True
    if viewer_id is None:
        return False
    if owner_id is not None and viewer_id == owner_id:
        return True
    if privacy is Privacy.PRIVATE:
        return False
    if privacy is Privacy.FOLLOWERS_ONLY:
        return bool(is_following)
    return False


def should_redact_profile(
    owner: User,
    viewer_id: uuid.UUID | None,
    is_following: bool,
) -> bool:
    """Return True when a visible profile must hide its details."""
    return (
        not is_following
        and viewer_id != owner.id
        and _coerce_privacy(owner.privacy) is not Privacy.PUBLIC
    )


def evaluate_profile_visibility(
    owner: User,
    viewer_id: uuid.UUID | None,
    is_following: bool,
) -> Visibility:
    """Decide how much of ``owner``'s profile ``viewer_id`` may see.

    A signed-in viewer who does not follow a FOLLOWERS_ONLY owner still learns
    that the profile exists and receives it redacted. PRIVATE profiles and
    anonymous viewers of non-public profiles are denied outright.
    """
    if can_view(owner.privacy, owner.id, viewer_id, is_following):
        if should_redact_profile(owner, viewer_id, is_following):
            return Visibility.ALLOW_REDACTED
        return Visibility.ALLOW

    if viewer_id is not None and _coerce_privacy(owner.privacy) is Privacy.FOLLOWERS_ONLY:
        return Visibility.ALLOW_REDACTED
    return Visibility.DENY


def evaluate_post_visibility(
    owner: User,
    viewer_id: uuid.UUID | None,
    is_following: bool,
) -> Visibility:
    """Decide whether ``viewer_id`` may fetch a post owned by ``owner``.

    Posts are never redacted: the verdict is ALLOW or DENY.
    """
    if can_view(owner.privacy, owner.id, viewer_id, is_following):
        return Visibility.ALLOW
    return Visibility.DENY


def post_denial_reason(owner_privacy: Privacy | str | None, viewer_id: uuid.UUID | None) -> str:
    """Return the user-facing message for a denied post fetch.

    Anonymous viewers only ever learn that the post is private.
    """
    if viewer_id is not None and _coerce_privacy(owner_privacy) is Privacy.FOLLOWERS_ONLY:
        return FOLLOWERS_ONLY_POST_DETAIL
    return PRIVATE_POST_DETAIL


def filter_visible_posts(
    posts: Iterable[PostT],
    viewer_id: uuid.UUID | None,
    following_ids: Collection[uuid.UUID],
) -> list[PostT]:
    """Drop posts the viewer may not see, keeping the input order.

    The check runs against each post's own owner, so a page that mixes owners
    with different privacy settings is filtered correctly.
    """
    visible: list[PostT] = []
    for post in posts:
        owner = post.user
        if can_view(owner.privacy, owner.id, viewer_id, owner.id in following_ids):
            visible.append(post)
    return visible
