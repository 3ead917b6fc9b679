# src/orbit_social/models/__init__.py
"""SQLAlchemy models for the Orbit Social application."""

from .notification import Notification, NotificationType
from .post import Comment, Post
from .social import Follow, Like
from .user import Privacy, Role, User

__all__ = [
    "Comment", "Post",
    "Follow", "Like",
    "Notification", "NotificationType",
    "Privacy", "Role", "User",
]
