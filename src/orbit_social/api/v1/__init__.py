# src/orbit_social/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    admin_router,
    auth_router,
    comments_router,
    feed_router,
    notifications_router,
    posts_router,
    users_router,
)

__all__ = [
    "admin_router",
    "auth_router",
    "comments_router",
    "feed_router",
    "notifications_router",
    "posts_router",
    "users_router",
]
