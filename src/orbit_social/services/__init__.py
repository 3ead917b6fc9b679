# src/orbit_social/services/__init__.py
"""Business logic services for the Orbit Social application."""

from .broker import NotificationBroker
from .notifications import FanoutAction, NotificationFanout
from .privacy import Visibility, can_view

__all__ = [
    "FanoutAction",
    "NotificationBroker",
    "NotificationFanout",
    "Visibility",
    "can_view",
]
