# src/orbit_social/services/broker.py
"""Real-time delivery of committed notifications.

The database row is the source of truth; this module only pushes a copy to
clients that are connected at the time. Delivery is best-effort and clients
recover anything they missed by fetching ``/notifications``.

Two backends are available:

* ``memory`` keeps per-recipient asyncio queues inside the process. It is the
  default and what the test suite uses.
* ``redis`` publishes to ``notifications:user:{id}`` so that every worker
  process can serve streams for any user.
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from collections import defaultdict
from collections.abc import AsyncIterator
from threading import Lock
from typing import Any

import redis
import redis.asyncio as aioredis

from orbit_social.core.settings import settings
from orbit_social.models import Notification

logger = logging.getLogger(__name__)

_QUEUE_SIZE = 100


def channel_for_user(user_id: uuid.UUID | str) -> str:
    """Return the pub/sub channel name for a recipient."""
    return f"notifications:user:{user_id}"


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the JSON-safe payload pushed to subscribers."""
    return {
        "id": str(notification.id),
        "type": notification.type.value,
        "content": notification.content,
        "user_id": str(notification.user_id),
        "post_id": str(notification.post_id) if notification.post_id else None,
        "is_read": notification.is_read,
        "created_at": notification.created_at.isoformat() if notification.created_at else None,
    }


class _Subscriber:
    __slots__ = ("loop", "queue")

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self.loop = loop
        self.queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=_QUEUE_SIZE)

    def offer(self, payload: dict[str, Any]) -> None:
        try:
            self.queue.put_nowait(payload)
        except asyncio.QueueFull:
            logger.warning("Dropping notification for slow subscriber")


class NotificationBroker:
    """Per-recipient publish/subscribe channel for new notifications."""

    def __init__(self, backend: str | None = None, redis_url: str | None = None) -> None:
        self.backend = backend or settings.realtime_backend
        self._redis_url = redis_url or settings.redis_url
        self._subscribers: dict[str, set[_Subscriber]] = defaultdict(set)
        self._lock = Lock()
        self._redis: redis.Redis | None = None
        if self.backend == "redis":
            self._redis = redis.from_url(self._redis_url)  # type: ignore[no-untyped-call]

    # --- publishing -----------------------------------------------------------------
    def publish(self, notification: Notification) -> None:
        """Push a committed notification to its recipient's channel.

        Failures are logged and swallowed.
        """
        payload = serialize_notification(notification)
        channel = channel_for_user(notification.user_id)
        try:
            if self._redis is not None:
                self._redis.publish(channel, json.dumps(payload, separators=(",", ":")))
            else:
                self._publish_local(channel, payload)
        except (redis.RedisError, OSError, RuntimeError):
            logger.warning("Could not publish notification %s", payload["id"], exc_info=True)

    def publish_many(self, notifications: list[Notification]) -> None:
        for notification in notifications:
            self.publish(notification)

    def _publish_local(self, channel: str, payload: dict[str, Any]) -> None:
        with self._lock:
            subscribers = list(self._subscribers.get(channel, ()))
        for subscriber in subscribers:
            # Subscribers live on the event loop; publishers may be on a worker thread.
            subscriber.loop.call_soon_threadsafe(subscriber.offer, payload)

    # --- subscribing ----------------------------------------------------------------
    def subscriber_count(self, user_id: uuid.UUID | str) -> int:
        """Return the number of in-process subscribers for a recipient."""
        with self._lock:
            return len(self._subscribers.get(channel_for_user(user_id), ()))

    async def subscribe(self, user_id: uuid.UUID | str) -> AsyncIterator[dict[str, Any]]:
        """Yield notification payloads for ``user_id`` as they are published."""
        channel = channel_for_user(user_id)
        if self.backend == "redis":
            async for payload in self._subscribe_redis(channel):
                yield payload
            return

        subscriber = _Subscriber(asyncio.get_running_loop())
        with self._lock:
            self._subscribers[channel].add(subscriber)
        try:
            while True:
                yield await subscriber.queue.get()
        finally:
            with self._lock:
                channel_subscribers = self._subscribers.get(channel)
                if channel_subscribers is not None:
                    channel_subscribers.discard(subscriber)
                    if not channel_subscribers:
                        del self._subscribers[channel]

    async def _subscribe_redis(self, channel: str) -> AsyncIterator[dict[str, Any]]:
        client = aioredis.from_url(self._redis_url)
        pubsub = client.pubsub(ignore_subscribe_messages=True)
        await pubsub.subscribe(channel)
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                raw = message.get("data")
                if isinstance(raw, bytes):
                    raw = raw.decode("utf-8")
                try:
                    yield json.loads(raw)
                except (TypeError, ValueError):
                    logger.warning("Ignoring malformed message on %s", channel)
        finally:
            await pubsub.unsubscribe(channel)
            await pubsub.aclose()
            await client.aclose()

    def close(self) -> None:
        """Release the Redis connection pool, if any."""
        if self._redis is not None:
            self._redis.close()
            self._redis = None


_broker: NotificationBroker | None = None


def get_notification_broker() -> NotificationBroker:
    """Return the process-wide broker, creating it on first use."""
    global _broker
    if _broker is None:
        _broker = NotificationBroker()
    return _broker


def reset_notification_broker() -> None:
    """Drop the process-wide broker so the next call builds a fresh one."""
    global _broker
    if _broker is not None:
        _broker.close()
    _broker = None
