# src/orbit_social/api/v1/endpoints/notifications.py
"""Notification inbox and live stream."""

import asyncio
import contextlib
import json
import uuid
from collections.abc import AsyncIterator

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import StreamingResponse

from orbit_social.core.settings import settings
from orbit_social.models import Notification
from orbit_social.schemas.common import Pagination
from orbit_social.schemas.notification import NotificationListResponse, NotificationResponse
from orbit_social.services import notifications as notification_service
from orbit_social.services.broker import NotificationBroker, get_notification_broker

from ..dependencies import CurrentUserDep, PageDep, SessionDep

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    current_user: CurrentUserDep,
    db: SessionDep,
    page: PageDep,
) -> NotificationListResponse:
    """The caller's notifications, newest first, with the unread total."""
    rows, total = notification_service.list_notifications(
        db,
        current_user.id,
        offset=page.offset,
        limit=page.limit,
    )
    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(row) for row in rows],
        unread_count=notification_service.unread_count(db, current_user.id),
        pagination=Pagination.build(page.page, page.limit, total),
    )


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: uuid.UUID,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> NotificationResponse:
    """Mark one notification as read. Repeating the call changes nothing."""
    notification = db.get(Notification, notification_id)
    if notification is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found",
        )
    try:
        notification_service.mark_as_read(db, notification, current_user.id)
    except notification_service.NotificationAccessError as err:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(err)) from err
    return NotificationResponse.model_validate(notification)


def _format_event(payload: dict) -> str:
    return f"event: notification\ndata: {json.dumps(payload, separators=(',', ':'))}\n\n"


async def notification_events(
    broker: NotificationBroker,
    user_id: uuid.UUID,
    keepalive: float,
) -> AsyncIterator[str]:
    """Render a subscription as server-sent events.

    A comment line is sent whenever ``keepalive`` seconds pass without a
    notification so that idle proxies keep the connection open.
    """
    subscription = broker.subscribe(user_id)
    pending: asyncio.Future | None = None
    yield ": connected\n\n"
    try:
        while True:
            if pending is None:
                pending = asyncio.ensure_future(anext(subscription))
            done, _ = await asyncio.wait({pending}, timeout=keepalive)
            if not done:
                yield ": keepalive\n\n"
                continue
            payload = pending.result()
            pending = None
            yield _format_event(payload)
    finally:
        if pending is not None:
            pending.cancel()
            with contextlib.suppress(asyncio.CancelledError, StopAsyncIteration):
                await pending
        await subscription.aclose()


@router.get("/stream")
async def stream_notifications(current_user: CurrentUserDep) -> StreamingResponse:
    """Push new notifications to the caller as server-sent events.

    Only notifications committed while the stream is open are pushed; use
    ``GET /notifications`` to catch up after reconnecting.
    """
    events = notification_events(
        get_notification_broker(),
        current_user.id,
        settings.stream_keepalive_seconds,
    )
    return StreamingResponse(
        events,
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
