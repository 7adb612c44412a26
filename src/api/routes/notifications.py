"""
In-app notification endpoints.

The dispatcher shows notifications on the in-process notifier; clients
list them, follow them as server-sent events, and report clicks.
"""

import asyncio
import json
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from src.api.dependencies import get_notifier
from src.application.dto.requests import NotificationActionRequest
from src.application.dto.responses import (
    ActiveNotificationListResponse,
    ActiveNotificationResponse,
    NotificationActionResponse,
)
from src.config import get_logger
from src.infrastructure.notify import ActiveNotification, InAppNotifier

logger = get_logger(__name__)

router = APIRouter(prefix="/api/notifications", tags=["notifications"])

# Keep-alive comment interval for idle streams
HEARTBEAT_SECONDS = 15.0


def _to_response(notification: ActiveNotification) -> ActiveNotificationResponse:
    return ActiveNotificationResponse(
        tag=notification.tag,
        shown_at=notification.shown_at,
        payload=notification.payload.to_wire(),
    )


@router.get("", response_model=ActiveNotificationListResponse)
async def list_notifications(
    notifier: InAppNotifier = Depends(get_notifier),
) -> ActiveNotificationListResponse:
    """Notifications currently shown, oldest first."""
    active = notifier.active()
    return ActiveNotificationListResponse(
        notifications=[_to_response(n) for n in active],
        total=len(active),
    )


async def _event_stream(
    request: Request,
    notifier: InAppNotifier,
) -> AsyncIterator[str]:
    queue = notifier.subscribe()
    logger.info("notification_stream_opened", subscribers=notifier.subscriber_count)
    try:
        while not await request.is_disconnected():
            try:
                notification = await asyncio.wait_for(queue.get(), timeout=HEARTBEAT_SECONDS)
            except TimeoutError:
                yield ": keep-alive\n\n"
                continue
            data = json.dumps(notification.to_dict())
            yield f"event: notification\ndata: {data}\n\n"
    finally:
        notifier.unsubscribe(queue)
        logger.info("notification_stream_closed", subscribers=notifier.subscriber_count)


@router.get("/stream")
async def stream_notifications(
    request: Request,
    notifier: InAppNotifier = Depends(get_notifier),
) -> StreamingResponse:
    """Server-sent events, one `notification` event per shown notification."""
    return StreamingResponse(
        _event_stream(request, notifier),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.post("/{tag}/action", response_model=NotificationActionResponse)
async def notification_action(
    tag: str,
    request: NotificationActionRequest,
    notifier: InAppNotifier = Depends(get_notifier),
) -> NotificationActionResponse:
    """Close a notification; returns the URL to open unless dismissed."""
    return NotificationActionResponse(url=notifier.activate(tag, request.action))
