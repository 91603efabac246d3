"""Notification API routes for the authenticated recipient."""

import asyncio
from collections.abc import AsyncIterator

import structlog
from fastapi import Depends, Request
from fastapi.responses import StreamingResponse

from marketadmin.core.auth import CurrentUserId
from marketadmin.core.rate_limit import presets, rate_limit
from marketadmin.modules.notifications import router
from marketadmin.modules.notifications.schemas import (
    MarkReadResponse,
    NotificationFeed,
    UnreadCountResponse,
)
from marketadmin.modules.notifications.service import NotificationSvc


log = structlog.get_logger()

STREAM_KEEPALIVE_SECONDS = 15.0


@router.get(
    "",
    response_model=NotificationFeed,
    summary="List notifications",
    description="Current notification feed of the caller, newest first.",
    dependencies=[Depends(rate_limit(presets.api))],
)
async def list_notifications(
    user_id: CurrentUserId,
    service: NotificationSvc,
) -> NotificationFeed:
    return await service.get_feed(user_id)


@router.get(
    "/unread-count",
    response_model=UnreadCountResponse,
    summary="Unread count",
    dependencies=[Depends(rate_limit(presets.api))],
)
async def unread_count(
    user_id: CurrentUserId,
    service: NotificationSvc,
) -> UnreadCountResponse:
    return UnreadCountResponse(unread_count=await service.unread_count(user_id))


@router.post(
    "/read-all",
    response_model=MarkReadResponse,
    summary="Mark all notifications read",
    dependencies=[Depends(rate_limit(presets.api))],
)
async def mark_all_read(
    user_id: CurrentUserId,
    service: NotificationSvc,
) -> MarkReadResponse:
    updated = await service.mark_all_read(user_id)
    return MarkReadResponse(updated=updated)


@router.post(
    "/{notification_id}/read",
    response_model=MarkReadResponse,
    summary="Mark a notification read",
    description="Idempotent. Notifications of other recipients report 404.",
    dependencies=[Depends(rate_limit(presets.api))],
)
async def mark_read(
    notification_id: str,
    user_id: CurrentUserId,
    service: NotificationSvc,
) -> MarkReadResponse:
    changed = await service.mark_read(notification_id, recipient_id=user_id)
    return MarkReadResponse(updated=1 if changed else 0)


def _sse_event(feed: NotificationFeed) -> str:
    return f"event: notifications\ndata: {feed.model_dump_json()}\n\n"


@router.get(
    "/stream",
    summary="Live notification feed",
    description=(
        "Server-Sent Events stream. The current feed is sent first, then the "
        "full feed again after every change."
    ),
    dependencies=[Depends(rate_limit(presets.api))],
)
async def stream_notifications(
    request: Request,
    user_id: CurrentUserId,
    service: NotificationSvc,
) -> StreamingResponse:
    queue: asyncio.Queue[NotificationFeed] = asyncio.Queue()
    subscription = await service.subscribe(user_id, queue.put_nowait, replay_current=True)

    async def events() -> AsyncIterator[str]:
        try:
            while not await request.is_disconnected():
                try:
                    async with asyncio.timeout(STREAM_KEEPALIVE_SECONDS):
                        feed = await queue.get()
                except TimeoutError:
                    yield ": keepalive\n\n"
                    continue
                yield _sse_event(feed)
        finally:
            subscription.unsubscribe()
            log.debug("notification_stream_closed", recipient_id=user_id)

    return StreamingResponse(
        events(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
