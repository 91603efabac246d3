"""Notification fan-out service.

Every change to a recipient's notifications runs under that recipient's
lock: write, commit, snapshot the feed, publish. Subscribers therefore see
one feed per change, in change order. Changes that alter nothing (marking
already-read notifications) neither write nor publish.
"""

from typing import Annotated

import structlog
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from marketadmin.api.dependencies import SessionFactory
from marketadmin.config import settings
from marketadmin.core.clock import MonotonicClock, server_clock
from marketadmin.core.errors import NotFoundError
from marketadmin.modules.notifications.hub import (
    NotificationHub,
    OnChange,
    Subscription,
    get_notification_hub,
)
from marketadmin.modules.notifications.models import Notification
from marketadmin.modules.notifications.repos import NotificationRepository
from marketadmin.modules.notifications.schemas import (
    NotificationFeed,
    NotificationPayload,
    NotificationRead,
)


log = structlog.get_logger()


class NotificationService:
    """Creates notifications, tracks read state and serves live feeds.

    Attributes:
        session_factory: Factory for the service's own sessions
        hub: Publish/subscribe channel for live feeds
        clock: Timestamp authority for created_at
        feed_limit: Maximum notifications in a feed snapshot
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        hub: NotificationHub,
        clock: MonotonicClock = server_clock,
        feed_limit: int | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.hub = hub
        self.clock = clock
        self.feed_limit = feed_limit or settings.notification_feed_limit

    async def _snapshot(self, session: AsyncSession, recipient_id: str) -> NotificationFeed:
        notifications = await NotificationRepository(session).list_for_recipient(
            recipient_id, limit=self.feed_limit
        )
        return NotificationFeed(
            recipient_id=recipient_id,
            notifications=[NotificationRead.model_validate(n) for n in notifications],
        )

    async def _publish(self, session: AsyncSession, recipient_id: str) -> None:
        feed = await self._snapshot(session, recipient_id)
        delivered = self.hub.publish(recipient_id, feed)
        log.debug("notification_feed_published", recipient_id=recipient_id, subscribers=delivered)

    async def create(self, recipient_id: str, payload: NotificationPayload) -> NotificationRead:
        """Persist a new unread notification and publish the recipient's feed."""
        async with self.hub.lock_for(recipient_id), self.session_factory() as session:
            notification = await NotificationRepository(session).create(
                Notification(
                    recipient_id=recipient_id,
                    type=str(payload.type),
                    title=payload.title,
                    message=payload.message,
                    action_url=payload.action_url,
                    metadata_=payload.metadata,
                    read=False,
                    created_at=self.clock.now(),
                )
            )
            await session.commit()
            created = NotificationRead.model_validate(notification)
            await self._publish(session, recipient_id)

        log.info(
            "notification_created",
            notification_id=created.id,
            recipient_id=recipient_id,
            type=created.type,
        )
        return created

    async def mark_read(self, notification_id: str, recipient_id: str | None = None) -> bool:
        """Mark one notification read.

        Args:
            notification_id: Notification to mark
            recipient_id: When given, the notification must belong to it

        Returns:
            True if the notification changed, False if it was already read

        Raises:
            NotFoundError: Unknown notification, or owned by someone else
        """
        async with self.session_factory() as session:
            notification = await NotificationRepository(session).get_by_id(notification_id)
        if notification is None or (
            recipient_id is not None and notification.recipient_id != recipient_id
        ):
            raise NotFoundError(
                "Notification not found",
                resource="notification",
                resource_id=notification_id,
            )

        owner = notification.recipient_id
        async with self.hub.lock_for(owner), self.session_factory() as session:
            changed = await NotificationRepository(session).mark_read(notification_id)
            if not changed:
                return False
            await session.commit()
            await self._publish(session, owner)

        log.info("notification_marked_read", notification_id=notification_id, recipient_id=owner)
        return True

    async def mark_all_read(self, recipient_id: str) -> int:
        """Mark every unread notification of a recipient read.

        Returns:
            Number of notifications changed
        """
        async with self.hub.lock_for(recipient_id), self.session_factory() as session:
            changed = await NotificationRepository(session).mark_all_read(recipient_id)
            if not changed:
                return 0
            await session.commit()
            await self._publish(session, recipient_id)

        log.info("notifications_marked_read", recipient_id=recipient_id, count=changed)
        return changed

    async def get_feed(self, recipient_id: str) -> NotificationFeed:
        """Current feed of a recipient, newest first."""
        async with self.session_factory() as session:
            return await self._snapshot(session, recipient_id)

    async def unread_count(self, recipient_id: str) -> int:
        async with self.session_factory() as session:
            return await NotificationRepository(session).count_unread(recipient_id)

    async def subscribe(
        self,
        recipient_id: str,
        on_change: OnChange,
        replay_current: bool = False,
    ) -> Subscription:
        """Open a live feed for a recipient.

        Args:
            recipient_id: Whose notifications to follow
            on_change: Called with the full feed after every change
            replay_current: Also deliver the current feed first

        Returns:
            The subscription; call ``unsubscribe()`` to stop it
        """
        if not replay_current:
            return self.hub.subscribe(recipient_id, on_change)

        async with self.hub.lock_for(recipient_id):
            subscription = self.hub.subscribe(recipient_id, on_change)
            subscription.offer(await self.get_feed(recipient_id))
        return subscription


def get_notification_service(
    session_factory: SessionFactory,
    hub: Annotated[NotificationHub, Depends(get_notification_hub)],
) -> NotificationService:
    """Dependency providing the notification service."""
    return NotificationService(session_factory, hub)


NotificationSvc = Annotated[NotificationService, Depends(get_notification_service)]
