"""Notification repository for database operations."""

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from marketadmin.modules.notifications.models import Notification


class NotificationRepository:
    """Repository for Notification database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, notification: Notification) -> Notification:
        """Insert a notification and flush it."""
        self.session.add(notification)
        await self.session.flush()
        return notification

    async def get_by_id(self, notification_id: str) -> Notification | None:
        """Get a notification by ID."""
        result = await self.session.execute(
            select(Notification).where(Notification.id == notification_id)
        )
        return result.scalar_one_or_none()

    async def list_for_recipient(
        self, recipient_id: str, limit: int | None = None
    ) -> list[Notification]:
        """List a recipient's notifications, newest first."""
        stmt = (
            select(Notification)
            .where(Notification.recipient_id == recipient_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_unread(self, recipient_id: str) -> int:
        """Count a recipient's unread notifications."""
        stmt = (
            select(func.count())
            .select_from(Notification)
            .where(Notification.recipient_id == recipient_id, Notification.read.is_(False))
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def mark_read(self, notification_id: str) -> int:
        """Mark one notification read if it is unread.

        Returns:
            Number of rows changed (0 when already read)
        """
        stmt = (
            update(Notification)
            .where(Notification.id == notification_id, Notification.read.is_(False))
            .values(read=True)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def mark_all_read(self, recipient_id: str) -> int:
        """Mark every unread notification of a recipient read.

        Returns:
            Number of rows changed (0 when nothing was unread)
        """
        stmt = (
            update(Notification)
            .where(Notification.recipient_id == recipient_id, Notification.read.is_(False))
            .values(read=True)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount
