"""Notification schemas and derived feed views."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from marketadmin.modules.notifications.models import NotificationType


class NotificationPayload(BaseModel):
    """Kind-specific content of a notification."""

    type: NotificationType
    title: str
    message: str
    action_url: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class NotificationRead(BaseModel):
    """Notification as delivered to consumers."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    recipient_id: str
    type: str
    title: str
    message: str
    action_url: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="metadata_")
    read: bool
    created_at: datetime


class NotificationFeed(BaseModel):
    """Snapshot of one recipient's notifications, newest first.

    The unread and recent views are computed from the snapshot and never
    stored separately.
    """

    recipient_id: str
    notifications: list[NotificationRead] = Field(default_factory=list)

    @property
    def unread(self) -> list[NotificationRead]:
        return [n for n in self.notifications if not n.read]

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self.notifications if not n.read)

    def recent(self, size: int = 10) -> list[NotificationRead]:
        """The most recent ``size`` notifications, newest first."""
        return self.notifications[:size]


class UnreadCountResponse(BaseModel):
    """Unread notification count for the caller."""

    unread_count: int


class MarkReadResponse(BaseModel):
    """Result of a read-state mutation."""

    success: bool = True
    updated: int
