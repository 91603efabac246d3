"""Notification database models."""

from datetime import datetime
from enum import StrEnum
from typing import Any

from sqlalchemy import Boolean, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from marketadmin.core.constants import (
    MAX_ID_LENGTH,
    MAX_NOTIFICATION_TYPE_LENGTH,
    MAX_TITLE_LENGTH,
    MAX_URL_LENGTH,
)
from marketadmin.core.database.base import Base, IdMixin, JSONType


class NotificationType(StrEnum):
    """Kinds of in-app notification."""

    PROFESSIONAL_APPROVED = "professional_approved"
    PROFESSIONAL_REJECTED = "professional_rejected"
    ACCOUNT_STATUS_CHANGED = "account_status_changed"
    APPOINTMENT_BOOKED = "appointment_booked"
    APPOINTMENT_CANCELLED = "appointment_cancelled"
    APPOINTMENT_RESCHEDULED = "appointment_rescheduled"
    APPOINTMENT_REMINDER = "appointment_reminder"
    APPOINTMENT_CONFIRMED = "appointment_confirmed"
    REVIEW_APPROVED = "review_approved"
    REVIEW_REJECTED = "review_rejected"
    REVIEW_RECEIVED = "review_received"
    REVIEW_RESPONSE = "review_response"
    MESSAGE_RECEIVED = "message_received"
    PAYMENT_RECEIVED = "payment_received"


class Notification(Base, IdMixin):
    """One event delivered to one recipient.

    Only the read flag changes after creation, and only from False to True.
    """

    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_recipient_created", "recipient_id", "created_at"),
        Index("ix_notifications_recipient_read", "recipient_id", "read"),
    )

    recipient_id: Mapped[str] = mapped_column(
        String(MAX_ID_LENGTH),
        nullable=False,
    )
    type: Mapped[str] = mapped_column(
        String(MAX_NOTIFICATION_TYPE_LENGTH),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(
        String(MAX_TITLE_LENGTH),
        nullable=False,
    )
    message: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    action_url: Mapped[str | None] = mapped_column(
        String(MAX_URL_LENGTH),
        nullable=True,
    )
    metadata_: Mapped[dict[str, Any]] = mapped_column(
        "metadata",  # Column name in database
        JSONType,
        nullable=False,
        default=dict,
    )
    read: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<Notification(id={self.id}, recipient_id={self.recipient_id}, "
            f"type={self.type}, read={self.read})>"
        )
