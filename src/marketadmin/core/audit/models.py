"""Audit log database model.

Stores one immutable entry per privileged mutation, for operator
visibility. Entries are advisory: current status always comes from the
governed entity itself.
"""

from datetime import datetime
from enum import StrEnum
from typing import Any

from sqlalchemy import DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from marketadmin.core.constants import (
    MAX_ACTION_LENGTH,
    MAX_EMAIL_LENGTH,
    MAX_ID_LENGTH,
    MAX_TARGET_TYPE_LENGTH,
)
from marketadmin.core.database.base import Base, IdMixin, JSONType


class AdminAction(StrEnum):
    """Action codes recorded in the audit log."""

    APPROVE_PROFESSIONAL = "approve_professional"
    REJECT_PROFESSIONAL = "reject_professional"
    UPDATE_USER_STATUS = "update_user_status"
    DELETE_USER = "delete_user"
    CANCEL_APPOINTMENT = "cancel_appointment"
    MODERATE_REVIEW = "moderate_review"
    CREATE_CATEGORY = "create_category"
    UPDATE_CATEGORY = "update_category"
    DELETE_CATEGORY = "delete_category"
    CHANGE_USER_ROLE = "change_user_role"


class TargetType(StrEnum):
    """Kinds of entity an audit entry can point at."""

    USER = "user"
    PROFESSIONAL = "professional"
    APPOINTMENT = "appointment"
    REVIEW = "review"
    CATEGORY = "category"


class AuditLog(Base, IdMixin):
    """Audit log entry for one administrator action.

    Attributes:
        created_at: Server-assigned timestamp, strictly increasing per writer
        admin_id: The administrator who performed the action
        admin_email: Email resolved at write time, or "unknown"
        action: One of AdminAction
        target_id: Identifier of the affected entity
        target_type: One of TargetType
        details: Previous/new status and denormalized display fields
    """

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_target", "target_type", "target_id"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )
    admin_id: Mapped[str] = mapped_column(
        String(MAX_ID_LENGTH),
        nullable=False,
        index=True,
    )
    admin_email: Mapped[str] = mapped_column(
        String(MAX_EMAIL_LENGTH),
        nullable=False,
    )
    action: Mapped[str] = mapped_column(
        String(MAX_ACTION_LENGTH),
        nullable=False,
        index=True,
    )
    target_id: Mapped[str] = mapped_column(
        String(MAX_ID_LENGTH),
        nullable=False,
    )
    target_type: Mapped[str] = mapped_column(
        String(MAX_TARGET_TYPE_LENGTH),
        nullable=False,
    )
    details: Mapped[dict[str, Any]] = mapped_column(
        JSONType,
        nullable=False,
        default=dict,
    )

    def __repr__(self) -> str:
        return (
            f"<AuditLog(id={self.id}, action={self.action}, "
            f"target_type={self.target_type}, target_id={self.target_id})>"
        )
