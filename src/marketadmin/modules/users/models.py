"""User account database models."""

from datetime import datetime
from enum import StrEnum

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from marketadmin.core.constants import (
    MAX_EMAIL_LENGTH,
    MAX_ID_LENGTH,
    MAX_NAME_LENGTH,
    MAX_ROLE_LENGTH,
    MAX_STATUS_LENGTH,
)
from marketadmin.core.database.base import Base, CreatedAtMixin, IdMixin


class UserRole(StrEnum):
    """Roles a user account can hold."""

    ADMIN = "admin"
    PROFESSIONAL = "professional"
    PATIENT = "patient"


class UserStatus(StrEnum):
    """Account statuses an administrator can assign."""

    ACTIVE = "active"
    UNDER_REVIEW = "under_review"
    REJECTED = "rejected"
    INACTIVE = "inactive"


class User(Base, IdMixin, CreatedAtMixin):
    """User account, a governed entity.

    Attributes:
        email: Email address, also used as the admin email in audit entries
        name: Display name
        role: One of UserRole
        status: One of UserStatus, changed only by the admin pipeline
        status_updated_at: Server time of the last status change
        status_updated_by: Admin id of the last status change
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(MAX_EMAIL_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )
    name: Mapped[str] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=False,
        default="",
    )
    role: Mapped[str] = mapped_column(
        String(MAX_ROLE_LENGTH),
        nullable=False,
        default=UserRole.PATIENT.value,
        index=True,
    )
    status: Mapped[str | None] = mapped_column(
        String(MAX_STATUS_LENGTH),
        nullable=True,
        default=UserStatus.ACTIVE.value,
    )
    status_updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    status_updated_by: Mapped[str | None] = mapped_column(
        String(MAX_ID_LENGTH),
        nullable=True,
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
