"""Professional database models."""

from datetime import datetime
from enum import StrEnum

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from marketadmin.core.constants import (
    MAX_EMAIL_LENGTH,
    MAX_ID_LENGTH,
    MAX_NAME_LENGTH,
    MAX_STATUS_LENGTH,
)
from marketadmin.core.database.base import Base, CreatedAtMixin, IdMixin


class ProfessionalStatus(StrEnum):
    """Approval statuses of a professional application."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Professional(Base, IdMixin, CreatedAtMixin):
    """Professional listing awaiting or past admin review.

    Attributes:
        user_id: Account that owns the listing and receives notifications
        name: Display name, denormalized into audit entries
        email: Contact email, denormalized into audit entries
        status: One of ProfessionalStatus
        reviewed_at: Server time of the approval or rejection
        reviewed_by: Admin id that approved or rejected
    """

    __tablename__ = "professionals"

    user_id: Mapped[str | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    name: Mapped[str] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=False,
        default="",
    )
    email: Mapped[str | None] = mapped_column(
        String(MAX_EMAIL_LENGTH),
        nullable=True,
    )
    status: Mapped[str] = mapped_column(
        String(MAX_STATUS_LENGTH),
        nullable=False,
        default=ProfessionalStatus.PENDING.value,
        index=True,
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    reviewed_by: Mapped[str | None] = mapped_column(
        String(MAX_ID_LENGTH),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Professional(id={self.id}, name={self.name}, status={self.status})>"
