"""SQLAlchemy declarative base and common mixins."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import JSON, DateTime, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from marketadmin.core.constants import MAX_ID_LENGTH


# JSONB on PostgreSQL, plain JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")


def generate_id() -> str:
    """Generate an opaque identifier for new rows."""
    return uuid4().hex


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class IdMixin:
    """Mixin that adds an opaque string primary key."""

    id: Mapped[str] = mapped_column(
        String(MAX_ID_LENGTH),
        primary_key=True,
        default=generate_id,
    )


class CreatedAtMixin:
    """Mixin that adds a created_at timestamp.

    Governed entities deliberately have no auto-updated ``updated_at``:
    status changes must only touch the status columns.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
