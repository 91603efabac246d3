"""Pydantic schemas for admin operations."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from marketadmin.modules.users.models import UserStatus


# ============================================================
# Admin Actions
# ============================================================


class UserStatusUpdate(BaseModel):
    """Body of the user status route."""

    status: UserStatus


class AdminActionResponse(BaseModel):
    """Successful admin action."""

    success: bool = True
    message: str
    data: dict[str, Any] = Field(default_factory=dict)


# ============================================================
# Audit Logs
# ============================================================


class AuditLogRead(BaseModel):
    """Audit entry as returned to administrators."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    created_at: datetime
    admin_id: str
    admin_email: str
    action: str
    target_id: str
    target_type: str
    details: dict[str, Any] = Field(default_factory=dict)


class AuditLogPage(BaseModel):
    """One page of audit entries, newest first."""

    items: list[AuditLogRead]
    total: int
    page: int
    page_size: int
