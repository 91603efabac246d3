"""Audit log writer and reader.

The writer opens its own session for every entry, so a failed write never
touches the transaction that applied the audited change. Callers run it
through the best-effort dispatcher.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from marketadmin.core.audit.models import AdminAction, AuditLog, TargetType
from marketadmin.core.clock import MonotonicClock, server_clock
from marketadmin.core.constants import DEFAULT_PAGE_SIZE, UNKNOWN_ADMIN_EMAIL
from marketadmin.modules.users.repos import UserRepository


log = structlog.get_logger()


def _serialize_value(value: Any) -> Any:
    """Serialize a value to JSON-compatible primitives.

    Args:
        value: Any value to serialize

    Returns:
        JSON-serializable representation of the value
    """
    if value is None or isinstance(value, str | int | float | bool):
        return value

    result: Any
    if isinstance(value, Enum):
        result = _serialize_value(value.value)
    elif isinstance(value, UUID):
        result = str(value)
    elif isinstance(value, datetime | date):
        result = value.isoformat()
    elif isinstance(value, dict):
        result = {str(k): _serialize_value(v) for k, v in value.items()}
    elif isinstance(value, list | tuple | set | frozenset):
        result = [_serialize_value(item) for item in value]
    else:
        result = str(value)

    return result


@dataclass(frozen=True)
class AuditLogFilters:
    """Optional filters for listing audit entries."""

    action: str | None = None
    target_type: str | None = None
    target_id: str | None = None
    admin_id: str | None = None


class AuditLogWriter:
    """Writes and lists audit log entries.

    Attributes:
        session_factory: Factory for the writer's own sessions
        clock: Timestamp authority for created_at
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: MonotonicClock = server_clock,
    ) -> None:
        self.session_factory = session_factory
        self.clock = clock

    async def resolve_admin_email(self, admin_id: str) -> str:
        """Look up an administrator's email.

        Best-effort: a missing user or failed lookup yields "unknown".
        """
        try:
            async with self.session_factory() as session:
                email = await UserRepository(session).get_email(admin_id)
        except Exception as exc:
            log.warning(
                "admin_email_lookup_failed",
                admin_id=admin_id,
                error_type=type(exc).__name__,
            )
            return UNKNOWN_ADMIN_EMAIL
        return email or UNKNOWN_ADMIN_EMAIL

    async def record(
        self,
        admin_id: str,
        admin_email: str,
        action: AdminAction,
        target_id: str,
        target_type: TargetType,
        details: dict[str, Any] | None = None,
    ) -> AuditLog:
        """Append one audit entry.

        Args:
            admin_id: Administrator who acted
            admin_email: Email resolved at write time, or "unknown"
            action: Action code
            target_id: Affected entity id
            target_type: Affected entity kind
            details: Previous/new status and display fields

        Returns:
            The committed audit entry

        Raises:
            Exception: Any database error; the entry is not written
        """
        entry = AuditLog(
            created_at=self.clock.now(),
            admin_id=admin_id,
            admin_email=admin_email or UNKNOWN_ADMIN_EMAIL,
            action=str(action),
            target_id=target_id,
            target_type=str(target_type),
            details=_serialize_value(details or {}),
        )

        async with self.session_factory() as session:
            session.add(entry)
            await session.commit()

        log.info(
            "audit_log_created",
            audit_id=entry.id,
            action=entry.action,
            target_type=entry.target_type,
            target_id=target_id,
            admin_id=admin_id,
        )
        return entry

    async def record_action(
        self,
        admin_id: str,
        action: AdminAction,
        target_id: str,
        target_type: TargetType,
        details: dict[str, Any] | None = None,
    ) -> AuditLog:
        """Resolve the admin's email, then append the entry."""
        admin_email = await self.resolve_admin_email(admin_id)
        return await self.record(
            admin_id, admin_email, action, target_id, target_type, details
        )

    async def list_entries(
        self,
        filters: AuditLogFilters | None = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> tuple[list[AuditLog], int]:
        """List audit entries, newest first.

        Returns:
            Tuple of (entries, total count matching the filters)
        """
        filters = filters or AuditLogFilters()
        conditions = []
        if filters.action:
            conditions.append(AuditLog.action == filters.action)
        if filters.target_type:
            conditions.append(AuditLog.target_type == filters.target_type)
        if filters.target_id:
            conditions.append(AuditLog.target_id == filters.target_id)
        if filters.admin_id:
            conditions.append(AuditLog.admin_id == filters.admin_id)

        async with self.session_factory() as session:
            count_stmt = select(func.count()).select_from(AuditLog).where(*conditions)
            total = (await session.execute(count_stmt)).scalar_one()

            stmt = (
                select(AuditLog)
                .where(*conditions)
                .order_by(AuditLog.created_at.desc())
                .offset((page - 1) * page_size)
                .limit(page_size)
            )
            entries = list((await session.execute(stmt)).scalars().all())

        return entries, total
