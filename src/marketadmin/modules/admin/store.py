"""Persistence for governed entities.

The store reads an entity and writes its status with a single
``UPDATE ... WHERE id`` statement touching only the status bookkeeping
columns. It never commits; the pipeline commits before dispatching any
follow-up work.
"""

from datetime import datetime
from typing import Any

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from marketadmin.core.errors import NotFoundError, PersistenceError
from marketadmin.modules.admin.state_machine import EntityKind
from marketadmin.modules.professionals.models import Professional
from marketadmin.modules.users.models import User


log = structlog.get_logger()

GovernedEntity = User | Professional

_MODELS: dict[EntityKind, type[User] | type[Professional]] = {
    EntityKind.USER: User,
    EntityKind.PROFESSIONAL: Professional,
}

_NOT_FOUND_MESSAGES = {
    EntityKind.USER: "User not found",
    EntityKind.PROFESSIONAL: "Professional not found",
}

# Columns the pipeline may write, per kind
_WRITABLE_FIELDS = {
    EntityKind.USER: frozenset({"status", "status_updated_at", "status_updated_by"}),
    EntityKind.PROFESSIONAL: frozenset({"status", "reviewed_at", "reviewed_by"}),
}


def status_fields(kind: EntityKind, status: str, admin_id: str, at: datetime) -> dict[str, Any]:
    """Column values recording a status change by an administrator."""
    if kind is EntityKind.USER:
        return {"status": status, "status_updated_at": at, "status_updated_by": admin_id}
    return {"status": status, "reviewed_at": at, "reviewed_by": admin_id}


class EntityStore:
    """Reads and updates governed entities in one session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _not_found(self, kind: EntityKind, entity_id: str) -> NotFoundError:
        return NotFoundError(
            _NOT_FOUND_MESSAGES[kind],
            resource=kind.value,
            resource_id=entity_id,
        )

    async def get(self, kind: EntityKind, entity_id: str) -> GovernedEntity:
        """Load an entity.

        Raises:
            NotFoundError: No entity with that id
            PersistenceError: The read failed
        """
        model = _MODELS[kind]
        try:
            result = await self.session.execute(select(model).where(model.id == entity_id))
        except SQLAlchemyError as exc:
            log.error("entity_read_failed", kind=kind.value, entity_id=entity_id, error=str(exc))
            raise PersistenceError("Failed to load the requested entity") from exc

        entity = result.scalar_one_or_none()
        if entity is None:
            raise self._not_found(kind, entity_id)
        return entity

    async def update(self, kind: EntityKind, entity_id: str, fields: dict[str, Any]) -> None:
        """Write status fields with one UPDATE statement.

        Args:
            kind: Entity kind
            entity_id: Entity to update
            fields: Column values; only status bookkeeping columns are allowed

        Raises:
            ValueError: A field outside the status bookkeeping columns
            NotFoundError: No row matched (deleted since it was read)
            PersistenceError: The statement failed
        """
        unknown = set(fields) - _WRITABLE_FIELDS[kind]
        if unknown:
            raise ValueError(f"Fields not writable for {kind.value}: {sorted(unknown)}")

        model = _MODELS[kind]
        stmt = (
            update(model)
            .where(model.id == entity_id)
            .values(**fields)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            log.error("entity_update_failed", kind=kind.value, entity_id=entity_id, error=str(exc))
            raise PersistenceError() from exc

        if result.rowcount == 0:
            raise self._not_found(kind, entity_id)
