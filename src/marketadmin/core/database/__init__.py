"""Database layer - session management, base models, and mixins."""

from marketadmin.core.database.base import (
    Base,
    CreatedAtMixin,
    IdMixin,
    JSONType,
    generate_id,
)
from marketadmin.core.database.session import (
    async_engine,
    async_session_factory,
    get_db,
    get_session_factory,
)


__all__ = [
    "Base",
    "CreatedAtMixin",
    "IdMixin",
    "JSONType",
    "async_engine",
    "async_session_factory",
    "generate_id",
    "get_db",
    "get_session_factory",
]
