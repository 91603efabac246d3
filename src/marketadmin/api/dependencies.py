"""Shared API dependencies."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from marketadmin.core.database import get_db, get_session_factory


# Type alias for database session dependency
DBSession = Annotated[AsyncSession, Depends(get_db)]

# Type alias for the session factory used by best-effort steps
SessionFactory = Annotated[
    async_sessionmaker[AsyncSession], Depends(get_session_factory)
]
