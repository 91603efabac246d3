"""Pytest configuration and shared fixtures.

Settings are read at import time, so the test environment is set before
any application module is imported. Integration tests run against a
SQLite file per test; the application's process-wide rate limiter,
dispatcher and notification hub are replaced by fresh instances.
"""

import os


os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SECRET_KEY", "test-secret-key-with-at-least-32-characters")
os.environ.setdefault("RATE_LIMIT_BACKEND", "memory")

from collections.abc import AsyncGenerator, Callable  # noqa: E402
from pathlib import Path  # noqa: E402

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool  # noqa: E402

from marketadmin.core.audit.models import AuditLog  # noqa: E402, F401
from marketadmin.core.auth import create_access_token  # noqa: E402
from marketadmin.core.database import Base, get_db, get_session_factory  # noqa: E402
from marketadmin.core.rate_limit import FixedWindowRateLimiter, get_rate_limiter  # noqa: E402
from marketadmin.core.tasks import BestEffortDispatcher, get_dispatcher  # noqa: E402
from marketadmin.main import create_app  # noqa: E402

# Import all models to ensure they're registered with Base.metadata
from marketadmin.modules.notifications.hub import (  # noqa: E402
    NotificationHub,
    get_notification_hub,
)
from marketadmin.modules.notifications.models import Notification  # noqa: E402, F401
from marketadmin.modules.professionals.models import Professional  # noqa: E402
from marketadmin.modules.users.models import User, UserRole, UserStatus  # noqa: E402
from tests.factories.users import ProfessionalFactory, UserFactory  # noqa: E402


@pytest.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a test database engine with all tables."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=NullPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Session for arranging and inspecting test data."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def rate_limiter() -> FixedWindowRateLimiter:
    return FixedWindowRateLimiter()


@pytest.fixture
async def dispatcher() -> AsyncGenerator[BestEffortDispatcher, None]:
    dispatcher = BestEffortDispatcher()
    yield dispatcher
    await dispatcher.drain(timeout=5)


@pytest.fixture
async def hub() -> AsyncGenerator[NotificationHub, None]:
    hub = NotificationHub()
    yield hub
    hub.close()


@pytest.fixture
async def app(
    session_factory: async_sessionmaker[AsyncSession],
    rate_limiter: FixedWindowRateLimiter,
    dispatcher: BestEffortDispatcher,
    hub: NotificationHub,
) -> AsyncGenerator[FastAPI, None]:
    """Create test application instance."""
    application = create_app()

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_session_factory] = lambda: session_factory
    application.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    application.dependency_overrides[get_dispatcher] = lambda: dispatcher
    application.dependency_overrides[get_notification_hub] = lambda: hub

    yield application

    application.dependency_overrides.clear()


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API testing."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


# ============================================================
# Users and Professionals
# ============================================================


@pytest.fixture
def bearer() -> Callable[[str], dict[str, str]]:
    """Build Authorization headers for a user id."""

    def build(user_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}

    return build


@pytest.fixture
async def admin(db: AsyncSession) -> User:
    """A persisted administrator."""
    user = UserFactory.build(role=UserRole.ADMIN.value, email="admin@example.com")
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
async def member(db: AsyncSession) -> User:
    """A persisted, active, non-admin account."""
    user = UserFactory.build(role=UserRole.PATIENT.value, status=UserStatus.ACTIVE.value)
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
async def pending_professional(db: AsyncSession) -> Professional:
    """A persisted professional awaiting review, with its owning account."""
    owner = UserFactory.build(role=UserRole.PROFESSIONAL.value)
    db.add(owner)
    await db.flush()
    professional = ProfessionalFactory.build(user_id=owner.id, email=owner.email)
    db.add(professional)
    await db.commit()
    return professional


@pytest.fixture
def admin_headers(admin: User, bearer: Callable[[str], dict[str, str]]) -> dict[str, str]:
    return bearer(admin.id)
