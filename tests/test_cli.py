"""Tests for the marketadmin operator CLI."""

import asyncio
from collections.abc import Iterator
from pathlib import Path

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from typer.testing import CliRunner

from marketadmin import __version__, cli
from marketadmin.core.auth import decode_token
from marketadmin.core.database import Base
from marketadmin.modules.professionals.models import Professional
from marketadmin.modules.users.models import User


runner = CliRunner()


@pytest.fixture
def cli_sessions(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Iterator[async_sessionmaker[AsyncSession]]:
    """Point the CLI at a fresh SQLite database.

    The commands call asyncio.run themselves, so these tests are synchronous.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}", poolclass=NullPool)

    async def create_tables() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create_tables())
    sessions = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    monkeypatch.setattr(cli, "async_engine", engine)
    monkeypatch.setattr(cli, "async_session_factory", sessions)

    yield sessions

    asyncio.run(engine.dispose())


def _user(sessions: async_sessionmaker[AsyncSession], email: str) -> User | None:
    async def load() -> User | None:
        async with sessions() as session:
            result = await session.execute(select(User).where(User.email == email))
            return result.scalar_one_or_none()

    return asyncio.run(load())


class TestCreateAdmin:
    """Tests for marketadmin create-admin."""

    def test_creates_admin(self, cli_sessions) -> None:
        result = runner.invoke(cli.app, ["create-admin", "ops@example.com", "--name", "Ops"])

        assert result.exit_code == 0, result.stdout
        assert "Created" in result.stdout
        user = _user(cli_sessions, "ops@example.com")
        assert user is not None
        assert user.role == "admin"
        assert user.name == "Ops"

    def test_promotes_existing_account(self, cli_sessions) -> None:
        runner.invoke(cli.app, ["create-professional", "doc@example.com"])
        assert _user(cli_sessions, "doc@example.com").role == "professional"

        result = runner.invoke(cli.app, ["create-admin", "doc@example.com"])

        assert result.exit_code == 0, result.stdout
        assert "Promoted" in result.stdout
        assert _user(cli_sessions, "doc@example.com").role == "admin"


class TestSetRole:
    """Tests for marketadmin set-role."""

    def test_changes_role(self, cli_sessions) -> None:
        runner.invoke(cli.app, ["create-admin", "ops@example.com"])

        result = runner.invoke(cli.app, ["set-role", "ops@example.com", "patient"])

        assert result.exit_code == 0, result.stdout
        assert _user(cli_sessions, "ops@example.com").role == "patient"

    def test_unknown_email_fails(self, cli_sessions) -> None:
        result = runner.invoke(cli.app, ["set-role", "nobody@example.com", "admin"])

        assert result.exit_code == 1
        assert "no account" in result.stdout

    def test_unknown_role_is_rejected(self, cli_sessions) -> None:
        result = runner.invoke(cli.app, ["set-role", "ops@example.com", "superuser"])

        assert result.exit_code != 0


class TestCreateProfessional:
    """Tests for marketadmin create-professional."""

    def test_creates_pending_professional_with_owner(self, cli_sessions) -> None:
        result = runner.invoke(
            cli.app, ["create-professional", "doc@example.com", "--name", "Dr. Doc"]
        )

        assert result.exit_code == 0, result.stdout
        owner = _user(cli_sessions, "doc@example.com")

        async def load() -> list[Professional]:
            async with cli_sessions() as session:
                rows = await session.execute(select(Professional))
                return list(rows.scalars().all())

        professionals = asyncio.run(load())
        assert len(professionals) == 1
        assert professionals[0].status == "pending"
        assert professionals[0].user_id == owner.id
        assert professionals[0].name == "Dr. Doc"


class TestIssueToken:
    """Tests for marketadmin issue-token."""

    def test_token_verifies(self, cli_sessions) -> None:
        runner.invoke(cli.app, ["create-admin", "ops@example.com"])
        admin = _user(cli_sessions, "ops@example.com")

        result = runner.invoke(cli.app, ["issue-token", "ops@example.com", "--minutes", "5"])

        assert result.exit_code == 0, result.stdout
        token = result.stdout.strip().splitlines()[-1].strip()
        token_data = decode_token(token)
        assert token_data is not None
        assert token_data.user_id == admin.id
        assert token_data.type == "access"

    def test_unknown_email_fails(self, cli_sessions) -> None:
        result = runner.invoke(cli.app, ["issue-token", "nobody@example.com"])

        assert result.exit_code == 1
        assert "no account" in result.stdout


class TestVersion:
    def test_version(self) -> None:
        result = runner.invoke(cli.app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.stdout
