"""Operator CLI for accounts, professionals and tokens."""

import asyncio
from collections.abc import Coroutine
from datetime import timedelta
from typing import Any, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from marketadmin import __version__
from marketadmin.core.auth import create_access_token
from marketadmin.core.database import async_engine, async_session_factory
from marketadmin.modules.professionals.models import Professional, ProfessionalStatus
from marketadmin.modules.users.models import User, UserRole, UserStatus
from marketadmin.modules.users.repos import UserRepository


console = Console()

T = TypeVar("T")

app = typer.Typer(
    name="marketadmin",
    help="Manage admin accounts, professionals and access tokens.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine and dispose of the engine afterwards."""

    async def runner() -> T:
        try:
            return await coro
        finally:
            await async_engine.dispose()

    return asyncio.run(runner())


def _print_user(user: User, title: str) -> None:
    table = Table(title=title, show_header=False)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value")
    table.add_row("id", user.id)
    table.add_row("email", user.email)
    table.add_row("name", user.name)
    table.add_row("role", user.role)
    table.add_row("status", user.status or UserStatus.ACTIVE.value)
    console.print(table)


async def _upsert_user(email: str, name: str, role: UserRole) -> tuple[User, bool]:
    async with async_session_factory() as session:
        repo = UserRepository(session)
        user = await repo.get_by_email(email)
        created = user is None
        if user is None:
            user = await repo.create(User(email=email, name=name, role=role.value))
        else:
            user.role = role.value
        await session.commit()
        return user, created


@app.command(name="create-admin")
def create_admin(
    email: str = typer.Argument(..., help="Email of the administrator"),
    name: str = typer.Option("Administrator", "--name", "-n", help="Display name"),
) -> None:
    """Create an administrator, or promote an existing account."""
    user, created = _run(_upsert_user(email, name, UserRole.ADMIN))
    verb = "Created" if created else "Promoted"
    console.print(f"[green]{verb}[/green] administrator [bold]{email}[/bold]")
    _print_user(user, "Administrator")


async def _set_role(email: str, role: UserRole) -> User | None:
    async with async_session_factory() as session:
        user = await UserRepository(session).get_by_email(email)
        if user is None:
            return None
        user.role = role.value
        await session.commit()
        return user


@app.command(name="set-role")
def set_role(
    email: str = typer.Argument(..., help="Email of the account"),
    role: UserRole = typer.Argument(..., help="New role"),
) -> None:
    """Change the role of an existing account."""
    user = _run(_set_role(email, role))
    if user is None:
        console.print(f"[red]Error:[/red] no account with email {email}")
        raise typer.Exit(1)
    console.print(f"[green]Updated[/green] role of [bold]{email}[/bold] to {role.value}")
    _print_user(user, "Account")


async def _create_professional(email: str, name: str) -> Professional:
    async with async_session_factory() as session:
        repo = UserRepository(session)
        user = await repo.get_by_email(email)
        if user is None:
            user = await repo.create(User(email=email, name=name, role=UserRole.PROFESSIONAL.value))
        professional = Professional(
            user_id=user.id,
            name=name,
            email=email,
            status=ProfessionalStatus.PENDING.value,
        )
        session.add(professional)
        await session.commit()
        return professional


@app.command(name="create-professional")
def create_professional(
    email: str = typer.Argument(..., help="Email of the professional's account"),
    name: str = typer.Option("Test Professional", "--name", "-n", help="Display name"),
) -> None:
    """Create a professional awaiting review, with its account."""
    professional = _run(_create_professional(email, name))
    table = Table(title="Professional", show_header=False)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value")
    table.add_row("id", professional.id)
    table.add_row("user_id", professional.user_id or "")
    table.add_row("name", professional.name)
    table.add_row("status", professional.status)
    console.print(table)


async def _find_user(email: str) -> User | None:
    async with async_session_factory() as session:
        return await UserRepository(session).get_by_email(email)


@app.command(name="issue-token")
def issue_token(
    email: str = typer.Argument(..., help="Email of the account"),
    minutes: int = typer.Option(
        60, "--minutes", "-m", min=1, help="Token lifetime in minutes"
    ),
) -> None:
    """Print a bearer access token for an account."""
    user = _run(_find_user(email))
    if user is None:
        console.print(f"[red]Error:[/red] no account with email {email}")
        raise typer.Exit(1)
    token = create_access_token(user.id, expires_delta=timedelta(minutes=minutes))
    console.print(f"[dim]{user.role} {user.id}, valid for {minutes} minutes[/dim]")
    console.print(token, soft_wrap=True)


@app.callback(invoke_without_command=True)
def version_callback(
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version and exit."
    ),
) -> None:
    """marketadmin CLI - operator tools for the admin pipeline."""
    if version:
        console.print(f"[bold cyan]marketadmin[/bold cyan] version {__version__}")
        raise typer.Exit()


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
