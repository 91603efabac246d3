"""User repository for database operations."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketadmin.modules.users.models import User


class UserRepository:
    """Repository for User database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, user: User) -> User:
        """Create a new user.

        Args:
            user: User instance to create

        Returns:
            The created user with ID populated
        """
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def get_by_id(self, user_id: str) -> User | None:
        """Get a user by ID."""
        result = await self.session.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        """Get a user by email address."""
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_role(self, user_id: str) -> str | None:
        """Get only the role of a user, or None if the user does not exist."""
        result = await self.session.execute(select(User.role).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_email(self, user_id: str) -> str | None:
        """Get only the email of a user, or None if the user does not exist."""
        result = await self.session.execute(select(User.email).where(User.id == user_id))
        return result.scalar_one_or_none()
