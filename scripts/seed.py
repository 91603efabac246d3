#!/usr/bin/env python
"""
Generate demo/seed data for development.
"""

import argparse
import asyncio
import sys

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession


# Add src to path for imports
sys.path.insert(0, "src")

from marketadmin.core.auth import create_access_token
from marketadmin.core.database import async_session_factory
from marketadmin.modules.professionals.models import Professional, ProfessionalStatus
from marketadmin.modules.users.models import User, UserRole


async def _get_or_create_user(
    session: AsyncSession, email: str, name: str, role: UserRole
) -> User:
    result = await session.execute(select(User).where(User.email == email))
    existing = result.scalar_one_or_none()
    if existing:
        print(f"User already exists: {existing.email}")
        return existing

    user = User(email=email, name=name, role=role.value)
    session.add(user)
    await session.flush()
    print(f"Created {role.value}: {user.email} ({user.id})")
    return user


async def seed_default() -> None:
    """Create an admin, a patient and a pending professional."""
    async with async_session_factory() as session:
        admin = await _get_or_create_user(
            session, "admin@example.com", "Admin", UserRole.ADMIN
        )
        await _get_or_create_user(
            session, "patient@example.com", "Demo Patient", UserRole.PATIENT
        )
        owner = await _get_or_create_user(
            session, "pro@example.com", "Demo Professional", UserRole.PROFESSIONAL
        )

        result = await session.execute(
            select(Professional).where(Professional.user_id == owner.id)
        )
        if result.scalar_one_or_none() is None:
            professional = Professional(
                user_id=owner.id,
                name=owner.name,
                email=owner.email,
                status=ProfessionalStatus.PENDING.value,
            )
            session.add(professional)
            await session.flush()
            print(f"Created pending professional: {professional.name} ({professional.id})")

        await session.commit()

    print(f"Admin token: {create_access_token(admin.id)}")


async def seed_demo() -> None:
    """Create several pending professionals on top of the default data."""
    await seed_default()
    async with async_session_factory() as session:
        for index in range(1, 6):
            owner = await _get_or_create_user(
                session,
                f"pro{index}@example.com",
                f"Professional {index}",
                UserRole.PROFESSIONAL,
            )
            result = await session.execute(
                select(Professional).where(Professional.user_id == owner.id)
            )
            if result.scalar_one_or_none() is not None:
                continue
            session.add(
                Professional(
                    user_id=owner.id,
                    name=owner.name,
                    email=owner.email,
                    status=ProfessionalStatus.PENDING.value,
                )
            )
            print(f"Created pending professional: {owner.name}")

        await session.commit()


async def main(scenario: str) -> None:
    """Run the seeding based on scenario."""
    if scenario == "default":
        await seed_default()
    elif scenario == "demo":
        await seed_demo()
    else:
        print(f"Unknown scenario: {scenario}")
        print("Available scenarios: default, demo")
        sys.exit(1)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed database with demo data")
    parser.add_argument(
        "--scenario",
        "-s",
        default="default",
        help="Seed scenario to run (default, demo)",
    )
    args = parser.parse_args()

    asyncio.run(main(args.scenario))
