"""Demo data: one admin account and the standard program categories. Idempotent."""

import logging
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from carelearn.auth import hash_password
from carelearn.config import get_settings
from carelearn.identity import Role
from carelearn.models.program import ProgramCategory
from carelearn.models.user import AuthAccount, User

logger = logging.getLogger(__name__)

DEMO_CATEGORIES = [
    {"name": "Anxiety", "description": "Programs for managing anxiety and worry"},
    {"name": "Depression", "description": "Programs supporting mood and motivation"},
    {"name": "Stress Management", "description": "Coping skills for everyday stress"},
]


async def seed_demo_data(session: AsyncSession) -> None:
    settings = get_settings()
    email = settings.demo_admin_email.lower()

    existing = await session.scalar(select(AuthAccount).where(AuthAccount.email == email))
    if not existing:
        account = AuthAccount(email=email, hashed_password=hash_password(settings.demo_admin_password))
        session.add(account)
        await session.flush()
        session.add(User(
            id=account.id,
            email=email,
            role=Role.ADMIN.value,
            first_name="Demo",
            last_name="Admin",
            is_active=True,
        ))
        logger.info("Seeded demo admin %s", email)

    for category in DEMO_CATEGORIES:
        found = await session.scalar(select(ProgramCategory).where(ProgramCategory.name == category["name"]))
        if not found:
            session.add(ProgramCategory(**category))

    await session.commit()
