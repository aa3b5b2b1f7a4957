"""
Idempotent reference data: permission modules and the first admin account.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.core.permissions import MODULE_CATALOGUE, Role
from app.core.security import get_password_hash
from app.models.permission import Module
from app.models.user import User

logger = logging.getLogger(__name__)


async def seed_modules(session: AsyncSession) -> list[Module]:
    """Insert any catalogue module that is missing; return all modules."""
    result = await session.execute(select(Module))
    existing = {m.key: m for m in result.scalars().all()}

    for key, name in MODULE_CATALOGUE.items():
        if key not in existing:
            module = Module(key=key, name=name)
            session.add(module)
            existing[key] = module
            logger.info("Seeded module %s", key)

    await session.commit()
    return list(existing.values())


async def seed_first_admin(session: AsyncSession, config: Settings) -> None:
    result = await session.execute(select(User).where(User.role == Role.ADMIN.value).limit(1))
    if result.scalar_one_or_none() is not None:
        return

    admin = User(
        full_name=config.FIRST_ADMIN_NAME,
        email=config.FIRST_ADMIN_EMAIL.strip().lower(),
        hashed_password=get_password_hash(config.FIRST_ADMIN_PASSWORD),
        role=Role.ADMIN.value,
        is_active=True,
    )
    session.add(admin)
    await session.commit()
    logger.info(
        "Default admin created: %s (password: <redacted>)",
        config.FIRST_ADMIN_EMAIL,
    )
