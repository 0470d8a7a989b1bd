"""Schema creation and first-run seeding."""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine

from peridot.db.base import Base
from peridot.db.engine import create_session_factory
from peridot.db.models import UserRow
from peridot.models.enums import UserAccessLevel
from peridot.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)

ADMIN_USER_ID = 1
ADMIN_USER_NAME = "Admin"


async def init_db(engine: AsyncEngine, initial_admin_github: str | None = None) -> bool:
    """Create any missing tables and seed the initial admin user.

    The admin (user ID 1) is only created when ``initial_admin_github`` is
    given and the users table is empty. Returns True if it was created.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if not initial_admin_github:
        return False

    async with create_session_factory(engine)() as session:
        count = await session.scalar(select(func.count()).select_from(UserRow))
        if count:
            logger.info("Users already present, skipping initial admin")
            return False
        await UserRepository(session).add(
            ADMIN_USER_ID, ADMIN_USER_NAME, initial_admin_github, UserAccessLevel.ADMIN
        )
        await session.commit()
    logger.info("Initial admin user created for GitHub user %s", initial_admin_github)
    return True


async def reset_db(engine: AsyncEngine, initial_admin_github: str | None = None) -> bool:
    """Drop every table and start over from an empty schema."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    logger.warning("All tables dropped")
    return await init_db(engine, initial_admin_github)
