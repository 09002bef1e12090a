from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator
from pathlib import Path

from alembic import command
from alembic.config import Config
from loguru import logger
from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from findash.core.config import get_settings
from findash.core.security import hash_password
from findash.db import models

settings = get_settings()
engine = create_async_engine(settings.database_url, echo=False, future=True)
AsyncSessionLocal = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

DEMO_USERS = (
    {
        "name": "John Admin",
        "email": "admin@example.com",
        "password": "admin123",
        "role": "admin",
        "avatar": "https://images.pexels.com/photos/220453/pexels-photo-220453.jpeg?auto=compress&cs=tinysrgb&w=150&h=150&dpr=1",
    },
    {
        "name": "Jane User",
        "email": "user@example.com",
        "password": "user123",
        "role": "user",
        "avatar": "https://images.pexels.com/photos/415829/pexels-photo-415829.jpeg?auto=compress&cs=tinysrgb&w=150&h=150&dpr=1",
    },
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


async def init_db() -> None:
    """Check the store, apply migrations and seed demo users before serving traffic.

    Any failure here is fatal: it is logged and re-raised so startup aborts.
    """

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Database reachable", url=engine.url.render_as_string(hide_password=True))

        if settings.auto_run_migrations:
            await _run_migrations()

        if settings.seed_demo_users:
            async with AsyncSessionLocal() as session:
                await seed_demo_users(session)
    except Exception:
        logger.exception("Database initialisation failed")
        raise


async def _run_migrations() -> None:
    alembic_ini = Path(__file__).resolve().parents[2] / "alembic.ini"
    if not alembic_ini.exists():
        logger.warning("alembic.ini not found, skipping migrations", path=str(alembic_ini))
        return

    config = Config(str(alembic_ini))
    await asyncio.to_thread(command.upgrade, config, "head")
    logger.info("Database migrations are up-to-date")


async def seed_demo_users(session: AsyncSession) -> list[models.User]:
    """Create the fixed admin/user demo pair when missing. Returns the users created."""

    created: list[models.User] = []
    for demo in DEMO_USERS:
        existing = await session.scalar(select(models.User).where(models.User.email == demo["email"]))
        if existing:
            continue
        user = models.User(
            name=demo["name"],
            email=demo["email"],
            password_hash=hash_password(demo["password"]),
            role=demo["role"],
            avatar=demo["avatar"],
        )
        session.add(user)
        created.append(user)
        logger.info("Seeded demo user", email=demo["email"], role=demo["role"])

    if created:
        await session.commit()
    return created
