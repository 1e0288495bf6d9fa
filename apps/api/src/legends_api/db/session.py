"""Async engine and session factory."""

from __future__ import annotations

from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from legends_api.core.settings import settings

engine = create_async_engine(settings.database_url, future=True)

async_session = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency yielding one session per request."""

    async with async_session() as session:
        yield session


async def create_schema() -> None:
    """Create tables for all registered models (development bootstrap)."""

    import legends_api.models  # noqa: F401
    from legends_api.db.base import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
