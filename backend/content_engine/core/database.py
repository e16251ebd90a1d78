"""
Content Engine - Database Engine
================================
One async engine per process. Postgres (asyncpg) in deployments, SQLite
(aiosqlite) for local runs and tests.
"""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from content_engine.core.config import get_settings

settings = get_settings()


def engine_options(url: str, *, debug: bool = False, pool_size: int = 10) -> dict:
    """SQLite drivers reject pool sizing, so only server databases get it."""
    options: dict = {"echo": debug, "pool_pre_ping": True}
    if not url.startswith("sqlite"):
        options.update(pool_size=pool_size, max_overflow=pool_size // 2)
    return options


engine = create_async_engine(
    settings.database_url,
    **engine_options(settings.database_url, debug=settings.app_debug, pool_size=settings.database_pool_size),
)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    """Base class for ideas, articles, versions and settings rows."""
    pass


async def get_db() -> AsyncSession:
    """Request-scoped session; uncommitted work is rolled back on a DB error."""
    async with async_session() as session:
        try:
            yield session
        except SQLAlchemyError:
            await session.rollback()
            raise


async def init_db():
    """create_all for development databases; other environments manage their own schema."""
    if settings.app_env.lower() != "development":
        return
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db():
    await engine.dispose()
