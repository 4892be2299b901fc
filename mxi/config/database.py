"""
Database configuration.

Async engine and session factory shared by the API server and jobs.
"""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from mxi.config.settings import settings


engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    pool_pre_ping=True,
)

async_session_maker = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_models() -> None:
    """Create all tables (development and tests)."""
    from mxi.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
