"""
Shared fixtures for integration tests.

Services run against an in-memory SQLite database (aiosqlite). StaticPool
keeps a single connection so every session sees the same database.
"""

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from mxi.models import Base, UserAccount
from mxi.repositories.user_repository import UserRepository
from mxi.services.presale.stage_service import PresaleStageService


@pytest_asyncio.fixture
async def db_engine():
    """Fresh in-memory database with all tables."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(db_engine):
    """Session factory bound to the test database."""
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_maker):
    """Database session for a single test."""
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def stages(db_session):
    """Default pre-sale stages (stage 1 active)."""
    return await PresaleStageService(db_session).seed_default_stages()


@pytest_asyncio.fixture
async def make_user(db_session):
    """Factory creating committed users."""
    counter = {"n": 0}

    async def _make_user(
        name: str | None = None, referred_by: UserAccount | None = None
    ) -> UserAccount:
        counter["n"] += 1
        name = name or f"user{counter['n']}"
        user = await UserRepository(db_session).create(
            email=f"{name.lower()}@example.com",
            name=name,
            referral_code=f"MXITEST{counter['n']:02d}",
            referred_by_id=referred_by.id if referred_by else None,
        )
        await db_session.commit()
        return user

    return _make_user


@pytest_asyncio.fixture
async def referral_chain(make_user):
    """
    Users C <- B <- A <- X (X was referred by A, A by B, B by C).

    Returns:
        Dict of users by name
    """
    c = await make_user("C")
    b = await make_user("B", referred_by=c)
    a = await make_user("A", referred_by=b)
    x = await make_user("X", referred_by=a)
    return {"A": a, "B": b, "C": c, "X": x}
