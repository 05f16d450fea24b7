"""
Database configuration and session management.

Two stores are involved: the hosted relational store (remote, shared across
devices) and the local note store that backs the notes editor.
"""
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from unforgotten.config import settings


# Async engine for the remote store
async_engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
)

# Async session factory
AsyncSessionLocal = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

# Local note store
local_engine = create_async_engine(
    settings.local_notes_database_url,
    echo=settings.debug,
)

LocalSessionLocal = async_sessionmaker(
    local_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    """Base class for remote store models."""
    pass


class LocalBase(DeclarativeBase):
    """Base class for local note store models."""
    pass


async def get_db() -> AsyncSession:
    """Dependency to get a remote store session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_local_db() -> AsyncSession:
    """Dependency to get a local note store session."""
    async with LocalSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
