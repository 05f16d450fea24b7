"""Shared fixtures: an in-memory local note store and a fake remote notes table."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from unforgotten.database import LocalBase
from unforgotten.models.local_note import LocalNote  # noqa: F401  registers the table


@pytest.fixture
async def local_session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(LocalBase.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
async def local_session(local_session_factory):
    async with local_session_factory() as session:
        yield session


@pytest.fixture
def note_repository():
    """Stand-in for the remote notes table."""
    repo = MagicMock()
    repo.insert = AsyncMock(return_value="remote-1")
    repo.update = AsyncMock(return_value=None)
    repo.soft_delete = AsyncMock(return_value=None)
    repo.soft_delete_by_local_id = AsyncMock(return_value=None)
    repo.fetch = AsyncMock(return_value=[])
    return repo
