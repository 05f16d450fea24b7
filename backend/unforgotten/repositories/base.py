"""
Shared base for remote store repositories.
"""
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from unforgotten.database import AsyncSessionLocal


class SessionRepository:
    """
    Opens a fresh session per call, so several reads can run concurrently
    and background tasks never reuse a request-scoped session.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal):
        self.session_factory = session_factory
