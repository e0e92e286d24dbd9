from typing import AsyncIterator
from sqlalchemy.ext.asyncio import AsyncSession
from rentbill.database.core import AsyncSessionLocal


async def get_session() -> AsyncIterator[AsyncSession]:
    """One session per request"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            # Services commit their own units of work; this only flushes
            # whatever a handler left pending after a successful request.
            await session.commit()
        except Exception:
            await session.rollback()
            raise
