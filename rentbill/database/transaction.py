import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


class TransactionManager:
    """
    Runs a unit of work atomically on one session.

    The callback receives the session; on success the transaction is
    committed, on any error (including a timeout) it is rolled back and
    the error is re-raised.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def execute(
        self,
        callback: Callable[[AsyncSession], Awaitable[T]],
        isolation_level: Optional[str] = None,
        timeout: Optional[float] = None
    ) -> T:
        session = self.session

        # Isolation can only be chosen before the transaction begins
        if isolation_level and not session.in_transaction():
            await session.connection(execution_options={"isolation_level": isolation_level})

        try:
            if timeout:
                result = await asyncio.wait_for(callback(session), timeout=timeout)
            else:
                result = await callback(session)
            await session.commit()
            return result
        except Exception as e:
            logging.warning(f"Transaction rolled back: {type(e).__name__}: {e}")
            await session.rollback()
            raise
