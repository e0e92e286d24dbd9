from datetime import date
from typing import Optional, List
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from rentbill.database.models import Rental


async def find_by_id(session: AsyncSession, rental_id: int) -> Optional[Rental]:
    stmt = select(Rental).where(
        Rental.id == rental_id,
        Rental.deleted_at.is_(None)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def find_by_user_id(session: AsyncSession, user_id: str) -> List[Rental]:
    stmt = (
        select(Rental)
        .where(Rental.user_id == user_id, Rental.deleted_at.is_(None))
        .order_by(Rental.start_date.desc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def find_active_by_property_id(
    session: AsyncSession,
    property_id: int,
    period_start: date,
    period_end: date
) -> List[Rental]:
    """
    Rentals of the property whose tenancy overlaps [period_start, period_end).

    Same test as Rental.is_active_for, evaluated in SQL.
    """
    stmt = (
        select(Rental)
        .where(
            Rental.property_id == property_id,
            Rental.deleted_at.is_(None),
            Rental.start_date < period_end,
            or_(Rental.end_date.is_(None), Rental.end_date >= period_start)
        )
        .order_by(Rental.id)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())
