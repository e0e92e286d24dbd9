from typing import Optional, List
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rentbill.database.models import Property, PropertyAdministrator


async def find_by_id(session: AsyncSession, property_id: int) -> Optional[Property]:
    stmt = select(Property).where(
        Property.id == property_id,
        Property.deleted_at.is_(None)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def is_user_administrator(session: AsyncSession, property_id: int, user_id: str) -> bool:
    stmt = select(PropertyAdministrator.id).where(
        PropertyAdministrator.property_id == property_id,
        PropertyAdministrator.user_id == user_id
    )
    result = await session.execute(stmt)
    return result.first() is not None


async def find_managed_by_user_id(session: AsyncSession, user_id: str) -> List[Property]:
    """Properties the user administers, oldest first"""
    stmt = (
        select(Property)
        .join(PropertyAdministrator, PropertyAdministrator.property_id == Property.id)
        .where(
            PropertyAdministrator.user_id == user_id,
            Property.deleted_at.is_(None)
        )
        .order_by(Property.id)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())
