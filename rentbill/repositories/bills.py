"""
Electricity and water bill stores.

Both bill kinds share the same shape, so the queries are written once
against the model class and exposed under explicit per-kind names.
"""
from typing import Optional, List, Type, Union
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rentbill.database.models import ElectricityBill, WaterBill

Bill = Union[ElectricityBill, WaterBill]


async def _find_by_id(session: AsyncSession, model: Type[Bill], bill_id: int) -> Optional[Bill]:
    stmt = select(model).where(model.id == bill_id, model.deleted_at.is_(None))
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def _find_many_by_property_ids(session: AsyncSession, model: Type[Bill], property_ids: List[int]) -> List[Bill]:
    if not property_ids:
        return []

    stmt = (
        select(model)
        .where(model.property_id.in_(property_ids), model.deleted_at.is_(None))
        .order_by(model.period_start.desc(), model.id.desc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def _insert(session: AsyncSession, bill: Bill) -> Bill:
    session.add(bill)
    await session.flush()
    await session.refresh(bill)
    return bill


# Electricity
async def find_electricity_bill_by_id(session: AsyncSession, bill_id: int) -> Optional[ElectricityBill]:
    return await _find_by_id(session, ElectricityBill, bill_id)


async def find_electricity_bills_by_property_ids(session: AsyncSession, property_ids: List[int]) -> List[ElectricityBill]:
    return await _find_many_by_property_ids(session, ElectricityBill, property_ids)


async def insert_electricity_bill(session: AsyncSession, bill: ElectricityBill) -> ElectricityBill:
    return await _insert(session, bill)


# Water
async def find_water_bill_by_id(session: AsyncSession, bill_id: int) -> Optional[WaterBill]:
    return await _find_by_id(session, WaterBill, bill_id)


async def find_water_bills_by_property_ids(session: AsyncSession, property_ids: List[int]) -> List[WaterBill]:
    return await _find_many_by_property_ids(session, WaterBill, property_ids)


async def insert_water_bill(session: AsyncSession, bill: WaterBill) -> WaterBill:
    return await _insert(session, bill)
