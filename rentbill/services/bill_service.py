import logging
from datetime import date
from typing import Optional, List

from sqlalchemy.ext.asyncio import AsyncSession

from rentbill.database.models import ElectricityBill, WaterBill
from rentbill.database.transaction import TransactionManager
from rentbill.errors import (
    PropertyNotFoundError, PropertyAccessDeniedError, InvalidBillError, BillPeriodOverlapError
)
from rentbill.repositories import properties as property_store
from rentbill.repositories import bills as bill_store
from rentbill.services.periods import to_money, validate_date_range, periods_overlap


def _validate_bill(quantity, total_cost, period_start: date, period_end: date):
    """Construction invariants shared by both bill kinds"""
    validate_date_range(period_start, period_end)

    quantity = to_money(quantity)
    if quantity <= 0:
        raise InvalidBillError("Total quantity must be greater than zero")

    total_cost = to_money(total_cost)
    if total_cost <= 0:
        raise InvalidBillError("Total cost must be greater than zero")

    return quantity, total_cost


def _overlapping(bills, period_start: date, period_end: date) -> list:
    return [b for b in bills if periods_overlap(b.period_start, b.period_end, period_start, period_end)]


async def create_electricity_bill(
    session: AsyncSession,
    property_id: int,
    period_start: date,
    period_end: date,
    total_kwh,
    total_cost,
    file_url: Optional[str] = None,
    created_by_id: Optional[str] = None
) -> ElectricityBill:
    """
    Store an electricity bill for a property.

    Raises:
        InvalidPeriodError / InvalidBillError: invariants violated
        PropertyNotFoundError: unknown property
        BillPeriodOverlapError: another electricity bill of the property covers part of the period
    """
    total_kwh, total_cost = _validate_bill(total_kwh, total_cost, period_start, period_end)

    async def _create(session: AsyncSession) -> ElectricityBill:
        if not await property_store.find_by_id(session, property_id):
            raise PropertyNotFoundError(f"Property {property_id} not found")

        existing = await bill_store.find_electricity_bills_by_property_ids(session, [property_id])
        overlapping = _overlapping(existing, period_start, period_end)
        if overlapping:
            logging.warning(f"Electricity bill {period_start}..{period_end} overlaps bill {overlapping[0].id} of property {property_id}")
            raise BillPeriodOverlapError(
                f"Electricity bill {overlapping[0].id} already covers part of {period_start}..{period_end}",
                bill_ids=[b.id for b in overlapping]
            )

        return await bill_store.insert_electricity_bill(session, ElectricityBill(
            property_id=property_id,
            period_start=period_start,
            period_end=period_end,
            total_kwh=total_kwh,
            total_cost=total_cost,
            file_url=file_url,
            created_by_id=created_by_id,
            updated_by_id=created_by_id
        ))

    bill = await TransactionManager(session).execute(_create)
    logging.info(f"Electricity bill {bill.id} created for property {property_id}: {total_kwh} kWh, {total_cost}")
    return bill


async def create_water_bill(
    session: AsyncSession,
    property_id: int,
    period_start: date,
    period_end: date,
    total_consumption,
    total_cost,
    file_url: Optional[str] = None,
    created_by_id: Optional[str] = None
) -> WaterBill:
    """Water counterpart of create_electricity_bill"""
    total_consumption, total_cost = _validate_bill(total_consumption, total_cost, period_start, period_end)

    async def _create(session: AsyncSession) -> WaterBill:
        if not await property_store.find_by_id(session, property_id):
            raise PropertyNotFoundError(f"Property {property_id} not found")

        existing = await bill_store.find_water_bills_by_property_ids(session, [property_id])
        overlapping = _overlapping(existing, period_start, period_end)
        if overlapping:
            logging.warning(f"Water bill {period_start}..{period_end} overlaps bill {overlapping[0].id} of property {property_id}")
            raise BillPeriodOverlapError(
                f"Water bill {overlapping[0].id} already covers part of {period_start}..{period_end}",
                bill_ids=[b.id for b in overlapping]
            )

        return await bill_store.insert_water_bill(session, WaterBill(
            property_id=property_id,
            period_start=period_start,
            period_end=period_end,
            total_consumption=total_consumption,
            total_cost=total_cost,
            file_url=file_url,
            created_by_id=created_by_id,
            updated_by_id=created_by_id
        ))

    bill = await TransactionManager(session).execute(_create)
    logging.info(f"Water bill {bill.id} created for property {property_id}: {total_consumption} m3, {total_cost}")
    return bill


async def _managed_property_ids(session: AsyncSession, user_id: str, property_id: Optional[int]) -> List[int]:
    if property_id is not None:
        if not await property_store.is_user_administrator(session, property_id, user_id):
            logging.warning(f"User {user_id} is not an administrator of property {property_id}")
            raise PropertyAccessDeniedError()
        return [property_id]

    managed = await property_store.find_managed_by_user_id(session, user_id)
    return [p.id for p in managed]


async def list_electricity_bills_for_admin(
    session: AsyncSession,
    user_id: str,
    property_id: Optional[int] = None
) -> List[ElectricityBill]:
    """Bills of one managed property, or of every property the user manages. Newest period first."""
    property_ids = await _managed_property_ids(session, user_id, property_id)
    return await bill_store.find_electricity_bills_by_property_ids(session, property_ids)


async def list_water_bills_for_admin(
    session: AsyncSession,
    user_id: str,
    property_id: Optional[int] = None
) -> List[WaterBill]:
    property_ids = await _managed_property_ids(session, user_id, property_id)
    return await bill_store.find_water_bills_by_property_ids(session, property_ids)
