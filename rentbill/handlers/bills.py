from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from rentbill.database.models import ElectricityBill, WaterBill
from rentbill.middlewares.auth import CurrentUser, get_current_user
from rentbill.middlewares.db import get_session
from rentbill.schemas.validation import (
    CreateElectricityBillRequest, CreateWaterBillRequest,
    ElectricityBillResponse, WaterBillResponse
)
from rentbill.services import bill_service, invoice_service
from rentbill.services.periods import cost_per_unit

router = APIRouter(tags=["bills"])


def _electricity_bill_out(bill: ElectricityBill) -> ElectricityBillResponse:
    return ElectricityBillResponse.model_validate({
        "id": bill.id,
        "property_id": bill.property_id,
        "period_start": bill.period_start,
        "period_end": bill.period_end,
        "total_kwh": bill.total_kwh,
        "total_cost": bill.total_cost,
        "cost_per_unit": cost_per_unit(bill.total_cost, bill.total_kwh),
        "file_url": bill.file_url
    })


def _water_bill_out(bill: WaterBill) -> WaterBillResponse:
    return WaterBillResponse.model_validate({
        "id": bill.id,
        "property_id": bill.property_id,
        "period_start": bill.period_start,
        "period_end": bill.period_end,
        "total_consumption": bill.total_consumption,
        "total_cost": bill.total_cost,
        "cost_per_unit": cost_per_unit(bill.total_cost, bill.total_consumption),
        "file_url": bill.file_url
    })


# --- Electricity ---

@router.post("/electricity-bills", response_model=ElectricityBillResponse, status_code=status.HTTP_201_CREATED)
async def create_electricity_bill(
    body: CreateElectricityBillRequest,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    await invoice_service.ensure_property_administrator(session, body.property_id, user.user_id)

    bill = await bill_service.create_electricity_bill(
        session,
        property_id=body.property_id,
        period_start=body.period_start,
        period_end=body.period_end,
        total_kwh=body.total_kwh,
        total_cost=body.total_cost,
        file_url=body.file_url,
        created_by_id=user.user_id
    )
    return _electricity_bill_out(bill)


@router.get("/electricity-bills", response_model=List[ElectricityBillResponse])
async def list_electricity_bills(
    property_id: Optional[int] = Query(default=None, alias="propertyId"),
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Bills of the properties the caller administers"""
    bills = await bill_service.list_electricity_bills_for_admin(session, user.user_id, property_id)
    return [_electricity_bill_out(b) for b in bills]


# --- Water ---

@router.post("/water-bills", response_model=WaterBillResponse, status_code=status.HTTP_201_CREATED)
async def create_water_bill(
    body: CreateWaterBillRequest,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    await invoice_service.ensure_property_administrator(session, body.property_id, user.user_id)

    bill = await bill_service.create_water_bill(
        session,
        property_id=body.property_id,
        period_start=body.period_start,
        period_end=body.period_end,
        total_consumption=body.total_consumption,
        total_cost=body.total_cost,
        file_url=body.file_url,
        created_by_id=user.user_id
    )
    return _water_bill_out(bill)


@router.get("/water-bills", response_model=List[WaterBillResponse])
async def list_water_bills(
    property_id: Optional[int] = Query(default=None, alias="propertyId"),
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    bills = await bill_service.list_water_bills_for_admin(session, user.user_id, property_id)
    return [_water_bill_out(b) for b in bills]
