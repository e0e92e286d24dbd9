import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from rentbill.database.models import InvoiceStatus
from rentbill.errors import InvoiceNotFoundError
from rentbill.middlewares.auth import CurrentUser, get_current_user, require_admin
from rentbill.middlewares.db import get_session
from rentbill.schemas.validation import (
    GenerateInvoicesRequest, GenerateInvoicesResponse, InvoiceResponse,
    InvoiceListResponse, InvoiceSummary, InvoiceDetailResponse
)
from rentbill.services import invoice_service, payment_service

router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.post("/generate", response_model=GenerateInvoicesResponse, status_code=status.HTTP_201_CREATED)
async def generate_invoices(
    body: GenerateInvoicesRequest,
    user: CurrentUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session)
):
    """Generate the invoices of a property for one month"""
    logging.info(f"User {user.user_id} generating invoices for property {body.property_id}, {body.month:02d}/{body.year}")
    invoices = await invoice_service.create_invoices_for_property(
        session,
        property_id=body.property_id,
        electricity_bill_id=body.electricity_bill_id,
        month=body.month,
        year=body.year,
        water_cost=body.water_cost,
        created_by_id=user.user_id,
        administrator_id=user.user_id
    )
    return GenerateInvoicesResponse(invoices=[InvoiceResponse.model_validate(inv) for inv in invoices])


@router.get("", response_model=InvoiceListResponse)
async def list_my_invoices(
    invoice_status: Optional[InvoiceStatus] = Query(default=None, alias="status"),
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Invoices of the caller's rentals, optionally filtered by PAID / UNPAID"""
    invoices = await invoice_service.get_user_invoices(session, user.user_id, invoice_status)
    return InvoiceListResponse(invoices=[InvoiceSummary.model_validate(inv) for inv in invoices])


@router.get("/{invoice_id}", response_model=InvoiceDetailResponse)
async def get_invoice(
    invoice_id: int,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    invoice = await invoice_service.get_invoice_by_id(session, invoice_id, user.user_id, user.role)
    if not invoice:
        raise InvoiceNotFoundError(f"Invoice {invoice_id} not found")

    balance = await payment_service.get_invoice_balance(session, invoice_id)
    detail = InvoiceDetailResponse.model_validate({
        **InvoiceResponse.model_validate(invoice).model_dump(),
        "paid_at": invoice.paid_at,
        "receipt_url": invoice.receipt_url,
        "invoice_url": invoice.invoice_url,
        "amount_paid": balance.amount_paid,
        "remaining_balance": balance.remaining_balance
    })
    return detail
