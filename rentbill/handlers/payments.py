import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from rentbill.errors import InvoiceNotFoundError, RentalNotFoundError
from rentbill.middlewares.auth import CurrentUser, get_current_user
from rentbill.middlewares.db import get_session
from rentbill.schemas.validation import CreatePaymentRequest, PaymentResponse
from rentbill.services import invoice_service, payment_service, rental_service

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def create_payment(
    body: CreatePaymentRequest,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Record a rent payment (type=rental) or a utility payment against an invoice (type=invoice)"""
    if body.type == "rental":
        # Ownership check (404 / 403) before anything is written
        if not await rental_service.get_rental_by_id(session, body.rental_id, user.user_id, user.role):
            raise RentalNotFoundError(f"Rental {body.rental_id} not found")

        payment = await payment_service.record_rental_payment(
            session,
            rental_id=body.rental_id,
            amount=body.amount,
            paid_at=body.paid_at,
            method=body.payment_method,
            reference=body.reference,
            receipt_url=body.receipt_url,
            created_by_id=user.user_id
        )
    else:
        if not await invoice_service.get_invoice_by_id(session, body.invoice_id, user.user_id, user.role):
            raise InvoiceNotFoundError(f"Invoice {body.invoice_id} not found")

        payment = await payment_service.record_service_payment(
            session,
            invoice_id=body.invoice_id,
            amount=body.amount,
            paid_at=body.paid_at,
            method=body.payment_method,
            reference=body.reference,
            receipt_url=body.receipt_url,
            created_by_id=user.user_id
        )

    logging.info(f"User {user.user_id} recorded {body.type} payment {payment.id}")
    return PaymentResponse.model_validate(payment)


@router.get("/invoice/{invoice_id}", response_model=List[PaymentResponse])
async def list_invoice_payments(
    invoice_id: int,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    payments = await payment_service.get_payments_by_invoice(session, invoice_id, user.user_id, user.role)
    return [PaymentResponse.model_validate(p) for p in payments]


@router.get("/rental/{rental_id}", response_model=List[PaymentResponse])
async def list_rental_payments(
    rental_id: int,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    payments = await payment_service.get_payments_by_rental(session, rental_id, user.user_id, user.role)
    return [PaymentResponse.model_validate(p) for p in payments]
