"""
Payment ledger.

Rental payments (rent) are stored as-is. Service payments are applied to
an invoice and reconcile its status: once the payments recorded against
an invoice cover its total cost the invoice becomes PAID.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, NamedTuple

from sqlalchemy.ext.asyncio import AsyncSession

from rentbill.database.models import Payment, PaymentMethod, Invoice
from rentbill.database.transaction import TransactionManager
from rentbill.errors import (
    InvoiceNotFoundError, RentalNotFoundError, InvalidAmountError, InvalidPaymentError
)
from rentbill.repositories import invoices as invoice_store
from rentbill.repositories import rentals as rental_store
from rentbill.repositories import payments as payment_store
from rentbill.services import invoice_service, rental_service
from rentbill.services.periods import to_money

MIN_AMOUNT = Decimal("0.01")
MAX_AMOUNT = Decimal("999999.99")
MAX_REFERENCE_LENGTH = 255


class InvoiceBalance(NamedTuple):
    """How much of an invoice is covered by payments"""
    invoice_id: int
    total_cost: Decimal
    amount_paid: Decimal
    remaining_balance: Decimal  # Never negative, overpayments are not credited
    status: str


def _validate_payment_input(amount, method, reference: Optional[str]) -> Decimal:
    value = to_money(amount)
    # Payments are stored as given, never rounded up into covering an invoice
    if Decimal(str(amount)) != value:
        raise InvalidAmountError(f"Amount must have at most two decimal places, got {amount}")

    if value < MIN_AMOUNT or value > MAX_AMOUNT:
        raise InvalidAmountError(f"Amount must be between {MIN_AMOUNT} and {MAX_AMOUNT}, got {value}")

    try:
        PaymentMethod(method)
    except ValueError as e:
        raise InvalidPaymentError(f"Unknown payment method: {method!r}") from e

    if reference is not None and len(reference) > MAX_REFERENCE_LENGTH:
        raise InvalidPaymentError(f"Reference must be at most {MAX_REFERENCE_LENGTH} characters")

    return value


async def record_rental_payment(
    session: AsyncSession,
    rental_id: int,
    amount,
    paid_at: datetime,
    method: PaymentMethod,
    reference: Optional[str] = None,
    receipt_url: Optional[str] = None,
    created_by_id: Optional[str] = None
) -> Payment:
    """Store a rent payment. No invoice is touched."""
    value = _validate_payment_input(amount, method, reference)

    async def _record(session: AsyncSession) -> Payment:
        rental = await rental_store.find_by_id(session, rental_id)
        if not rental:
            raise RentalNotFoundError(f"Rental {rental_id} not found")

        return await payment_store.insert(session, Payment(
            rental_id=rental_id,
            invoice_id=None,
            amount=value,
            paid_at=paid_at,
            payment_method=PaymentMethod(method).value,
            reference=reference,
            receipt_url=receipt_url,
            created_by_id=created_by_id,
            updated_by_id=created_by_id
        ))

    payment = await TransactionManager(session).execute(_record)
    logging.info(f"Recorded rental payment {payment.id}: {value} for rental {rental_id}")
    return payment


async def record_service_payment(
    session: AsyncSession,
    invoice_id: int,
    amount,
    paid_at: datetime,
    method: PaymentMethod,
    reference: Optional[str] = None,
    receipt_url: Optional[str] = None,
    created_by_id: Optional[str] = None
) -> Payment:
    """
    Store a payment against an invoice and reconcile the invoice status.

    Algorithm:
    1. Lock invoice row (FOR UPDATE) so concurrent payments on the same invoice queue up
    2. Insert payment
    3. Sum all payments of the invoice
    4. If the sum covers total_cost and the invoice is still UNPAID:
       mark PAID with this payment's paid_at

    All steps share one transaction: a payment is never stored without
    its reconciliation, and vice versa.
    """
    value = _validate_payment_input(amount, method, reference)

    async def _record(session: AsyncSession) -> Payment:
        # 1. Lock
        invoice = await invoice_store.lock_by_id(session, invoice_id)
        if not invoice:
            raise InvoiceNotFoundError(f"Invoice {invoice_id} not found")

        # 2. Insert
        payment = await payment_store.insert(session, Payment(
            rental_id=None,
            invoice_id=invoice_id,
            amount=value,
            paid_at=paid_at,
            payment_method=PaymentMethod(method).value,
            reference=reference,
            receipt_url=receipt_url,
            created_by_id=created_by_id,
            updated_by_id=created_by_id
        ))

        # 3. Sum
        total_paid = to_money(await payment_store.sum_for_invoice(session, invoice_id))
        total_cost = to_money(invoice.total_cost)

        # 4. Reconcile
        if total_paid >= total_cost and not invoice.is_paid:
            await invoice_store.mark_paid(session, invoice_id, paid_at, updated_by_id=created_by_id)
            logging.info(f"Invoice {invoice_id} marked PAID: paid {total_paid} of {total_cost}")
        elif total_paid < total_cost:
            logging.info(f"Invoice {invoice_id} partially paid: {total_paid} of {total_cost}")

        return payment

    payment = await TransactionManager(session).execute(_record)
    logging.info(f"Recorded service payment {payment.id}: {value} for invoice {invoice_id}")
    return payment


async def get_invoice_balance(session: AsyncSession, invoice_id: int) -> InvoiceBalance:
    invoice = await invoice_store.find_by_id(session, invoice_id)
    if not invoice:
        raise InvoiceNotFoundError(f"Invoice {invoice_id} not found")

    return await _balance_of(session, invoice)


async def _balance_of(session: AsyncSession, invoice: Invoice) -> InvoiceBalance:
    total_cost = to_money(invoice.total_cost)
    amount_paid = to_money(await payment_store.sum_for_invoice(session, invoice.id))
    remaining = max(total_cost - amount_paid, Decimal("0.00"))

    return InvoiceBalance(
        invoice_id=invoice.id,
        total_cost=total_cost,
        amount_paid=amount_paid,
        remaining_balance=remaining,
        status=invoice.status
    )


async def get_payments_by_invoice(
    session: AsyncSession,
    invoice_id: int,
    user_id: Optional[str] = None,
    user_role: Optional[str] = None
) -> List[Payment]:
    """
    Payments of an invoice, most recent first.

    Raises InvoiceNotFoundError / InvoiceAccessDeniedError for the parent.
    """
    invoice = await invoice_service.get_invoice_by_id(session, invoice_id, user_id, user_role)
    if not invoice:
        raise InvoiceNotFoundError(f"Invoice {invoice_id} not found")

    return await payment_store.find_by_invoice_id(session, invoice_id)


async def get_payments_by_rental(
    session: AsyncSession,
    rental_id: int,
    user_id: Optional[str] = None,
    user_role: Optional[str] = None
) -> List[Payment]:
    """Payments of a rental, most recent first"""
    rental = await rental_service.get_rental_by_id(session, rental_id, user_id, user_role)
    if not rental:
        raise RentalNotFoundError(f"Rental {rental_id} not found")

    return await payment_store.find_by_rental_id(session, rental_id)
