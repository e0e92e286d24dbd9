"""
Invoice generation and invoice read-side queries.

Generation apportions a property's electricity bill and water cost for
one billing period evenly across the rentals active in that period and
stores one UNPAID invoice per rental, all or nothing.
"""
import logging
from decimal import Decimal
from typing import Optional, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rentbill.database.models import Invoice, InvoiceStatus, Role
from rentbill.database.transaction import TransactionManager
from rentbill.errors import (
    PropertyNotFoundError, PropertyAccessDeniedError,
    ElectricityBillNotFoundError, ElectricityBillPropertyMismatchError,
    InvoiceAlreadyExistsError, InvoiceAccessDeniedError, InvalidAmountError
)
from rentbill.repositories import properties as property_store
from rentbill.repositories import rentals as rental_store
from rentbill.repositories import bills as bill_store
from rentbill.repositories import invoices as invoice_store
from rentbill.services.periods import billing_period, split_amount, to_money

# Concurrent generations for the same property must not both pass the
# duplicate check. Applies only when generation opens the transaction.
GENERATION_ISOLATION_LEVEL = "SERIALIZABLE"


async def create_invoices_for_property(
    session: AsyncSession,
    property_id: int,
    electricity_bill_id: int,
    month: int,
    year: int,
    water_cost,
    created_by_id: Optional[str] = None,
    administrator_id: Optional[str] = None
) -> List[Invoice]:
    """
    Generate the invoices of one property for one billing period.

    Algorithm:
    1. Validate period and water cost
    2. Load property (and check administrator_id manages it), load the
       electricity bill and check it belongs to the property
    3. Resolve rentals overlapping the period (none -> empty result)
    4. Fail if any of those rentals is already invoiced for the period
    5. Split bill cost and water cost evenly (to the cent) and insert one invoice per rental

    Steps 2-5 run in a single transaction.

    Args:
        session: Database session
        property_id: Property to bill
        electricity_bill_id: Persisted electricity bill of that property
        month: 1-12
        year: Positive year
        water_cost: Total water cost of the property for the period (>= 0)
        created_by_id: Acting user, stored in the audit fields
        administrator_id: When given, must be an administrator of the property

    Returns:
        Created invoices, one per active rental (may be empty)
    """
    period_start, period_end = billing_period(month, year)

    water_total = to_money(water_cost)
    if water_total < 0:
        raise InvalidAmountError("Water cost cannot be negative")

    async def _generate(session: AsyncSession) -> List[Invoice]:
        prop = await property_store.find_by_id(session, property_id)
        if not prop:
            raise PropertyNotFoundError(f"Property {property_id} not found")

        if administrator_id and not await property_store.is_user_administrator(session, property_id, administrator_id):
            logging.warning(f"User {administrator_id} is not an administrator of property {property_id}")
            raise PropertyAccessDeniedError()

        bill = await bill_store.find_electricity_bill_by_id(session, electricity_bill_id)
        if not bill:
            raise ElectricityBillNotFoundError(f"Electricity bill {electricity_bill_id} not found")

        if bill.property_id != property_id:
            raise ElectricityBillPropertyMismatchError(
                f"Electricity bill {electricity_bill_id} belongs to property {bill.property_id}, not {property_id}"
            )

        rentals = await rental_store.find_active_by_property_id(session, property_id, period_start, period_end)
        if not rentals:
            logging.info(f"Property {property_id} has no active rentals for {month:02d}/{year}, nothing to invoice")
            return []

        rental_ids = [r.id for r in rentals]
        existing = await invoice_store.find_existing_for_period(session, rental_ids, month, year)
        if existing:
            taken = sorted({inv.rental_id for inv in existing})
            logging.warning(f"Invoices for {month:02d}/{year} already exist for rentals {taken} of property {property_id}")
            raise InvoiceAlreadyExistsError(
                f"Invoices for {month:02d}/{year} already exist for rentals {taken}",
                rental_ids=taken
            )

        energy_shares = split_amount(bill.total_cost, len(rentals))
        water_shares = split_amount(water_total, len(rentals))

        invoices = []
        for rental, energy_cost, water_share in zip(rentals, energy_shares, water_shares):
            invoice = Invoice(
                rental_id=rental.id,
                month=month,
                year=year,
                energy_cost=energy_cost,
                water_cost=water_share,
                total_cost=energy_cost + water_share,
                status=InvoiceStatus.UNPAID.value,
                paid_at=None,
                created_by_id=created_by_id,
                updated_by_id=created_by_id
            )
            try:
                invoices.append(await invoice_store.insert(session, invoice))
            except IntegrityError as e:
                # Lost a race against a concurrent generation
                if "unique" in str(e.orig).lower():
                    raise InvoiceAlreadyExistsError(
                        f"Invoices for {month:02d}/{year} already exist for rental {rental.id}",
                        rental_ids=[rental.id]
                    ) from e
                raise

        return invoices

    invoices = await TransactionManager(session).execute(_generate, isolation_level=GENERATION_ISOLATION_LEVEL)

    if invoices:
        total = sum((inv.total_cost for inv in invoices), Decimal("0"))
        logging.info(
            f"Generated {len(invoices)} invoices for property {property_id}, {month:02d}/{year}, total {total}"
        )
    return invoices


async def ensure_property_administrator(session: AsyncSession, property_id: int, user_id: str) -> None:
    """Raise unless the property exists and user_id administers it"""
    prop = await property_store.find_by_id(session, property_id)
    if not prop:
        raise PropertyNotFoundError(f"Property {property_id} not found")

    if not await property_store.is_user_administrator(session, property_id, user_id):
        logging.warning(f"User {user_id} is not an administrator of property {property_id}")
        raise PropertyAccessDeniedError()


async def get_invoice_by_id(
    session: AsyncSession,
    invoice_id: int,
    user_id: Optional[str] = None,
    user_role: Optional[str] = None
) -> Optional[Invoice]:
    """
    Invoice with its rental loaded.

    Returns None when the invoice does not exist. Raises
    InvoiceAccessDeniedError when it exists but belongs to another
    user's rental and the caller is not an ADMIN.
    """
    invoice = await invoice_store.find_by_id(session, invoice_id, with_rental=True)
    if not invoice:
        return None

    if user_role != Role.ADMIN.value and user_id and invoice.rental.user_id != user_id:
        logging.warning(f"User {user_id} denied access to invoice {invoice_id}")
        raise InvoiceAccessDeniedError()

    return invoice


async def get_user_invoices(
    session: AsyncSession,
    user_id: str,
    status: Optional[InvoiceStatus] = None
) -> List[Invoice]:
    rentals = await rental_store.find_by_user_id(session, user_id)
    if not rentals:
        return []

    return await invoice_store.find_by_rental_ids(session, [r.id for r in rentals], status)
