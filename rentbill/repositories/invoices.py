from typing import Optional, List
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from rentbill.database.models import Invoice, InvoiceStatus


async def find_by_id(session: AsyncSession, invoice_id: int, with_rental: bool = False) -> Optional[Invoice]:
    stmt = select(Invoice).where(
        Invoice.id == invoice_id,
        Invoice.deleted_at.is_(None)
    )
    if with_rental:
        # populate_existing so the rental also loads for invoices already in the session
        stmt = stmt.options(selectinload(Invoice.rental)).execution_options(populate_existing=True)

    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def lock_by_id(session: AsyncSession, invoice_id: int) -> Optional[Invoice]:
    """Load the invoice with a row lock (FOR UPDATE) held until the transaction ends"""
    stmt = (
        select(Invoice)
        .where(Invoice.id == invoice_id, Invoice.deleted_at.is_(None))
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def find_by_rental_ids(
    session: AsyncSession,
    rental_ids: List[int],
    status: Optional[InvoiceStatus] = None
) -> List[Invoice]:
    """Invoices of the given rentals, newest period first"""
    if not rental_ids:
        return []

    stmt = select(Invoice).where(
        Invoice.rental_id.in_(rental_ids),
        Invoice.deleted_at.is_(None)
    )
    if status is not None:
        stmt = stmt.where(Invoice.status == InvoiceStatus(status).value)

    stmt = stmt.order_by(Invoice.year.desc(), Invoice.month.desc(), Invoice.id)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def find_existing_for_period(
    session: AsyncSession,
    rental_ids: List[int],
    month: int,
    year: int
) -> List[Invoice]:
    """
    Invoices already occupying (rental, month, year) for any of the rentals.

    Soft-deleted invoices are included: the unique constraint still
    covers them.
    """
    if not rental_ids:
        return []

    stmt = select(Invoice).where(
        Invoice.rental_id.in_(rental_ids),
        Invoice.month == month,
        Invoice.year == year
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def insert(session: AsyncSession, invoice: Invoice) -> Invoice:
    session.add(invoice)
    await session.flush()
    await session.refresh(invoice)
    return invoice


async def mark_paid(session: AsyncSession, invoice_id: int, paid_at, updated_by_id: Optional[str] = None) -> Invoice:
    """UNPAID -> PAID transition. Never moves an invoice back to UNPAID."""
    stmt = (
        update(Invoice)
        .where(Invoice.id == invoice_id, Invoice.status == InvoiceStatus.UNPAID.value)
        .values(
            status=InvoiceStatus.PAID.value,
            paid_at=paid_at,
            updated_by_id=updated_by_id
        )
    )
    await session.execute(stmt)
    return await session.get(Invoice, invoice_id, populate_existing=True)
