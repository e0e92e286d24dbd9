from decimal import Decimal
from typing import List
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from rentbill.database.models import Payment


async def insert(session: AsyncSession, payment: Payment) -> Payment:
    session.add(payment)
    await session.flush()
    await session.refresh(payment)
    return payment


async def sum_for_invoice(session: AsyncSession, invoice_id: int) -> Decimal:
    stmt = select(func.coalesce(func.sum(Payment.amount), 0)).where(
        Payment.invoice_id == invoice_id,
        Payment.deleted_at.is_(None)
    )
    result = await session.execute(stmt)
    return Decimal(str(result.scalar()))


async def find_by_invoice_id(session: AsyncSession, invoice_id: int) -> List[Payment]:
    """Most recent first"""
    stmt = (
        select(Payment)
        .where(Payment.invoice_id == invoice_id, Payment.deleted_at.is_(None))
        .order_by(Payment.paid_at.desc(), Payment.id.desc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def find_by_rental_id(session: AsyncSession, rental_id: int) -> List[Payment]:
    """Most recent first"""
    stmt = (
        select(Payment)
        .where(Payment.rental_id == rental_id, Payment.deleted_at.is_(None))
        .order_by(Payment.paid_at.desc(), Payment.id.desc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())
