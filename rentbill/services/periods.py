"""
Money and billing-period helpers.

Pure functions, no database access.
"""
from datetime import date
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import List, Tuple, Union

from rentbill.errors import InvalidPeriodError, InvalidAmountError, InvalidBillError

CENT = Decimal("0.01")

Number = Union[Decimal, float, int, str]


def to_money(value: Number) -> Decimal:
    """Convert to Decimal rounded to cents (ROUND_HALF_UP)"""
    try:
        # str() first so floats like 0.1 do not drag binary noise in
        return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError) as e:
        raise InvalidAmountError(f"Not a monetary amount: {value!r}") from e


def billing_period(month: int, year: int) -> Tuple[date, date]:
    """
    Half-open date range covered by a billing period.

    Returns:
        (first day of month, first day of next month)
    """
    validate_period(month, year)
    start = date(year, month, 1)
    if month == 12:
        end = date(year + 1, 1, 1)
    else:
        end = date(year, month + 1, 1)
    return start, end


def validate_period(month: int, year: int) -> None:
    if isinstance(month, bool) or not isinstance(month, int) or not 1 <= month <= 12:
        raise InvalidPeriodError(f"Month must be an integer between 1 and 12, got {month!r}")
    if isinstance(year, bool) or not isinstance(year, int) or year < 1:
        raise InvalidPeriodError(f"Year must be a positive integer, got {year!r}")


def validate_date_range(start: date, end: date) -> None:
    if start >= end:
        raise InvalidPeriodError(f"Period start {start} must be before period end {end}")


def periods_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    """Inclusive on both ends: bills sharing a single day overlap"""
    return start_a <= end_b and start_b <= end_a


def cost_per_unit(total_cost: Number, quantity: Number) -> Decimal:
    """Price of one kWh / m3 for a bill. Not rounded to cents."""
    quantity = Decimal(str(quantity))
    if quantity <= 0:
        raise InvalidBillError("Quantity must be greater than zero")
    return Decimal(str(total_cost)) / quantity


def split_amount(total: Number, parts: int) -> List[Decimal]:
    """
    Split an amount into `parts` equal shares in cents.

    Leftover cents go one each to the first shares, so the shares always
    add up to the total and differ from total/parts by less than a cent.

    >>> split_amount("100.00", 3)
    [Decimal('33.34'), Decimal('33.33'), Decimal('33.33')]
    """
    if parts <= 0:
        return []

    total_cents = int(to_money(total) / CENT)
    if total_cents < 0:
        raise InvalidAmountError("Cannot split a negative amount")

    base, remainder = divmod(total_cents, parts)
    shares = []
    for i in range(parts):
        cents = base + (1 if i < remainder else 0)
        shares.append((Decimal(cents) * CENT).quantize(CENT))
    return shares
