import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from rentbill.database.models import Rental, Role
from rentbill.errors import RentalAccessDeniedError
from rentbill.repositories import rentals as rental_store


async def get_rental_by_id(
    session: AsyncSession,
    rental_id: int,
    user_id: Optional[str] = None,
    user_role: Optional[str] = None
) -> Optional[Rental]:
    """
    None if the rental does not exist; RentalAccessDeniedError if it
    belongs to someone else and the caller is not an ADMIN.
    """
    rental = await rental_store.find_by_id(session, rental_id)
    if not rental:
        return None

    if user_role != Role.ADMIN.value and user_id and rental.user_id != user_id:
        logging.warning(f"User {user_id} denied access to rental {rental_id}")
        raise RentalAccessDeniedError()

    return rental
