"""
Caller identity.

Authentication happens upstream (gateway / web app); requests arrive
with the authenticated user id and role in headers.
"""
import logging
from typing import Optional, NamedTuple

from fastapi import Depends, Header

from rentbill.database.models import Role
from rentbill.errors import AuthenticationRequiredError, PropertyAccessDeniedError


class CurrentUser(NamedTuple):
    user_id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value


async def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None)
) -> CurrentUser:
    if not x_user_id or not x_user_id.strip():
        raise AuthenticationRequiredError()

    role = (x_user_role or Role.USER.value).upper()
    if role not in (Role.ADMIN.value, Role.USER.value):
        logging.warning(f"Unknown role '{x_user_role}' for user {x_user_id}, treating as USER")
        role = Role.USER.value

    return CurrentUser(user_id=x_user_id.strip(), role=role)


async def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        raise PropertyAccessDeniedError("Administrator role required")
    return user
