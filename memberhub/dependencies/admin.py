from __future__ import annotations

"""
Admin guard
-----------
A member is an admin when their role is `admin` or their email is listed in
`ADMIN_EMAILS`. Routers take `admin_user` as a dependency.
"""

from fastapi import Depends

from memberhub.core.config import settings
from memberhub.core.exceptions import PermissionDeniedException
from memberhub.core.security import get_current_user
from memberhub.db.models.user import User
from memberhub.schemas.enums import UserRole


def is_admin(user: User) -> bool:
    if getattr(user, "role", None) == UserRole.ADMIN.value:
        return True
    return (getattr(user, "email", "") or "").lower() in settings.admin_emails


async def admin_user(current_user: User = Depends(get_current_user)) -> User:
    if not is_admin(current_user):
        raise PermissionDeniedException(permission="admin", role=str(current_user.role))
    return current_user


__all__ = ["is_admin", "admin_user"]
