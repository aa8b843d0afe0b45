# memberhub/services/auth/login_service.py
from __future__ import annotations

"""
Login service
=============

- Email + password → access token.
- **Neutral errors**: unknown email, wrong password and inactive accounts
  all answer the same 401.
- Signout puts the presented token's `jti` on the Redis revocation lane.
"""

import logging
from typing import Any, Dict

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from memberhub.core.config import settings
from memberhub.core.security import create_access_token, revoke_token, verify_password
from memberhub.db.models import User
from memberhub.schemas.auth import LoginRequest, TokenResponse
from memberhub.services.auth.signup_service import norm_email

logger = logging.getLogger(__name__)

_INVALID = "Invalid email or password"


async def login_user(payload: LoginRequest, db: AsyncSession) -> TokenResponse:
    email = norm_email(payload.email)
    user = (await db.execute(select(User).where(func.lower(User.email) == email))).scalar_one_or_none()

    if user is None or not verify_password(payload.password, user.hashed_password):
        logger.info("Failed sign-in attempt")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=_INVALID)
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=_INVALID)

    return TokenResponse(
        access_token=create_access_token(user.id),
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


async def logout_user(token_payload: Dict[str, Any]) -> None:
    await revoke_token(token_payload)


__all__ = ["login_user", "logout_user"]
