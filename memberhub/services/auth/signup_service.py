# memberhub/services/auth/signup_service.py
from __future__ import annotations

"""
Signup service
==============

- **Normalized email** and server-side bcrypt hashing.
- New members start on the `basic` tier with the `member` role.
- **Race-safe** duplicate handling: fast pre-check plus IntegrityError
  recovery on the unique index (both → 409).
- Returns an access token so the client is signed in right away.
"""

import logging
from typing import Tuple

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from memberhub.core.config import settings
from memberhub.core.security import create_access_token, get_password_hash
from memberhub.db.models import User
from memberhub.schemas.auth import SignupPayload, TokenResponse
from memberhub.schemas.enums import MembershipTier, UserRole

logger = logging.getLogger(__name__)


def norm_email(email: str) -> str:
    return (email or "").strip().lower()


async def signup_user(payload: SignupPayload, db: AsyncSession) -> Tuple[TokenResponse, User]:
    email = norm_email(payload.email)

    existing = (await db.execute(select(User).where(func.lower(User.email) == email))).scalar_one_or_none()
    if existing is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    user = User(
        email=email,
        full_name=payload.name,
        hashed_password=get_password_hash(payload.password),
        role=UserRole.MEMBER.value,
        tier=MembershipTier.BASIC.value,
        is_active=True,
        purchased_product_ids=[],
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
    await db.refresh(user)

    logger.info("New member signed up: %s", user.id)
    token = TokenResponse(
        access_token=create_access_token(user.id),
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return token, user


__all__ = ["signup_user", "norm_email"]
