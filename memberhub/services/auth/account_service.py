# memberhub/services/auth/account_service.py
from __future__ import annotations

"""
Account service
===============

Self-service account changes for the signed-in member: password, username,
and membership tier (the subscription action; payment is mocked).
"""

import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from memberhub.core.security import get_password_hash, verify_password
from memberhub.db.models import User
from memberhub.schemas.user import UserOut
from memberhub.services.tiers import PURCHASABLE_TIERS, normalize_tier

logger = logging.getLogger(__name__)


def user_out(user: User) -> UserOut:
    return UserOut(
        id=str(user.id),
        email=user.email,
        username=user.username,
        full_name=user.full_name,
        tier=user.tier,
        role=user.role,
        purchases=list(user.purchased_product_ids or []),
    )


def parse_purchasable_tier(label: Optional[str]) -> str:
    """Validated tier value for writes; 400 unless basic/premium/allAccess."""
    tier = normalize_tier(label)
    if tier is None or tier not in PURCHASABLE_TIERS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid tier")
    return tier.value


async def _ensure_username_free(db: AsyncSession, user: User, username: str) -> None:
    stmt = select(User.id).where(func.lower(User.username) == username.lower(), User.id != user.id)
    if (await db.execute(stmt)).first() is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already taken")


async def change_password(db: AsyncSession, user: User, old_password: str, new_password: str) -> None:
    if not verify_password(old_password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Current password is incorrect")
    user.hashed_password = get_password_hash(new_password)
    await db.commit()
    logger.info("Password changed for %s", user.id)


async def update_profile(db: AsyncSession, user: User, username: str, tier: Optional[str] = None) -> User:
    await _ensure_username_free(db, user, username)
    user.username = username
    if tier is not None:
        user.tier = parse_purchasable_tier(tier)
    await db.commit()
    await db.refresh(user)
    return user


async def update_tier(db: AsyncSession, user: User, tier: str) -> User:
    user.tier = parse_purchasable_tier(tier)
    await db.commit()
    await db.refresh(user)
    logger.info("Tier for %s set to %s", user.id, user.tier)
    return user


async def update_account(db: AsyncSession, user: User, username: str, password: Optional[str] = None) -> User:
    await _ensure_username_free(db, user, username)
    user.username = username
    if password:
        user.hashed_password = get_password_hash(password)
    await db.commit()
    await db.refresh(user)
    return user


__all__ = [
    "user_out",
    "parse_purchasable_tier",
    "change_password",
    "update_profile",
    "update_tier",
    "update_account",
]
