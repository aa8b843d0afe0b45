"""
User API
========

GET  /user                → current member's profile, tier and purchases
POST /user/updateTier     → switch membership tier (payment is mocked)
POST /user/updateAccount  → username (+ optional new password)

All endpoints require an authenticated member; responses are `no-store`.
"""

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from memberhub.core.limiter import rate_limit
from memberhub.core.security import get_current_user
from memberhub.db.models import User
from memberhub.db.session import get_async_db
from memberhub.schemas.user import UpdateAccountRequest, UpdateTierRequest, UserOut
from memberhub.security_headers import set_sensitive_cache
from memberhub.services.auth.account_service import update_account, update_tier, user_out

router = APIRouter(tags=["User"])


@router.get("", response_model=UserOut, summary="Current member")
async def get_me(response: Response, current_user: User = Depends(get_current_user)) -> UserOut:
    set_sensitive_cache(response)
    return user_out(current_user)


@router.post("/updateTier", response_model=UserOut, summary="Change membership tier")
@rate_limit("10/minute")
async def update_tier_route(
    payload: UpdateTierRequest,
    request: Request,
    response: Response,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
) -> UserOut:
    set_sensitive_cache(response)
    user = await update_tier(db, current_user, payload.tier)
    return user_out(user)


@router.post("/updateAccount", response_model=UserOut, summary="Update username and password")
@rate_limit("10/minute")
async def update_account_route(
    payload: UpdateAccountRequest,
    request: Request,
    response: Response,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
) -> UserOut:
    set_sensitive_cache(response)
    user = await update_account(db, current_user, payload.username, payload.password)
    return user_out(user)


__all__ = ["router"]
