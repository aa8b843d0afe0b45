"""
Auth API
========

POST /signup            → create a member account, return an access token
POST /signin            → email + password → access token
POST /signout           → revoke the presented token
POST /change-password   → old + new password
POST /update-profile    → username (+ optional tier)
POST /forgot-password   → neutral answer; one-hour reset link for known emails
POST /reset-password    → reset token + new password

Security & Hardening
--------------------
- **No-store** cache headers on token-bearing responses.
- **Per-route rate limits** via SlowAPI.
- Neutral errors live in the service layer.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from memberhub.core.limiter import rate_limit
from memberhub.core.security import get_current_user
from memberhub.db.models import User
from memberhub.db.session import get_async_db
from memberhub.schemas.auth import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    ResetPasswordRequest,
    SignupPayload,
    TokenResponse,
    UpdateProfileRequest,
)
from memberhub.schemas.user import UserOut
from memberhub.security_headers import set_sensitive_cache
from memberhub.services.auth.account_service import change_password, update_profile, user_out
from memberhub.services.auth.login_service import login_user, logout_user
from memberhub.services.auth.password_reset_service import request_password_reset, reset_password
from memberhub.services.auth.signup_service import signup_user

router = APIRouter(tags=["Authentication"])


# ──────────────────────────────────────────────────────
# 👤 Signup / signin / signout
# ──────────────────────────────────────────────────────
@router.post(
    "/signup",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new member account and issue a token",
)
@rate_limit("10/minute")
async def signup(
    payload: SignupPayload,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_async_db),
) -> TokenResponse:
    set_sensitive_cache(response)
    token_response, _user = await signup_user(payload, db)
    return token_response


@router.post("/signin", response_model=TokenResponse, summary="Sign in with email and password")
@rate_limit("10/minute")
async def signin(
    payload: LoginRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_async_db),
) -> TokenResponse:
    set_sensitive_cache(response)
    return await login_user(payload, db)


@router.post("/signout", response_model=MessageResponse, summary="Revoke the current access token")
async def signout(
    request: Request,
    response: Response,
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    set_sensitive_cache(response)
    # Populated by the auth dependency.
    payload = getattr(request.state, "token_payload", None) or {}
    await logout_user(payload)
    return MessageResponse(message="Signed out")


# ──────────────────────────────────────────────────────
# 🔑 Account changes
# ──────────────────────────────────────────────────────
@router.post("/change-password", response_model=MessageResponse, summary="Change the account password")
@rate_limit("5/minute")
async def change_password_route(
    payload: ChangePasswordRequest,
    request: Request,
    response: Response,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
) -> MessageResponse:
    await change_password(db, current_user, payload.old_password, payload.new_password)
    return MessageResponse(message="Password updated")


@router.post("/update-profile", response_model=UserOut, summary="Update username and optionally tier")
async def update_profile_route(
    payload: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
) -> UserOut:
    user = await update_profile(db, current_user, payload.username, payload.tier)
    return user_out(user)


# ──────────────────────────────────────────────────────
# 🔁 Password reset
# ──────────────────────────────────────────────────────
@router.post("/forgot-password", response_model=MessageResponse, summary="Email a password reset link")
@rate_limit("5/minute")
async def forgot_password_route(
    payload: ForgotPasswordRequest,
    request: Request,
    response: Response,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_async_db),
) -> MessageResponse:
    """Always answers with the same neutral message."""
    set_sensitive_cache(response)
    return await request_password_reset(payload.email, db, background_tasks)


@router.post("/reset-password", response_model=MessageResponse, summary="Set a new password with a reset token")
@rate_limit("10/minute")
async def reset_password_route(
    payload: ResetPasswordRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_async_db),
) -> MessageResponse:
    set_sensitive_cache(response)
    return await reset_password(payload.token, payload.new_password, db)


__all__ = ["router"]
