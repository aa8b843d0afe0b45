from __future__ import annotations

"""
Password reset service
======================

Features
--------
- **Random reset tokens** (256 bits) valid for `PASSWORD_RESET_TTL_SECONDS`
  (one hour by default), stored in Redis only as **peppered HMAC** digests:

      pwdreset:token:{digest}  -> user id
      pwdreset:user:{user_id}  -> digest of the newest token

  A new request replaces the user's previous token.
- **Neutral responses**: unknown or inactive emails get the same answer as
  real ones.
- **Single use**: the token key is consumed with `GETDEL` before the password
  changes.
- Delivery goes through `send_password_reset_link`; no mail transport is
  configured, so it only logs.
"""

import hashlib
import hmac
import logging
import secrets
import uuid
from typing import Optional
from urllib.parse import urlencode

from fastapi import BackgroundTasks, HTTPException, status
from redis.exceptions import RedisError
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from memberhub.core.config import settings
from memberhub.core.redis_client import redis_wrapper
from memberhub.core.security import get_password_hash
from memberhub.db.models import User
from memberhub.schemas.auth import MessageResponse
from memberhub.services.auth.signup_service import norm_email

logger = logging.getLogger(__name__)

TOKEN_KEY_PREFIX = "pwdreset:token:"
USER_KEY_PREFIX = "pwdreset:user:"

_NEUTRAL = "If an account exists with this email, a password reset link has been sent."
_INVALID = "Invalid or expired token"


# ─────────────────────────────────────────────────────────────
# 🔧 Helpers
# ─────────────────────────────────────────────────────────────
def _digest(token: str) -> str:
    key = settings.JWT_SECRET_KEY.get_secret_value().encode("utf-8")
    return hmac.new(key, f"password_reset:{token}".encode("utf-8"), hashlib.sha256).hexdigest()


def _unavailable(e: Exception) -> HTTPException:
    logger.error("Redis unavailable during password reset: %s", e)
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Password reset is temporarily unavailable.",
    )


def reset_link(token: str) -> str:
    return f"{settings.PASSWORD_RESET_URL}?{urlencode({'token': token})}"


def send_password_reset_link(email: str, link: str) -> None:
    email_hash = hashlib.sha256(email.encode("utf-8")).hexdigest()[:12]
    logger.info("Password reset link issued (email_hash=%s)", email_hash)
    logger.debug("Password reset link: %s", link)


# ─────────────────────────────────────────────────────────────
# 🔁 Request a reset link
# ─────────────────────────────────────────────────────────────
async def request_password_reset(
    email: str,
    db: AsyncSession,
    background_tasks: Optional[BackgroundTasks] = None,
) -> MessageResponse:
    generic = MessageResponse(message=_NEUTRAL)

    email_norm = norm_email(email)
    user = (await db.execute(select(User).where(func.lower(User.email) == email_norm))).scalar_one_or_none()
    if user is None or not user.is_active:
        return generic

    token = secrets.token_hex(32)
    digest = _digest(token)
    ttl = settings.PASSWORD_RESET_TTL_SECONDS
    try:
        rc = redis_wrapper.client
        previous = await rc.get(f"{USER_KEY_PREFIX}{user.id}")
        if previous:
            await rc.delete(f"{TOKEN_KEY_PREFIX}{previous}")
        await rc.setex(f"{TOKEN_KEY_PREFIX}{digest}", ttl, str(user.id))
        await rc.setex(f"{USER_KEY_PREFIX}{user.id}", ttl, digest)
    except (RuntimeError, RedisError, ConnectionError) as e:
        raise _unavailable(e)

    link = reset_link(token)
    if background_tasks is not None:
        background_tasks.add_task(send_password_reset_link, email_norm, link)
    else:
        send_password_reset_link(email_norm, link)
    return generic


# ─────────────────────────────────────────────────────────────
# 🔒 Set the new password
# ─────────────────────────────────────────────────────────────
async def reset_password(token: str, new_password: str, db: AsyncSession) -> MessageResponse:
    digest = _digest(token or "")
    try:
        rc = redis_wrapper.client
        user_id = await rc.getdel(f"{TOKEN_KEY_PREFIX}{digest}")
    except (RuntimeError, RedisError, ConnectionError) as e:
        raise _unavailable(e)

    if not user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=_INVALID)

    user = await db.get(User, uuid.UUID(str(user_id)))
    if user is None or not user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=_INVALID)

    user.hashed_password = get_password_hash(new_password)
    await db.commit()

    try:
        await rc.delete(f"{USER_KEY_PREFIX}{user.id}")
    except (RedisError, ConnectionError) as e:
        # The token is already consumed; the pointer key expires on its own.
        logger.warning("Could not clear reset pointer for %s: %s", user.id, e)

    logger.info("Password reset for %s", user.id)
    return MessageResponse(message="Password reset successful")


__all__ = [
    "request_password_reset",
    "reset_password",
    "reset_link",
    "send_password_reset_link",
]
