# memberhub/core/security.py
from __future__ import annotations

"""
MemberHub — Authentication & Security Helpers
=============================================
- bcrypt password hashing (passlib)
- Access JWT creation (iss/aud/iat/nbf/jti)
- Redis revocation lane (`revoked:jti:{jti}`) used by signout
- FastAPI dependencies: `get_current_user` (required) and
  `get_optional_user` (anonymous allowed; anonymous viewers gate as rank 0)

Decoding is delegated to `memberhub.core.jwt`.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID, uuid4

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from memberhub.core.config import settings
from memberhub.core.jwt import REVOKED_KEY_PREFIX, decode_access_token
from memberhub.core.redis_client import redis_wrapper
from memberhub.db.models.user import User
from memberhub.db.session import get_async_db

# ───────────────────────────────────────────────
# 🔐 Setup
# ───────────────────────────────────────────────
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)


# ───────────────────────────────────────────────
# 🔐 Passwords
# ───────────────────────────────────────────────
def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Constant-time verify; a malformed stored hash counts as a mismatch."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


# ───────────────────────────────────────────────
# 🪪 Access tokens
# ───────────────────────────────────────────────
def create_access_token(user_id: UUID, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed **access token** carrying a fresh `jti`."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))

    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "exp": expire,
        "iat": now,
        "nbf": now,
        "jti": str(uuid4()),
        "token_type": "access",
    }
    if settings.JWT_ISSUER:
        payload["iss"] = settings.JWT_ISSUER
    if settings.JWT_AUDIENCE:
        payload["aud"] = settings.JWT_AUDIENCE

    return jwt.encode(payload, settings.JWT_SECRET_KEY.get_secret_value(), algorithm=settings.JWT_ALGORITHM)


async def revoke_token(payload: Dict[str, Any]) -> None:
    """Put the token's `jti` on the revocation lane until it would expire anyway."""
    jti = payload.get("jti")
    if not jti:
        return
    exp = int(payload.get("exp") or 0)
    ttl = max(1, exp - int(datetime.now(timezone.utc).timestamp()))
    await redis_wrapper.client.setex(f"{REVOKED_KEY_PREFIX}{jti}", ttl, "1")
    logger.info("Revoked token jti=%s ttl=%s", jti, ttl)


def get_user_id_from_payload(payload: Dict[str, Any]) -> UUID:
    try:
        return UUID(str(payload.get("sub")))
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token: malformed user_id")


# ───────────────────────────────────────────────
# 👤 Dependencies
# ───────────────────────────────────────────────
async def _load_user(request: Request, token: str, db: AsyncSession) -> User:
    payload = await decode_access_token(token)
    user_id = get_user_id_from_payload(payload)

    user = (await db.execute(select(User).where(User.id == user_id))).scalars().first()
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Inactive or missing user")

    request.state.user_id = user.id
    request.state.token_payload = payload
    return user


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_async_db),
) -> User:
    """Authenticate the caller from the presented **access** token."""
    return await _load_user(request, credentials.credentials, db)


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
    db: AsyncSession = Depends(get_async_db),
) -> Optional[User]:
    """Like `get_current_user`, but anonymous callers get `None`.

    A token that is present but invalid is still a 401.
    """
    if credentials is None:
        return None
    return await _load_user(request, credentials.credentials, db)


__all__ = [
    "get_password_hash",
    "verify_password",
    "create_access_token",
    "revoke_token",
    "get_user_id_from_payload",
    "get_current_user",
    "get_optional_user",
]
