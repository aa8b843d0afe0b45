# memberhub/core/jwt.py
from __future__ import annotations

"""
MemberHub — JWT helpers
=======================
- `decode_token` with optional issuer/audience enforcement
- Redis JTI revocation lane (`revoked:jti:{jti}`)

Notes
-----
- Token *creation* and revocation live in `memberhub.core.security`.
- If Redis is unavailable, behavior is controlled by `AUTH_FAIL_OPEN`
  (default: False → fail-closed with HTTP 503). When Redis was never
  connected (local dev, tests) tokens are treated as not revoked.
"""

import logging
from typing import Any, Dict, Optional, Sequence

from fastapi import HTTPException, status
from jose import ExpiredSignatureError, JWTError, jwt

from memberhub.core.config import settings
from memberhub.core.exceptions import InvalidTokenException
from memberhub.core.redis_client import redis_wrapper

logger = logging.getLogger(__name__)

REVOKED_KEY_PREFIX = "revoked:jti:"


def _unauthorized(detail: str) -> InvalidTokenException:
    return InvalidTokenException(detail=detail)


async def _is_revoked(jti: str) -> bool:
    try:
        rc = redis_wrapper.client
    except RuntimeError:
        return False

    try:
        return bool(await rc.get(f"{REVOKED_KEY_PREFIX}{jti}"))
    except Exception as e:
        if settings.AUTH_FAIL_OPEN:
            logger.error("Redis unavailable during revocation check (fail-open): %s", e)
            return False
        logger.error("Redis unavailable during revocation check (fail-closed): %s", e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Auth service temporarily unavailable.",
        )


# ─────────────────────────────────────────────────────────────
# 🔓 Decode
# ─────────────────────────────────────────────────────────────
async def decode_token(
    token: str,
    *,
    expected_types: Optional[Sequence[str]] = None,
    verify_revocation: bool = True,
) -> Dict[str, Any]:
    """Decode and validate a JWT.

    Checks signature and exp/nbf/iat, issuer/audience when configured, the
    presence of `sub` and `jti`, optional `token_type` membership, and the
    revocation lane.

    Raises
    ------
    HTTPException
      - 401 for invalid/expired/revoked tokens or type mismatch
      - 503 if Redis is down and fail-closed is configured
    """
    issuer = settings.JWT_ISSUER or None
    audience = settings.JWT_AUDIENCE or None

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY.get_secret_value(),
            algorithms=[settings.JWT_ALGORITHM],
            options={"verify_aud": bool(audience)},
            audience=audience,
            issuer=issuer,
        )
    except ExpiredSignatureError:
        logger.info("Token expired.")
        raise _unauthorized("Token has expired.")
    except JWTError as e:
        logger.warning("JWT decoding failed: %s", e)
        raise _unauthorized("Invalid token.")

    if not payload.get("sub"):
        raise _unauthorized("Token missing user ID.")

    jti = payload.get("jti")
    if not jti:
        raise _unauthorized("Token missing JTI.")

    if expected_types is not None and payload.get("token_type") not in set(expected_types):
        logger.warning("Token type mismatch: got %r", payload.get("token_type"))
        raise _unauthorized("Invalid token type.")

    if verify_revocation and await _is_revoked(jti):
        logger.warning("Token with JTI %s has been revoked.", jti)
        raise _unauthorized("Token has been revoked.")

    return payload


async def decode_access_token(token: str) -> Dict[str, Any]:
    return await decode_token(token, expected_types=["access"], verify_revocation=True)


__all__ = ["REVOKED_KEY_PREFIX", "decode_token", "decode_access_token"]
