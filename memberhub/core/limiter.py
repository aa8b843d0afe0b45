from __future__ import annotations

"""
MemberHub — HTTP Rate Limiting (SlowAPI)
========================================

- **User/IP aware** keying: per-user when auth sets `request.state.user_id`,
  else per-client-IP.
- **Exemptions**: health/docs paths, trusted IPs, and a test/CI bypass.
- **Backends**: Redis via `RATELIMIT_STORAGE_URI` or in-memory fallback.

Environment
-----------
RATE_LIMIT_ENABLED           default: "true"
DEFAULT_RATE_LIMIT           default: "100/minute"
RATELIMIT_STORAGE_URI        default: "" (falls back to "memory://")
RATE_LIMIT_SKIP_PATHS        default: "/healthz,/readyz,/docs,/openapi.json"
RATE_LIMIT_TRUSTED_IPS       default: "" (comma separated)
RATE_LIMIT_NAMESPACE         default: "" (e.g., "pytest-<runid>")
RATE_LIMIT_TEST_BYPASS       default: "" (truthy to bypass in tests/CI)

Usage
-----
    @router.post("/signin")
    @rate_limit("10/minute")
    async def signin(request: Request, response: Response, ...): ...

Decorated endpoints must accept `request: Request` and `response: Response`.
"""

import os
from typing import Callable, List, Optional, Set

from dotenv import load_dotenv
from loguru import logger
from slowapi import Limiter
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.requests import Request

load_dotenv()

RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
DEFAULT_LIMIT = os.getenv("DEFAULT_RATE_LIMIT", "100/minute").strip()
STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "").strip()

SKIP_PATHS: List[str] = [
    p.strip()
    for p in os.getenv("RATE_LIMIT_SKIP_PATHS", "/healthz,/readyz,/docs,/openapi.json").split(",")
    if p.strip()
]
TRUSTED_IPS: Set[str] = {ip.strip() for ip in os.getenv("RATE_LIMIT_TRUSTED_IPS", "").split(",") if ip.strip()}
NAMESPACE = os.getenv("RATE_LIMIT_NAMESPACE", "").strip()


# ──────────────────────────────────────────────────────────────
# 🧠 Keying & exemptions
# ──────────────────────────────────────────────────────────────
def _client_ip(request: Request) -> str:
    xff = request.headers.get("x-forwarded-for")
    if xff:
        ip = xff.split(",")[0].strip()
        if ip:
            return ip
    return get_remote_address(request) or "unknown"


def get_user_rate_limit_key(request: Request) -> str:
    """`user:<id>` when authenticated, else `ip:<addr>`; namespaced when configured."""
    user_id = getattr(request.state, "user_id", None)
    key = f"user:{user_id}" if user_id else f"ip:{_client_ip(request)}"
    return f"{NAMESPACE}:{key}" if NAMESPACE else key


def should_exempt_request(request: Optional[Request]) -> bool:
    # Env flags are re-read per request so tests can toggle them.
    if os.getenv("RATE_LIMIT_ENABLED", "true").strip().lower() != "true":
        return True
    if os.getenv("RATE_LIMIT_TEST_BYPASS", "").strip().lower() in {"1", "true", "yes", "on"}:
        return True
    if request is None:
        return False
    path = request.url.path
    if any(path == p or path.startswith(p) for p in SKIP_PATHS):
        return True
    return _client_ip(request) in TRUSTED_IPS


# ──────────────────────────────────────────────────────────────
# 🧰 Limiter instance (Redis / memory)
# ──────────────────────────────────────────────────────────────
def _default_limits() -> List[str]:
    return [chunk.strip() for chunk in DEFAULT_LIMIT.split(",") if chunk.strip()]


def _make_limiter() -> Optional[Limiter]:
    storage_uri = STORAGE_URI or "memory://"
    try:
        limiter = Limiter(
            key_func=get_user_rate_limit_key,
            default_limits=_default_limits(),
            headers_enabled=True,
            storage_uri=storage_uri,
        )
    except Exception as e:
        logger.error(f"Failed to init Limiter; limits disabled | err={e}")
        return None
    logger.info(f"RateLimiter ready | enabled={RATE_LIMIT_ENABLED} | storage={storage_uri}")
    return limiter


limiter: Optional[Limiter] = _make_limiter()


def _exempt_when(request: Optional[Request] = None) -> bool:
    req = request
    if req is None and limiter is not None:
        try:
            req = limiter._request_context.get()  # type: ignore[attr-defined]
        except Exception:
            req = None
    return should_exempt_request(req)


def rate_limit(*limits: str) -> Callable:
    """Apply per-route limits with the exemptions above."""
    if limiter is None:
        def _noop(fn: Callable) -> Callable:
            return fn
        return _noop

    selected = list(limits) if limits else _default_limits()

    def _apply(fn: Callable) -> Callable:
        for limit_value in reversed(selected):
            fn = limiter.limit(limit_value, exempt_when=_exempt_when)(fn)
        return fn

    return _apply


def rate_limit_exempt() -> Callable:
    if limiter is None:
        def _noop(fn: Callable) -> Callable:
            return fn
        return _noop
    return limiter.exempt


def install_rate_limiter(app) -> None:
    """Attach SlowAPI middleware unless disabled by env."""
    if not limiter:
        logger.warning("RateLimiter not initialized; middleware not installed")
        return
    if not RATE_LIMIT_ENABLED:
        logger.info("RateLimiter disabled by env; middleware not installed")
        return
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)


__all__ = ["limiter", "rate_limit", "rate_limit_exempt", "install_rate_limiter", "should_exempt_request"]
