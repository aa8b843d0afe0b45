# memberhub/security_headers.py
from __future__ import annotations

"""
# MemberHub — Security Headers & CORS

- **Headers**: CSP, HSTS, CORP/COOP, Referrer-Policy, X-Content-Type-Options,
  X-Frame-Options, X-Permitted-Cross-Domain-Policies.
- **CORS installer**: strict allow-list from settings (localhost in dev).
- **Cache helper**: `set_sensitive_cache()` marks responses that carry signed
  media URLs or tokens as `no-store` so shared caches never keep them.

## Quick start
    from memberhub.security_headers import install_security, configure_cors

    install_security(app)   # optional HTTPS redirect + headers middleware
    configure_cors(app)

## Env knobs
- ENABLE_HTTPS_REDIRECT (default "false"; TLS usually ends at the proxy)
- SECURITY_SKIP_PATHS (CSV; default "/docs,/redoc,/openapi.json")
- HSTS_MAX_AGE (31536000)
- CSP_DEFAULT_SRC, CSP_IMG_SRC, CSP_MEDIA_SRC, CSP_FRAME_SRC, CSP_FRAME_ANCESTORS
- REFERRER_POLICY (default "strict-origin-when-cross-origin")
- CROSS_ORIGIN_OPENER_POLICY / CROSS_ORIGIN_RESOURCE_POLICY
"""

import os
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple, Union

from fastapi import Request, Response
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.httpsredirect import HTTPSRedirectMiddleware
from starlette.types import ASGIApp, Receive, Scope, Send

from memberhub.core.config import settings


# ─────────────────────────────────────────────────────────────
# ⚙️ Configuration
# ─────────────────────────────────────────────────────────────
def _media_origins() -> str:
    # Signed thumbnails/playback come from the Bunny pull zone; embeds from the player host.
    cdn = settings.bunny_cdn_base_url
    return f"'self' {cdn}".strip() if cdn else "'self'"


@dataclass(frozen=True)
class SecurityHeadersConfig:
    hsts_max_age: int = int(os.getenv("HSTS_MAX_AGE", "31536000"))

    csp_default_src: str = os.getenv("CSP_DEFAULT_SRC", "'self'")
    csp_img_src: str = os.getenv("CSP_IMG_SRC", f"{_media_origins()} data:")
    csp_media_src: str = os.getenv("CSP_MEDIA_SRC", _media_origins())
    csp_frame_src: str = os.getenv("CSP_FRAME_SRC", "https://iframe.mediadelivery.net")
    csp_frame_ancestors: str = os.getenv("CSP_FRAME_ANCESTORS", "'none'")

    referrer_policy: str = os.getenv("REFERRER_POLICY", "strict-origin-when-cross-origin")
    coop: str = os.getenv("CROSS_ORIGIN_OPENER_POLICY", "same-origin")
    corp: str = os.getenv("CROSS_ORIGIN_RESOURCE_POLICY", "same-site")

    skip_paths_csv: str = os.getenv("SECURITY_SKIP_PATHS", "/docs,/redoc,/openapi.json")


_CFG = SecurityHeadersConfig()


def _build_csp(cfg: SecurityHeadersConfig = _CFG) -> str:
    return "; ".join(
        [
            f"default-src {cfg.csp_default_src}",
            f"img-src {cfg.csp_img_src}",
            f"media-src {cfg.csp_media_src}",
            f"frame-src {cfg.csp_frame_src}",
            f"frame-ancestors {cfg.csp_frame_ancestors}",
        ]
    )


# ─────────────────────────────────────────────────────────────
# 🧩 Middleware
# ─────────────────────────────────────────────────────────────
class SecurityHeadersMiddleware:
    """Apply security headers idempotently; honor `set_sensitive_cache(request)`."""

    def __init__(self, app: ASGIApp, cfg: SecurityHeadersConfig = _CFG) -> None:
        self.app = app
        self.cfg = cfg
        self._skip_prefixes: Tuple[str, ...] = tuple(
            p.strip() for p in (cfg.skip_paths_csv or "").split(",") if p.strip()
        )
        self._csp = _build_csp(cfg)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            return await self.app(scope, receive, send)

        is_skipped = any(scope.get("path", "").startswith(p) for p in self._skip_prefixes)
        state = scope.setdefault("state", {})

        async def send_wrapper(message):
            if message.get("type") == "http.response.start":
                raw_headers: List[Tuple[bytes, bytes]] = list(message.get("headers", []))
                if not is_skipped:
                    self._apply_headers(raw_headers)
                if state.get("_sensitive_cache"):
                    _ensure(raw_headers, "Cache-Control", "no-store")
                    _ensure(raw_headers, "Pragma", "no-cache")
                message["headers"] = raw_headers
            await send(message)

        await self.app(scope, receive, send_wrapper)

    def _apply_headers(self, raw: List[Tuple[bytes, bytes]]) -> None:
        _ensure(raw, "Strict-Transport-Security", f"max-age={self.cfg.hsts_max_age}; includeSubDomains")
        _ensure(raw, "X-Content-Type-Options", "nosniff")
        _ensure(raw, "X-Frame-Options", "DENY")
        _ensure(raw, "Referrer-Policy", self.cfg.referrer_policy)
        _ensure(raw, "Cross-Origin-Opener-Policy", self.cfg.coop)
        _ensure(raw, "Cross-Origin-Resource-Policy", self.cfg.corp)
        _ensure(raw, "X-Permitted-Cross-Domain-Policies", "none")
        _ensure(raw, "Content-Security-Policy", self._csp)


def _ensure(raw_headers: List[Tuple[bytes, bytes]], name: str, value: str) -> None:
    lname = name.lower().encode("latin-1")
    if not any(h[0].lower() == lname for h in raw_headers):
        raw_headers.append((name.encode("latin-1"), value.encode("latin-1")))


# ─────────────────────────────────────────────────────────────
# 🔓 Route helper
# ─────────────────────────────────────────────────────────────
def set_sensitive_cache(target: Union[Response, Request]) -> None:
    """Mark a Response (immediately) or Request (via middleware) as `no-store`."""
    if isinstance(target, Response):
        target.headers["Cache-Control"] = "no-store"
        target.headers["Pragma"] = "no-cache"
        return
    if isinstance(target, Request):
        target.state._sensitive_cache = True
        return
    raise TypeError("set_sensitive_cache expects a Response or Request")


# ─────────────────────────────────────────────────────────────
# 🌐 CORS / install
# ─────────────────────────────────────────────────────────────
def configure_cors(
    app,
    *,
    allow_methods: Optional[Iterable[str]] = None,
    allow_headers: Optional[Iterable[str]] = None,
) -> None:
    """Strict CORS allow-list from `FRONTEND_ORIGINS` / `BACKEND_CORS_ORIGINS`."""
    origins = settings.frontend_origins_list or ["http://localhost:3000", "http://127.0.0.1:3000"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=list(allow_methods or ["GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"]),
        allow_headers=list(allow_headers or ["Authorization", "Content-Type", "X-Request-ID"]),
        expose_headers=["Location", "Retry-After", "X-Request-ID"],
        max_age=3600,
    )


def install_security(app) -> None:
    if os.getenv("ENABLE_HTTPS_REDIRECT", "false").lower() == "true":
        app.add_middleware(HTTPSRedirectMiddleware)
    app.add_middleware(SecurityHeadersMiddleware, cfg=_CFG)


__all__ = [
    "SecurityHeadersConfig",
    "SecurityHeadersMiddleware",
    "install_security",
    "configure_cors",
    "set_sensitive_cache",
]
