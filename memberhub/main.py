# memberhub/main.py
from __future__ import annotations

"""
# MemberHub API — Application Entrypoint (FastAPI)

ASGI application factory and lifecycle for the MemberHub membership site
(tiered content, Bunny.net video, storefront).

## Middleware order
1) request id → 2) security headers/HTTPS → 3) CORS → 4) gzip →
5) rate limits → 6) strip `Server` header.

## Health checks
- `/healthz`: liveness (process up).
- `/readyz`: readiness (quick DB/Redis checks).
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.gzip import GZipMiddleware
from starlette.responses import JSONResponse, Response

from memberhub.core.config import settings
from memberhub.core.exception_handlers import (
    app_exception_handler,
    global_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from memberhub.core.exceptions import AppException
from memberhub.core.limiter import install_rate_limiter, rate_limit_exempt
from memberhub.core.logger import configure_logging
from memberhub.core.redis_client import redis_wrapper
from memberhub.db.session import async_engine, db_healthcheck
from memberhub.middleware.request_id import RequestIDMiddleware
from memberhub.security_headers import configure_cors, install_security

configure_logging()
logger = logging.getLogger("memberhub")


# ─────────────────────────────────────────────────────────────────────────────
# 🔄 Lifespan: startup & shutdown
# ─────────────────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Connect Redis best-effort on startup; dispose DB engine and Redis on shutdown."""
    logger.info("✅ MemberHub API starting up")
    try:
        await redis_wrapper.connect()
        logger.info("🔌 Redis connected")
    except Exception:
        logger.exception("Redis connect failed (continuing in degraded mode)")

    try:
        yield
    finally:
        try:
            await async_engine.dispose()
            logger.info("🛑 Database engine disposed")
        except Exception:
            logger.exception("Error disposing DB engine")
        try:
            await redis_wrapper.close()
            logger.info("🛑 Redis connection closed")
        except Exception:
            logger.exception("Error closing Redis client")
        logger.info("🛑 MemberHub API shutting down")


# ─────────────────────────────────────────────────────────────────────────────
# 🏗️ App factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app() -> FastAPI:
    """Build the FastAPI app with middleware, exception handlers, routers and health checks."""
    enable_docs = settings.ENABLE_DOCS
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        docs_url="/docs" if enable_docs else None,
        redoc_url="/redoc" if enable_docs else None,
        openapi_url="/openapi.json" if enable_docs else None,
        lifespan=lifespan,
    )

    # ── Middlewares (order matters) ─────────────────────────────────────────
    app.add_middleware(RequestIDMiddleware)
    install_security(app)
    configure_cors(app)
    app.add_middleware(GZipMiddleware, minimum_size=1024)
    install_rate_limiter(app)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    @app.middleware("http")
    async def _strip_server_header(request: Request, call_next: Callable) -> Response:
        """Remove the `Server` header to avoid leaking implementation details."""
        response: Response = await call_next(request)
        if "server" in response.headers:
            del response.headers["server"]
        return response

    # ── Exception handlers ──────────────────────────────────────────────────
    app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, global_exception_handler)  # type: ignore[arg-type]

    # ── Routers (versioned API) ─────────────────────────────────────────────
    from memberhub.api.v1.routers import router as api_v1_router

    app.include_router(api_v1_router, prefix=settings.API_V1_STR)

    # ── Meta endpoints ──────────────────────────────────────────────────────
    @app.get("/healthz", tags=["meta"])
    @rate_limit_exempt()
    async def healthz() -> dict[str, bool]:
        """Liveness check; no external calls."""
        return {"ok": True}

    @app.get("/readyz", tags=["meta"])
    @rate_limit_exempt()
    async def readyz() -> dict[str, object]:
        """Readiness check (quick DB + Redis pings, best-effort)."""
        redis_ok = await redis_wrapper.is_connected()
        if not redis_ok:
            try:
                await redis_wrapper.connect()
                redis_ok = await redis_wrapper.is_connected()
            except Exception:
                redis_ok = False
        db_ok = await db_healthcheck()
        return {"ready": bool(db_ok and redis_ok), "checks": {"db": db_ok, "redis": redis_ok}}

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        return JSONResponse({"name": settings.PROJECT_NAME, "docs": app.docs_url or "", "version": settings.VERSION})

    return app


# ─────────────────────────────────────────────────────────────────────────────
# 🚀 Module-level ASGI app for Uvicorn/Gunicorn
# ─────────────────────────────────────────────────────────────────────────────
app = create_app()
__all__ = ["create_app", "app"]


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "memberhub.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("RELOAD", "1") == "1",
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
