"""
🧭 MemberHub • API v1 Router Aggregator
======================================

Exports the combined `router` and a `build_v1_router()` factory.

Layout
------
- `/auth`     signup, signin, signout, password and profile changes
- `/user`     current member, tier and account updates
- `/content`  catalog, popular, single item, likes, poll votes
- `/comments` threaded comments
- `/feed`     pinned feed (admin can pin)
- `/stats`    public counters
- `/store`    catalog, cart quote, checkout, orders
- `/admin`    content manager and Bunny video library

Auth and rate limits live in the child routers.

    from memberhub.api.v1.routers import router as v1_router
    app.include_router(v1_router, prefix="/api/v1")
"""

from fastapi import APIRouter

from .admin import router as admin_router
from .auth import router as auth_router
from .comments import router as comments_router
from .content import router as content_router
from .feed import router as feed_router
from .stats import router as stats_router
from .store import router as store_router
from .user import router as user_router


def build_v1_router() -> APIRouter:
    """Compose the v1 surface into a single `APIRouter` with stable prefixes."""
    r = APIRouter()
    r.include_router(auth_router, prefix="/auth")
    r.include_router(user_router, prefix="/user")
    r.include_router(content_router, prefix="/content")
    r.include_router(comments_router, prefix="/comments")
    r.include_router(feed_router, prefix="/feed")
    r.include_router(stats_router, prefix="/stats")
    r.include_router(store_router, prefix="/store")
    r.include_router(admin_router, prefix="/admin")
    return r


router = build_v1_router()

__all__ = ["router", "build_v1_router"]
