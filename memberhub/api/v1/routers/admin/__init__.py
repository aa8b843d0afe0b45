"""
Admin router package (v1)
=========================

Aggregates the admin domains (content manager, Bunny videos) into one
`router`. Mount under `/admin`; each domain router enforces `admin_user`.
"""

from typing import Any, Dict

from fastapi import APIRouter, status

from .content import router as content_router
from .videos import router as videos_router

COMMON_ADMIN_RESPONSES: Dict[int, Dict[str, Any]] = {
    status.HTTP_401_UNAUTHORIZED: {"description": "Unauthorized"},
    status.HTTP_403_FORBIDDEN: {"description": "Forbidden (admin only)"},
    status.HTTP_429_TOO_MANY_REQUESTS: {"description": "Rate limit exceeded"},
}

router = APIRouter()
router.include_router(content_router, responses=COMMON_ADMIN_RESPONSES)
router.include_router(videos_router, responses=COMMON_ADMIN_RESPONSES)

__all__ = ["router", "content_router", "videos_router"]
