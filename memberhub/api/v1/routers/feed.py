"""
Feed API
========

GET  /feed   → pinned feed entries resolved to gated content
POST /feed   → (admin) pin a content item to the feed
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from memberhub.core.security import get_optional_user
from memberhub.db.models import User
from memberhub.db.session import get_async_db
from memberhub.dependencies.admin import admin_user
from memberhub.schemas.auth import MessageResponse
from memberhub.schemas.content import ContentList, FeedAddRequest
from memberhub.security_headers import set_sensitive_cache
from memberhub.services.content_service import add_to_feed, get_content, list_feed, render_many

router = APIRouter(tags=["Feed"])


@router.get("", response_model=ContentList, summary="Member feed")
async def get_feed(
    response: Response,
    limit: int = Query(50, ge=1, le=100),
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_async_db),
) -> ContentList:
    set_sensitive_cache(response)
    rows = await list_feed(db, limit=limit)
    return ContentList(items=await render_many(db, rows, viewer), total=len(rows))


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED, summary="Pin content to the feed")
async def add_feed_entry(
    payload: FeedAddRequest,
    admin: User = Depends(admin_user),
    db: AsyncSession = Depends(get_async_db),
) -> MessageResponse:
    content = await get_content(db, payload.content_id)
    await add_to_feed(db, content, admin)
    return MessageResponse(message="Added to feed")


__all__ = ["router"]
