"""
Content API
===========

GET  /content            → newest-first catalog, filtered, rendered per viewer
GET  /content/popular    → ordered by likes + comments
GET  /content/{id}       → single item through the access gate
POST /content/like       → toggle the caller's like
POST /content/pollVote   → vote on a poll option

Listing is open to anonymous callers (they see free items unlocked and
everything else locked). Responses that may carry signed media URLs are
marked `no-store`.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from memberhub.core.limiter import rate_limit
from memberhub.core.security import get_current_user, get_optional_user
from memberhub.db.models import User
from memberhub.db.session import get_async_db
from memberhub.schemas.content import (
    ContentList,
    ContentOut,
    LikeRequest,
    LikeResponse,
    PollVoteRequest,
    PollVoteResponse,
)
from memberhub.schemas.enums import ContentType, MembershipTier
from memberhub.security_headers import set_sensitive_cache
from memberhub.services.content_service import (
    get_content,
    list_content,
    popular_content,
    render_many,
)
from memberhub.services.engagement import cast_poll_vote, toggle_like

router = APIRouter(tags=["Content"])


# ─────────────────────────────────────────────────────────────
# 📖 Reads
# ─────────────────────────────────────────────────────────────
@router.get("", response_model=ContentList, summary="List content for the caller")
async def list_content_route(
    response: Response,
    type: Optional[ContentType] = Query(None),
    tier: Optional[MembershipTier] = Query(None),
    category: Optional[str] = Query(None, max_length=64),
    q: Optional[str] = Query(None, max_length=200),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_async_db),
) -> ContentList:
    set_sensitive_cache(response)
    rows, total = await list_content(
        db, type=type, tier=tier, category=category, q=q, limit=limit, offset=offset
    )
    return ContentList(items=await render_many(db, rows, viewer), total=total)


@router.get("/popular", response_model=ContentList, summary="Most engaged content")
async def popular_content_route(
    response: Response,
    limit: int = Query(10, ge=1, le=100),
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_async_db),
) -> ContentList:
    set_sensitive_cache(response)
    rows = await popular_content(db, limit=limit)
    return ContentList(items=await render_many(db, rows, viewer), total=len(rows))


@router.get("/{content_id}", response_model=ContentOut, summary="Single content item")
async def get_content_route(
    content_id: str,
    response: Response,
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_async_db),
) -> ContentOut:
    set_sensitive_cache(response)
    content = await get_content(db, content_id)
    (item,) = await render_many(db, [content], viewer)
    return item


# ─────────────────────────────────────────────────────────────
# ❤️ Engagement
# ─────────────────────────────────────────────────────────────
@router.post("/like", response_model=LikeResponse, summary="Toggle like")
@rate_limit("60/minute")
async def like_route(
    payload: LikeRequest,
    request: Request,
    response: Response,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
) -> LikeResponse:
    content = await get_content(db, payload.content_id)
    liked, likes = await toggle_like(db, content, current_user)
    return LikeResponse(liked=liked, likes=likes)


@router.post("/pollVote", response_model=PollVoteResponse, summary="Vote on a poll")
@rate_limit("30/minute")
async def poll_vote_route(
    payload: PollVoteRequest,
    request: Request,
    response: Response,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
) -> PollVoteResponse:
    content = await get_content(db, payload.content_id)
    counts = await cast_poll_vote(db, content, current_user, payload.option)
    return PollVoteResponse(poll_options=counts)


__all__ = ["router"]
