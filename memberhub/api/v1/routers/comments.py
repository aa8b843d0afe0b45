"""
Comments API
============

GET  /comments?contentId=   → thread for one item, oldest first
POST /comments              → add a comment (optionally a reply)
"""

from typing import List

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from memberhub.core.limiter import rate_limit
from memberhub.core.security import get_current_user
from memberhub.db.models import User
from memberhub.db.session import get_async_db
from memberhub.schemas.content import CommentCreate, CommentOut
from memberhub.services.engagement import add_comment, list_comments

router = APIRouter(tags=["Comments"])


@router.get("", response_model=List[CommentOut], summary="Comments for a content item")
async def list_comments_route(
    content_id: str = Query(..., alias="contentId"),
    db: AsyncSession = Depends(get_async_db),
) -> List[CommentOut]:
    return await list_comments(db, content_id)


@router.post("", response_model=CommentOut, status_code=status.HTTP_201_CREATED, summary="Add a comment")
@rate_limit("20/minute")
async def add_comment_route(
    payload: CommentCreate,
    request: Request,
    response: Response,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
) -> CommentOut:
    return await add_comment(db, current_user, payload)


__all__ = ["router"]
