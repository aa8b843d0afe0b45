"""
Admin • Content manager
=======================

POST   /admin/content          → create a post / video / photo / audio / poll
PATCH  /admin/content/{id}     → partial update (video title synced to Bunny)
DELETE /admin/content/{id}     → delete (Bunny video removed best-effort)

All routes require an admin (`role == admin` or email in `ADMIN_EMAILS`).
"""

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from memberhub.core.limiter import rate_limit
from memberhub.db.models import User
from memberhub.db.session import get_async_db
from memberhub.dependencies.admin import admin_user
from memberhub.schemas.content import ContentCreate, ContentOut, ContentUpdate
from memberhub.security_headers import set_sensitive_cache
from memberhub.services.bunny_client import BunnyStreamClient, get_bunny_client
from memberhub.services.content_service import (
    create_content,
    delete_content,
    get_content,
    render_content,
    update_content,
)

router = APIRouter(tags=["Admin • Content"])


@router.post("/content", response_model=ContentOut, status_code=status.HTTP_201_CREATED, summary="Create content")
@rate_limit("30/minute")
async def create_content_route(
    payload: ContentCreate,
    request: Request,
    response: Response,
    admin: User = Depends(admin_user),
    db: AsyncSession = Depends(get_async_db),
) -> ContentOut:
    set_sensitive_cache(response)
    content = await create_content(db, payload, admin)
    return render_content(content, admin)


@router.patch("/content/{content_id}", response_model=ContentOut, summary="Update content")
@rate_limit("30/minute")
async def update_content_route(
    content_id: str,
    payload: ContentUpdate,
    request: Request,
    response: Response,
    admin: User = Depends(admin_user),
    db: AsyncSession = Depends(get_async_db),
    bunny: BunnyStreamClient = Depends(get_bunny_client),
) -> ContentOut:
    set_sensitive_cache(response)
    content = await get_content(db, content_id)
    content = await update_content(db, content, payload, bunny)
    return render_content(content, admin)


@router.delete("/content/{content_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete content")
async def delete_content_route(
    content_id: str,
    admin: User = Depends(admin_user),
    db: AsyncSession = Depends(get_async_db),
    bunny: BunnyStreamClient = Depends(get_bunny_client),
) -> Response:
    content = await get_content(db, content_id)
    await delete_content(db, content, bunny)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
