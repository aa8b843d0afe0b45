"""
Admin • Bunny Stream videos
===========================

POST   /admin/videos/create-session  → create an empty Bunny video (client uploads)
GET    /admin/videos                 → list library videos with signed URLs
PUT    /admin/videos/{video_id}      → rename
DELETE /admin/videos/{video_id}      → delete
POST   /admin/videos/upload          → multipart upload proxied to Bunny
POST   /admin/videos/secure-url      → signed playback or thumbnail URL

Notes
-----
- Signed URLs are short-lived credentials; every response that carries one is
  `no-store`.
- Upload size is capped by `MAX_UPLOAD_BYTES` (413 beyond it). If the byte
  PUT fails, the freshly created Bunny video is deleted best-effort.
"""

import logging
from typing import Optional

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    Query,
    Request,
    Response,
    UploadFile,
    status,
)

from memberhub.core.config import settings
from memberhub.core.exceptions import BunnyAPIError
from memberhub.core.limiter import rate_limit
from memberhub.db.models import User
from memberhub.dependencies.admin import admin_user
from memberhub.schemas.auth import MessageResponse
from memberhub.schemas.enums import MediaKind
from memberhub.schemas.media import (
    CreateSessionRequest,
    CreateSessionResponse,
    RenameVideoRequest,
    SecureUrlRequest,
    SecureUrlResponse,
    VideoList,
    VideoOut,
)
from memberhub.security_headers import set_sensitive_cache
from memberhub.services.bunny_client import BunnyStreamClient, get_bunny_client
from memberhub.services.signing import playback_url, thumbnail_url

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Admin • Videos"])

UPLOAD_CHUNK_BYTES = 1024 * 1024


def _signed_video(video_id: str, title: Optional[str], bunny: BunnyStreamClient) -> VideoOut:
    play = playback_url(video_id)
    thumb = thumbnail_url(video_id)
    return VideoOut(
        video_id=video_id,
        title=title,
        embed_url=bunny.embed_url(video_id),
        playback_url=play.url,
        thumbnail_url=thumb.url,
        expires=play.expires,
    )


async def _read_limited(upload: UploadFile, limit: int) -> bytes:
    chunks = []
    size = 0
    while True:
        chunk = await upload.read(UPLOAD_CHUNK_BYTES)
        if not chunk:
            break
        size += len(chunk)
        if size > limit:
            raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="File too large")
        chunks.append(chunk)
    if size == 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty file")
    return b"".join(chunks)


# ─────────────────────────────────────────────────────────────
# 🎬 Library
# ─────────────────────────────────────────────────────────────
@router.post("/videos/create-session", response_model=CreateSessionResponse, summary="Create a Bunny video")
@rate_limit("20/minute")
async def create_session(
    payload: CreateSessionRequest,
    request: Request,
    response: Response,
    admin: User = Depends(admin_user),
    bunny: BunnyStreamClient = Depends(get_bunny_client),
) -> CreateSessionResponse:
    video = await bunny.create_video(payload.title)
    return CreateSessionResponse(
        video_id=video.guid,
        library_id=bunny.library_id,
        embed_url=bunny.embed_url(video.guid),
    )


@router.get("/videos", response_model=VideoList, summary="List library videos")
async def list_videos(
    response: Response,
    page: int = Query(1, ge=1),
    per_page: int = Query(100, ge=1, le=1000, alias="perPage"),
    admin: User = Depends(admin_user),
    bunny: BunnyStreamClient = Depends(get_bunny_client),
) -> VideoList:
    set_sensitive_cache(response)
    result = await bunny.list_videos(page=page, per_page=per_page)
    return VideoList(
        items=[_signed_video(v.guid, v.title, bunny) for v in result.items],
        total_items=result.total_items,
        page=result.page,
        per_page=result.per_page,
    )


@router.put("/videos/{video_id}", response_model=MessageResponse, summary="Rename a video")
async def rename_video(
    video_id: str,
    payload: RenameVideoRequest,
    admin: User = Depends(admin_user),
    bunny: BunnyStreamClient = Depends(get_bunny_client),
) -> MessageResponse:
    await bunny.update_video_title(video_id, payload.title)
    return MessageResponse(message="Video renamed")


@router.delete("/videos/{video_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a video")
async def delete_video(
    video_id: str,
    admin: User = Depends(admin_user),
    bunny: BunnyStreamClient = Depends(get_bunny_client),
) -> Response:
    await bunny.delete_video(video_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ─────────────────────────────────────────────────────────────
# ⬆️ Upload
# ─────────────────────────────────────────────────────────────
@router.post(
    "/videos/upload",
    response_model=VideoOut,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a video file through the API",
)
@rate_limit("5/minute")
async def upload_video(
    request: Request,
    response: Response,
    file: UploadFile = File(...),
    title: Optional[str] = Form(None),
    admin: User = Depends(admin_user),
    bunny: BunnyStreamClient = Depends(get_bunny_client),
) -> VideoOut:
    set_sensitive_cache(response)
    data = await _read_limited(file, settings.MAX_UPLOAD_BYTES)
    video_title = (title or "").strip() or file.filename or "Untitled"

    video = await bunny.create_video(video_title)
    try:
        await bunny.upload_video(video.guid, data)
    except BunnyAPIError:
        try:
            await bunny.delete_video(video.guid)
        except BunnyAPIError as e:
            logger.warning("Cleanup of Bunny video %s failed: %s", video.guid, e.message)
        raise

    logger.info("Admin %s uploaded video %s (%s bytes)", admin.id, video.guid, len(data))
    return _signed_video(video.guid, video_title, bunny)


# ─────────────────────────────────────────────────────────────
# 🔏 Signed URLs
# ─────────────────────────────────────────────────────────────
@router.post("/videos/secure-url", response_model=SecureUrlResponse, summary="Sign a playback or thumbnail URL")
async def secure_url(
    payload: SecureUrlRequest,
    response: Response,
    admin: User = Depends(admin_user),
) -> SecureUrlResponse:
    set_sensitive_cache(response)
    sign = thumbnail_url if payload.kind == MediaKind.THUMBNAIL else playback_url
    try:
        signed = sign(payload.video_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return SecureUrlResponse(url=signed.url, expires=signed.expires)


__all__ = ["router"]
