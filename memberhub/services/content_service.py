"""
Content service
===============

Catalog reads/writes for feed items and the per-viewer rendering that runs
every item through the access gate.

Key behaviors
-------------
- **Gating**: `is_locked=False` items require rank 0; locked items require
  their `tier`. Anonymous viewers rank 0.
- **Fresh decisions**: `render_content` signs URLs on each call; nothing about
  a viewer's access is cached.
- **Bunny sync**: renaming a video item renames the Bunny video; deleting a
  video item deletes the Bunny video best-effort (the DB delete proceeds).
"""

from __future__ import annotations

import logging
import uuid
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from sqlalchemy import Text, cast, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fastapi import HTTPException, status

from memberhub.core.config import settings
from memberhub.core.exceptions import BunnyAPIError, NotFoundException
from memberhub.db.models import Content, ContentLike, FeedEntry, User
from memberhub.schemas.content import ContentCreate, ContentOut, ContentUpdate, StatsOut
from memberhub.schemas.enums import ContentType, MembershipTier
from memberhub.services.access_gate import Granted, Signer, evaluate_access
from memberhub.services.bunny_client import BunnyStreamClient
from memberhub.services.signing import check_resource_id

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


# ─────────────────────────────────────────────────────────────
# 🔐 Gating & rendering
# ─────────────────────────────────────────────────────────────
def required_tier_for(content: Content) -> str:
    """Tier label a viewer needs for this item (`free` when unlocked)."""
    if not content.is_locked:
        return MembershipTier.FREE.value
    return content.tier


def viewer_tier(viewer: Optional[User]) -> Optional[str]:
    return viewer.tier if viewer is not None else None


def render_content(
    content: Content,
    viewer: Optional[User],
    *,
    liked: bool = False,
    gate_thumbnail: Optional[bool] = None,
    signer: Optional[Signer] = None,
) -> ContentOut:
    """Render one item for one viewer; URLs are present only when granted.

    A stored `video_id` the signer rejects renders without media URLs.
    """
    media_ref = content.video_id
    if media_ref:
        try:
            check_resource_id(media_ref)
        except ValueError:
            logger.warning("Content %s has an unsignable video_id %r; rendering without media", content.id, media_ref)
            media_ref = None

    decision = evaluate_access(
        viewer_tier(viewer),
        required_tier_for(content),
        media_ref,
        gate_thumbnail=settings.GATE_LOCKED_THUMBNAILS if gate_thumbnail is None else gate_thumbnail,
        signer=signer,
    )
    granted = isinstance(decision, Granted)

    return ContentOut(
        id=str(content.id),
        title=content.title,
        description=content.description,
        type=content.type,
        category=content.category,
        tags=list(content.tags or []),
        tier=content.tier,
        is_locked=not granted,
        required_tier=None if granted else decision.required_tier,
        video_id=content.video_id if granted else None,
        playback_url=decision.playback_url if granted else None,
        thumbnail_url=decision.thumbnail_url,
        media_url=content.media_url if granted else None,
        url_expires=decision.expires if granted else None,
        poll_options=dict(content.poll_options) if content.poll_options is not None else None,
        poll_multiple_choice=bool(content.poll_multiple_choice),
        poll_ends_at=content.poll_ends_at,
        likes=content.likes_count or 0,
        comments=content.comments_count or 0,
        liked_by_me=liked,
        created_at=content.created_at,
    )


# ─────────────────────────────────────────────────────────────
# 📖 Reads
# ─────────────────────────────────────────────────────────────
def parse_content_id(raw: str) -> uuid.UUID:
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        raise NotFoundException("Content")


async def get_content(db: AsyncSession, content_id: str) -> Content:
    content = await db.get(Content, parse_content_id(content_id))
    if content is None:
        raise NotFoundException("Content")
    return content


async def list_content(
    db: AsyncSession,
    *,
    type: Optional[ContentType] = None,
    tier: Optional[MembershipTier] = None,
    category: Optional[str] = None,
    q: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
) -> Tuple[List[Content], int]:
    """Newest first with optional filters; `q` matches title, description and tags."""
    stmt = select(Content)
    if type is not None:
        stmt = stmt.where(Content.type == type.value)
    if tier is not None:
        stmt = stmt.where(Content.tier == tier.value)
    if category:
        stmt = stmt.where(func.lower(Content.category) == category.strip().lower())
    if q:
        pattern = f"%{q.strip()}%"
        stmt = stmt.where(
            or_(
                Content.title.ilike(pattern),
                Content.description.ilike(pattern),
                cast(Content.tags, Text).ilike(pattern),
            )
        )

    total = (await db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()
    rows = (
        await db.execute(
            stmt.order_by(Content.created_at.desc()).limit(min(limit, MAX_PAGE_SIZE)).offset(max(offset, 0))
        )
    ).scalars().all()
    return list(rows), int(total)


async def popular_content(db: AsyncSession, *, limit: int = 10) -> List[Content]:
    stmt = (
        select(Content)
        .order_by((Content.likes_count + Content.comments_count).desc(), Content.created_at.desc())
        .limit(min(limit, MAX_PAGE_SIZE))
    )
    return list((await db.execute(stmt)).scalars().all())


async def liked_content_ids(db: AsyncSession, viewer: Optional[User], content_ids: Iterable[uuid.UUID]) -> Set[uuid.UUID]:
    ids = list(content_ids)
    if viewer is None or not ids:
        return set()
    stmt = select(ContentLike.content_id).where(
        ContentLike.user_id == viewer.id, ContentLike.content_id.in_(ids)
    )
    return set((await db.execute(stmt)).scalars().all())


async def render_many(db: AsyncSession, rows: Sequence[Content], viewer: Optional[User]) -> List[ContentOut]:
    liked = await liked_content_ids(db, viewer, [c.id for c in rows])
    return [render_content(c, viewer, liked=c.id in liked) for c in rows]


# ─────────────────────────────────────────────────────────────
# 📰 Feed & stats
# ─────────────────────────────────────────────────────────────
async def list_feed(db: AsyncSession, *, limit: int = 50) -> List[Content]:
    stmt = (
        select(Content)
        .join(FeedEntry, FeedEntry.content_id == Content.id)
        .order_by(FeedEntry.created_at.desc())
        .limit(min(limit, MAX_PAGE_SIZE))
    )
    return list((await db.execute(stmt)).scalars().all())


async def add_to_feed(db: AsyncSession, content: Content, admin: User) -> FeedEntry:
    entry = FeedEntry(content_id=content.id, added_by=admin.id)
    db.add(entry)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Content is already in the feed")
    await db.refresh(entry)
    return entry


async def site_stats(db: AsyncSession) -> StatsOut:
    """Subscribers are users above the basic tier."""
    subscribers = (
        await db.execute(
            select(func.count(User.id)).where(
                User.tier.in_([MembershipTier.PREMIUM.value, MembershipTier.ALL_ACCESS.value])
            )
        )
    ).scalar_one()
    posts = (await db.execute(select(func.count(Content.id)))).scalar_one()
    return StatsOut(subscribers=int(subscribers), posts=int(posts))


# ─────────────────────────────────────────────────────────────
# ✏️ Admin writes
# ─────────────────────────────────────────────────────────────
async def create_content(db: AsyncSession, payload: ContentCreate, admin: User) -> Content:
    if payload.type == ContentType.POLL and not payload.poll_options:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Polls need at least one option")
    if payload.type == ContentType.VIDEO and not payload.video_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Video content needs a video_id")

    content = Content(
        title=payload.title,
        description=payload.description,
        type=payload.type.value,
        category=payload.category,
        tags=list(payload.tags),
        tier=payload.tier.value,
        is_locked=payload.is_locked,
        video_id=payload.video_id,
        media_url=payload.media_url,
        poll_options={opt: 0 for opt in payload.poll_options} if payload.type == ContentType.POLL else None,
        poll_multiple_choice=payload.poll_multiple_choice,
        poll_ends_at=payload.poll_ends_at,
        likes_count=0,
        comments_count=0,
        created_by=admin.id,
    )
    db.add(content)
    await db.flush()
    if payload.add_to_feed:
        db.add(FeedEntry(content_id=content.id, added_by=admin.id))
    await db.commit()
    await db.refresh(content)
    logger.info("Content %s created by %s", content.id, admin.id)
    return content


async def update_content(
    db: AsyncSession,
    content: Content,
    payload: ContentUpdate,
    bunny: BunnyStreamClient,
) -> Content:
    changes = payload.model_dump(exclude_unset=True)
    title_changed = "title" in changes and changes["title"] != content.title

    for field, value in changes.items():
        if field == "tier" and value is not None:
            value = value.value
        setattr(content, field, value)

    if title_changed and content.type == ContentType.VIDEO.value and content.video_id:
        await bunny.update_video_title(content.video_id, content.title)

    await db.commit()
    await db.refresh(content)
    return content


async def delete_content(db: AsyncSession, content: Content, bunny: BunnyStreamClient) -> None:
    if content.type == ContentType.VIDEO.value and content.video_id:
        try:
            await bunny.delete_video(content.video_id)
        except BunnyAPIError as e:
            logger.warning("Bunny delete failed for %s (continuing): %s", content.video_id, e.message)

    await db.delete(content)
    await db.commit()
    logger.info("Content %s deleted", content.id)


__all__ = [
    "required_tier_for",
    "render_content",
    "render_many",
    "get_content",
    "list_content",
    "popular_content",
    "liked_content_ids",
    "list_feed",
    "add_to_feed",
    "site_stats",
    "create_content",
    "update_content",
    "delete_content",
]
