"""
Engagement service: likes, poll votes and comments.

Members can only engage with items they can see: every write first checks the
viewer's tier against the item's required tier (403 otherwise).

Every write locks the content row first (`lock_content`), so like counts,
poll counts and the one-vote-per-user check of single-choice polls stay
consistent with the `ContentLike` / `PollVote` rows under concurrency.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from memberhub.core.exceptions import NotFoundException
from memberhub.db.models import Comment, Content, ContentLike, PollVote, User
from memberhub.schemas.content import CommentCreate, CommentOut
from memberhub.schemas.enums import ContentType
from memberhub.services.content_service import get_content, parse_content_id, required_tier_for
from memberhub.services.tiers import has_access

logger = logging.getLogger(__name__)


async def lock_content(db: AsyncSession, content: Content) -> None:
    """Reload `content` under `SELECT ... FOR UPDATE`.

    The row lock is held until commit/rollback, so writers on the same item
    run one at a time and each reads the counters and votes the previous one
    committed.
    """
    await db.refresh(content, with_for_update=True)


def ensure_can_engage(content: Content, user: User) -> None:
    if not has_access(user.tier, required_tier_for(content)):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"This content requires the {required_tier_for(content)} tier",
        )


# ─────────────────────────────────────────────────────────────
# ❤️ Likes
# ─────────────────────────────────────────────────────────────
async def toggle_like(db: AsyncSession, content: Content, user: User) -> Tuple[bool, int]:
    """Like if not yet liked, otherwise unlike. Returns (liked, like count)."""
    await lock_content(db, content)
    ensure_can_engage(content, user)

    existing = (
        await db.execute(
            select(ContentLike).where(ContentLike.content_id == content.id, ContentLike.user_id == user.id)
        )
    ).scalar_one_or_none()

    if existing is not None:
        await db.delete(existing)
        content.likes_count = max(0, (content.likes_count or 0) - 1)
        liked = False
    else:
        db.add(ContentLike(content_id=content.id, user_id=user.id))
        content.likes_count = (content.likes_count or 0) + 1
        liked = True

    try:
        await db.commit()
    except IntegrityError:
        # Concurrent like from the same user; the row already exists.
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Like already recorded")
    return liked, content.likes_count


# ─────────────────────────────────────────────────────────────
# 📊 Polls
# ─────────────────────────────────────────────────────────────
def apply_poll_vote(
    content: Content,
    option: str,
    *,
    previous_options: Iterable[str] = (),
    now: Optional[datetime] = None,
) -> Dict[str, int]:
    """Return the poll's counts after one vote for `option`.

    Raises 400 for non-polls, closed polls and unknown options; 409 when the
    user already voted (single-choice) or already picked this option.
    """
    if content.type != ContentType.POLL.value or content.poll_options is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Content is not a poll")

    current = now or datetime.now(timezone.utc)
    if content.poll_ends_at is not None and content.poll_ends_at <= current:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Poll has ended")

    if option not in content.poll_options:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid poll option")

    previous = set(previous_options)
    if option in previous or (previous and not content.poll_multiple_choice):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="You have already voted")

    counts = dict(content.poll_options)
    counts[option] = int(counts.get(option, 0)) + 1
    return counts


async def cast_poll_vote(db: AsyncSession, content: Content, user: User, option: str) -> Dict[str, int]:
    await lock_content(db, content)
    ensure_can_engage(content, user)

    previous = (
        await db.execute(
            select(PollVote.option).where(PollVote.content_id == content.id, PollVote.user_id == user.id)
        )
    ).scalars().all()

    counts = apply_poll_vote(content, option, previous_options=previous)
    # Reassign so the JSONB column is flagged dirty.
    content.poll_options = counts
    db.add(PollVote(content_id=content.id, user_id=user.id, option=option))
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="You have already voted")
    logger.debug("Poll vote content=%s user=%s option=%r", content.id, user.id, option)
    return counts


# ─────────────────────────────────────────────────────────────
# 💬 Comments
# ─────────────────────────────────────────────────────────────
def _comment_out(comment: Comment, username: Optional[str]) -> CommentOut:
    return CommentOut(
        id=str(comment.id),
        content_id=str(comment.content_id),
        user_id=str(comment.user_id),
        username=username,
        parent_id=str(comment.parent_id) if comment.parent_id else None,
        text=comment.text,
        created_at=comment.created_at,
    )


async def list_comments(db: AsyncSession, content_id: str) -> List[CommentOut]:
    """Oldest first so threads read top-down."""
    cid = parse_content_id(content_id)
    stmt = (
        select(Comment, User.username)
        .join(User, User.id == Comment.user_id)
        .where(Comment.content_id == cid)
        .order_by(Comment.created_at.asc())
    )
    return [_comment_out(comment, username) for comment, username in (await db.execute(stmt)).all()]


async def add_comment(db: AsyncSession, user: User, payload: CommentCreate) -> CommentOut:
    content = await get_content(db, payload.content_id)
    await lock_content(db, content)
    ensure_can_engage(content, user)

    parent_id = None
    if payload.parent_comment_id:
        parent = await db.get(Comment, parse_content_id(payload.parent_comment_id))
        if parent is None:
            raise NotFoundException("Parent comment")
        if parent.content_id != content.id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Parent comment belongs to other content")
        parent_id = parent.id

    comment = Comment(content_id=content.id, user_id=user.id, parent_id=parent_id, text=payload.text)
    db.add(comment)
    content.comments_count = (content.comments_count or 0) + 1
    await db.commit()
    await db.refresh(comment)
    return _comment_out(comment, user.username)


__all__ = [
    "lock_content",
    "ensure_can_engage",
    "toggle_like",
    "apply_poll_vote",
    "cast_poll_vote",
    "list_comments",
    "add_comment",
]
