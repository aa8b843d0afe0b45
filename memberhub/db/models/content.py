from __future__ import annotations

"""
🎬 MemberHub — Content, likes, poll votes
========================================

A `Content` row is one feed item: video, photo, audio, poll or text post.

Gating columns
--------------
• `is_locked`: when false the item is public (required rank 0) regardless of
  `tier`.
• `tier`: the minimum `MembershipTier` label needed when locked.
• `video_id`: Bunny.net Stream video GUID; the media reference that the
  access gate signs playback/thumbnail URLs for.
• `media_url`: direct asset URL for photo/audio items; only exposed to
  viewers the gate grants.

Poll state lives in `poll_options` (option → count). One `PollVote` row per
(user, option) keeps single-choice polls to one vote per user.
"""

import uuid
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from memberhub.db.base_class import Base, TimestampMixin, UUIDPKMixin
from memberhub.schemas.enums import ContentType, MembershipTier


class Content(UUIDPKMixin, TimestampMixin, Base):
    __tablename__ = "content"

    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(String(16), nullable=False, default=ContentType.POST.value)
    category: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    tags: Mapped[List[str]] = mapped_column(JSONB, nullable=False, default=list, server_default=text("'[]'::jsonb"))

    tier: Mapped[str] = mapped_column(
        String(32), nullable=False, default=MembershipTier.BASIC.value, server_default=text("'basic'")
    )
    is_locked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=text("true"))

    video_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    media_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    poll_options: Mapped[Optional[Dict[str, int]]] = mapped_column(JSONB, nullable=True)
    poll_multiple_choice: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    poll_ends_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    likes_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))
    comments_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))

    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        CheckConstraint("likes_count >= 0", name="likes_non_negative"),
        CheckConstraint("comments_count >= 0", name="comments_non_negative"),
        Index("ix_content_created_at", "created_at"),
        Index("ix_content_type_tier", "type", "tier"),
        Index("ix_content_video_id", "video_id"),
    )


class ContentLike(UUIDPKMixin, TimestampMixin, Base):
    __tablename__ = "content_likes"

    content_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("content.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (UniqueConstraint("content_id", "user_id", name="uq_content_likes_content_user"),)


class PollVote(UUIDPKMixin, TimestampMixin, Base):
    __tablename__ = "poll_votes"

    content_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("content.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    option: Mapped[str] = mapped_column(String(200), nullable=False)

    __table_args__ = (
        UniqueConstraint("content_id", "user_id", "option", name="uq_poll_votes_content_user_option"),
        Index("ix_poll_votes_content_user", "content_id", "user_id"),
    )


__all__ = ["Content", "ContentLike", "PollVote"]
