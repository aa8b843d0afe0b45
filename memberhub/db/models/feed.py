from __future__ import annotations

"""📰 Content pinned to the members feed (one entry per content item)."""

import uuid
from typing import Optional

from sqlalchemy import ForeignKey, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from memberhub.db.base_class import Base, TimestampMixin, UUIDPKMixin


class FeedEntry(UUIDPKMixin, TimestampMixin, Base):
    __tablename__ = "feed_entries"

    content_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("content.id", ondelete="CASCADE"), nullable=False
    )
    added_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    __table_args__ = (
        UniqueConstraint("content_id", name="uq_feed_entries_content_id"),
        Index("ix_feed_entries_created_at", "created_at"),
    )


__all__ = ["FeedEntry"]
