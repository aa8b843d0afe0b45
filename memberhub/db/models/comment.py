from __future__ import annotations

"""💬 Threaded comments on content (`parent_id` points at another comment)."""

import uuid
from typing import Optional

from sqlalchemy import CheckConstraint, ForeignKey, Index, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from memberhub.db.base_class import Base, TimestampMixin, UUIDPKMixin

MAX_COMMENT_LENGTH = 1000


class Comment(UUIDPKMixin, TimestampMixin, Base):
    __tablename__ = "comments"

    content_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("content.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    parent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("comments.id", ondelete="CASCADE"), nullable=True
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)

    __table_args__ = (
        CheckConstraint(f"length(text) BETWEEN 1 AND {MAX_COMMENT_LENGTH}", name="text_length"),
        Index("ix_comments_content_created", "content_id", "created_at"),
    )


__all__ = ["Comment", "MAX_COMMENT_LENGTH"]
