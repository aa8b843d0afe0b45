from __future__ import annotations

"""
👤 MemberHub — User (accounts, membership tier, purchases)
=========================================================

• **Case-insensitive uniqueness** for email and username (functional indexes).
• `tier` stores a `MembershipTier` value string. Reads go through
  `memberhub.services.tiers.tier_rank`, so unknown values written by older
  clients resolve to rank 0 instead of failing.
• `purchased_product_ids` is a JSONB list of product id strings recorded by
  the (mocked) checkout.
"""

from typing import List, Optional

from sqlalchemy import Boolean, CheckConstraint, Index, String, func, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from memberhub.db.base_class import Base, TimestampMixin, UUIDPKMixin
from memberhub.schemas.enums import MembershipTier, UserRole


class User(UUIDPKMixin, TimestampMixin, Base):
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(320), nullable=False)
    username: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    full_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    hashed_password: Mapped[str] = mapped_column(String, nullable=False)

    role: Mapped[str] = mapped_column(
        String(16), nullable=False, default=UserRole.MEMBER.value, server_default=text("'member'")
    )
    tier: Mapped[str] = mapped_column(
        String(32), nullable=False, default=MembershipTier.BASIC.value, server_default=text("'basic'")
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=text("true"))

    purchased_product_ids: Mapped[List[str]] = mapped_column(
        JSONB, nullable=False, default=list, server_default=text("'[]'::jsonb")
    )

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        CheckConstraint("length(btrim(email)) > 0", name="email_not_blank"),
        CheckConstraint("(username IS NULL) OR (length(btrim(username)) > 0)", name="username_not_blank"),
        Index("uq_users_email_lower", func.lower(email), unique=True),
        Index(
            "uq_users_username_lower",
            func.lower(username),
            unique=True,
            postgresql_where=text("username IS NOT NULL"),
        ),
        Index("ix_users_tier", "tier"),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


__all__ = ["User"]
