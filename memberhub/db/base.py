# memberhub/db/base.py
"""
MemberHub — SQLAlchemy Base registry
====================================

Import all ORM models so their tables are registered on `Base.metadata`
(used by Alembic). Keep this file import-only.
"""

from memberhub.db.base_class import Base
from memberhub.db.models import (  # noqa: F401
    Comment,
    Content,
    ContentLike,
    FeedEntry,
    Order,
    OrderItem,
    PollVote,
    Product,
    User,
)

__all__ = ["Base"]
