# memberhub/db/models/__init__.py
"""
MemberHub — ORM model registry
==============================

Importing this package registers every table on `Base.metadata`.
"""

from memberhub.db.base_class import Base

# Accounts
from .user import User

# Content & engagement
from .content import Content, ContentLike, PollVote
from .comment import Comment
from .feed import FeedEntry

# Storefront
from .store import Order, OrderItem, Product

__all__ = [
    "Base",
    "User",
    "Content",
    "ContentLike",
    "PollVote",
    "Comment",
    "FeedEntry",
    "Product",
    "Order",
    "OrderItem",
]
