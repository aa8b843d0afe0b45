from __future__ import annotations

"""
Central enum definitions used across MemberHub.

• All enums subclass `str, PyEnum` for JSON-friendly serialization.
• VALUE STRINGS are **stable** once deployed (rows store them verbatim).
"""

from enum import Enum as PyEnum


# ──────────────────────────────────────────────────────────────
# Accounts
# ──────────────────────────────────────────────────────────────
class MembershipTier(str, PyEnum):
    """Membership tiers, lowest to highest. Ranks live in `memberhub.services.tiers`."""
    FREE = "free"
    BASIC = "basic"
    PREMIUM = "premium"
    ALL_ACCESS = "allAccess"


class UserRole(str, PyEnum):
    MEMBER = "member"
    ADMIN = "admin"


# ──────────────────────────────────────────────────────────────
# Content
# ──────────────────────────────────────────────────────────────
class ContentType(str, PyEnum):
    VIDEO = "video"
    PHOTO = "photo"
    AUDIO = "audio"
    POLL = "poll"
    POST = "post"


class MediaKind(str, PyEnum):
    """Which signed media URL to produce for a Bunny video."""
    VIDEO = "video"
    THUMBNAIL = "thumbnail"


# ──────────────────────────────────────────────────────────────
# Storefront
# ──────────────────────────────────────────────────────────────
class ShippingMethod(str, PyEnum):
    STANDARD = "standard"
    EXPRESS = "express"
    OVERNIGHT = "overnight"


class ProductSort(str, PyEnum):
    POPULAR = "popular"
    NEWEST = "newest"
    PRICE_LOW = "price-low"
    PRICE_HIGH = "price-high"


class OrderStatus(str, PyEnum):
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, PyEnum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


__all__ = [
    "MembershipTier",
    "UserRole",
    "ContentType",
    "MediaKind",
    "ShippingMethod",
    "ProductSort",
    "OrderStatus",
    "PaymentStatus",
]
