from __future__ import annotations

"""
🛒 MemberHub — Storefront catalog and orders
===========================================

• Money columns are `Numeric(10, 2)` and surface as `Decimal`.
• A product's member discount is the pair (`discount_tier`,
  `discount_percentage`); both null means no discount.
• Orders snapshot item names and unit prices at checkout time.
"""

import uuid
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import Boolean, CheckConstraint, Float, ForeignKey, Index, Integer, Numeric, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from memberhub.db.base_class import Base, TimestampMixin, UUIDPKMixin
from memberhub.schemas.enums import OrderStatus, PaymentStatus, ShippingMethod


class Product(UUIDPKMixin, TimestampMixin, Base):
    __tablename__ = "products"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(64), nullable=False, default="merch")
    image_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    original_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)

    in_stock: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=text("true"))
    free_shipping: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=text("false"))
    shipping_info: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0, server_default=text("0"))
    reviews_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))

    discount_tier: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    discount_percentage: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        CheckConstraint("price >= 0", name="price_non_negative"),
        CheckConstraint(
            "(discount_percentage IS NULL) OR (discount_percentage BETWEEN 0 AND 100)",
            name="discount_percentage_range",
        ),
        Index("ix_products_category", "category"),
    )


class Order(UUIDPKMixin, TimestampMixin, Base):
    __tablename__ = "orders"

    order_number: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=OrderStatus.PROCESSING.value)
    payment_status: Mapped[str] = mapped_column(String(16), nullable=False, default=PaymentStatus.PENDING.value)
    shipping_method: Mapped[str] = mapped_column(String(16), nullable=False, default=ShippingMethod.STANDARD.value)
    shipping_address: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONB, nullable=True)

    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    subtotal: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    discount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    shipping: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    total: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    items: Mapped[List["OrderItem"]] = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    __table_args__ = (Index("ix_orders_user_created", "user_id", "created_at"),)


class OrderItem(UUIDPKMixin, Base):
    __tablename__ = "order_items"

    order_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False
    )
    product_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("products.id", ondelete="SET NULL"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    line_total: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    order: Mapped["Order"] = relationship("Order", back_populates="items")

    __table_args__ = (CheckConstraint("quantity >= 1", name="quantity_positive"),)


__all__ = ["Product", "Order", "OrderItem"]
