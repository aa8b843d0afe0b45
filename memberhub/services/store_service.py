"""
Storefront service (demo checkout)
==================================

Pricing is done server-side with `Decimal`; client-sent prices are never
trusted.

Rules
-----
- Member discount applies when the buyer's tier rank ≥ the discount tier rank.
- Cart lines with quantity < 1 are dropped; an empty cart is a 400.
- Unknown or out-of-stock products are a 400.
- Shipping is charged by method and waived when every line ships free.
- Payment is mocked: checkout records the order as paid.
"""

from __future__ import annotations

import logging
import secrets
import string
import uuid
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from fastapi import HTTPException, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from memberhub.core.config import settings
from memberhub.db.models import Order, OrderItem, Product, User
from memberhub.schemas.enums import OrderStatus, PaymentStatus, ProductSort, ShippingMethod
from memberhub.schemas.store import (
    CartItemIn,
    CartQuote,
    CartQuoteRequest,
    CheckoutRequest,
    MemberDiscount,
    OrderItemOut,
    OrderOut,
    ProductOut,
    QuoteLine,
)
from memberhub.services.tiers import has_access

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ORDER_NUMBER_ALPHABET = string.ascii_uppercase + string.digits


def _money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


# ─────────────────────────────────────────────────────────────
# 🏷️ Pricing (pure)
# ─────────────────────────────────────────────────────────────
def discount_percentage_for(product: Product, user_tier: Optional[str]) -> int:
    """Member discount percentage the buyer qualifies for (0 when none)."""
    if not product.discount_tier or not product.discount_percentage or not user_tier:
        return 0
    if not has_access(user_tier, product.discount_tier):
        return 0
    return int(product.discount_percentage)


def member_price(product: Product, user_tier: Optional[str]) -> Decimal:
    pct = discount_percentage_for(product, user_tier)
    return _money(Decimal(product.price) * (Decimal(100) - pct) / Decimal(100))


def price_cart(
    items: Sequence[CartItemIn],
    products: Mapping[str, Product],
    *,
    user_tier: Optional[str],
    shipping_method: ShippingMethod,
    shipping_rates: Optional[Mapping[str, Decimal]] = None,
    currency: Optional[str] = None,
) -> CartQuote:
    """Price a cart. `products` maps product id strings to rows."""
    rates = shipping_rates or settings.shipping_rates

    lines: List[QuoteLine] = []
    subtotal = Decimal("0.00")
    discount = Decimal("0.00")
    all_free_shipping = True

    for item in items:
        if item.quantity < 1:
            continue
        product = products.get(item.product_id)
        if product is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown product {item.product_id}")
        if not product.in_stock:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{product.name} is out of stock")

        pct = discount_percentage_for(product, user_tier)
        base = _money(Decimal(product.price) * item.quantity)
        line_discount = _money(base * pct / Decimal(100))

        subtotal += base
        discount += line_discount
        all_free_shipping = all_free_shipping and bool(product.free_shipping)
        lines.append(
            QuoteLine(
                product_id=item.product_id,
                name=product.name,
                quantity=item.quantity,
                unit_price=_money(Decimal(product.price)),
                discount_percentage=pct,
                line_total=base - line_discount,
            )
        )

    if not lines:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cart is empty")

    shipping = Decimal("0.00") if all_free_shipping else _money(Decimal(rates[shipping_method.value]))
    return CartQuote(
        lines=lines,
        subtotal=_money(subtotal),
        discount=_money(discount),
        shipping=shipping,
        total=_money(subtotal - discount + shipping),
        currency=currency or settings.STORE_CURRENCY,
        shipping_method=shipping_method,
    )


def generate_order_number() -> str:
    return "ORD-" + "".join(secrets.choice(ORDER_NUMBER_ALPHABET) for _ in range(9))


# ─────────────────────────────────────────────────────────────
# 📦 Rendering
# ─────────────────────────────────────────────────────────────
def product_out(product: Product, user_tier: Optional[str]) -> ProductOut:
    discount = None
    if product.discount_tier and product.discount_percentage:
        discount = MemberDiscount(tier=product.discount_tier, percentage=int(product.discount_percentage))
    eligible = discount_percentage_for(product, user_tier) > 0
    return ProductOut(
        id=str(product.id),
        name=product.name,
        description=product.description,
        category=product.category,
        image_url=product.image_url,
        price=_money(Decimal(product.price)),
        original_price=_money(Decimal(product.original_price)) if product.original_price is not None else None,
        member_price=member_price(product, user_tier) if eligible else None,
        in_stock=product.in_stock,
        free_shipping=product.free_shipping,
        shipping_info=product.shipping_info,
        rating=product.rating or 0.0,
        reviews=product.reviews_count or 0,
        member_discount=discount,
    )


def order_out(order: Order) -> OrderOut:
    return OrderOut(
        id=str(order.id),
        order_number=order.order_number,
        status=order.status,
        payment_status=order.payment_status,
        shipping_method=order.shipping_method,
        shipping_address=order.shipping_address,
        currency=order.currency,
        subtotal=order.subtotal,
        discount=order.discount,
        shipping=order.shipping,
        total=order.total,
        items=[
            OrderItemOut(
                product_id=str(i.product_id) if i.product_id else None,
                name=i.name,
                unit_price=i.unit_price,
                quantity=i.quantity,
                line_total=i.line_total,
            )
            for i in order.items
        ],
        created_at=order.created_at,
    )


# ─────────────────────────────────────────────────────────────
# 🗄️ DB operations
# ─────────────────────────────────────────────────────────────
async def list_products(
    db: AsyncSession,
    *,
    search: Optional[str] = None,
    category: Optional[str] = None,
    min_price: Optional[Decimal] = None,
    max_price: Optional[Decimal] = None,
    sort: ProductSort = ProductSort.POPULAR,
) -> List[Product]:
    stmt = select(Product)
    if search:
        pattern = f"%{search.strip()}%"
        stmt = stmt.where(or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))
    if category and category != "all":
        stmt = stmt.where(Product.category == category)
    if min_price is not None:
        stmt = stmt.where(Product.price >= min_price)
    if max_price is not None:
        stmt = stmt.where(Product.price <= max_price)

    order_by = {
        ProductSort.POPULAR: (Product.reviews_count.desc(), Product.rating.desc()),
        ProductSort.NEWEST: (Product.created_at.desc(),),
        ProductSort.PRICE_LOW: (Product.price.asc(),),
        ProductSort.PRICE_HIGH: (Product.price.desc(),),
    }[sort]
    return list((await db.execute(stmt.order_by(*order_by))).scalars().all())


async def load_cart_products(db: AsyncSession, items: Sequence[CartItemIn]) -> Dict[str, Product]:
    ids: List[uuid.UUID] = []
    for item in items:
        try:
            ids.append(uuid.UUID(item.product_id))
        except ValueError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown product {item.product_id}")
    if not ids:
        return {}
    rows = (await db.execute(select(Product).where(Product.id.in_(ids)))).scalars().all()
    return {str(p.id): p for p in rows}


async def quote_cart(db: AsyncSession, user: User, req: CartQuoteRequest) -> CartQuote:
    products = await load_cart_products(db, req.items)
    return price_cart(req.items, products, user_tier=user.tier, shipping_method=req.shipping_method)


async def checkout(db: AsyncSession, user: User, req: CheckoutRequest) -> Tuple[Order, CartQuote]:
    """Re-price server-side and record a paid order (payment is mocked)."""
    quote = await quote_cart(db, user, req)

    order = Order(
        order_number=generate_order_number(),
        user_id=user.id,
        status=OrderStatus.PROCESSING.value,
        payment_status=PaymentStatus.COMPLETED.value,
        shipping_method=req.shipping_method.value,
        shipping_address=req.shipping_address.model_dump(),
        currency=quote.currency,
        subtotal=quote.subtotal,
        discount=quote.discount,
        shipping=quote.shipping,
        total=quote.total,
        items=[
            OrderItem(
                product_id=uuid.UUID(line.product_id),
                name=line.name,
                unit_price=line.unit_price,
                quantity=line.quantity,
                line_total=line.line_total,
            )
            for line in quote.lines
        ],
    )
    db.add(order)

    purchased = list(user.purchased_product_ids or [])
    for line in quote.lines:
        if line.product_id not in purchased:
            purchased.append(line.product_id)
    user.purchased_product_ids = purchased

    await db.commit()
    await db.refresh(order)
    logger.info("Order %s placed by %s total=%s %s", order.order_number, user.id, quote.total, quote.currency)
    return order, quote


async def list_orders(db: AsyncSession, user: User) -> List[Order]:
    stmt = select(Order).where(Order.user_id == user.id).order_by(Order.created_at.desc())
    return list((await db.execute(stmt)).scalars().all())


__all__ = [
    "discount_percentage_for",
    "member_price",
    "price_cart",
    "generate_order_number",
    "product_out",
    "order_out",
    "list_products",
    "quote_cart",
    "checkout",
    "list_orders",
]
