"""
Store API
=========

GET  /store/products     → catalog with filters + sort (member price per caller)
POST /store/cart/quote   → server-side cart pricing
POST /store/checkout     → re-price and place an order (payment is mocked)
GET  /store/orders       → caller's orders, newest first
"""

from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from memberhub.core.limiter import rate_limit
from memberhub.core.security import get_current_user, get_optional_user
from memberhub.db.models import User
from memberhub.db.session import get_async_db
from memberhub.schemas.enums import ProductSort
from memberhub.schemas.store import CartQuote, CartQuoteRequest, CheckoutRequest, OrderOut, ProductOut
from memberhub.security_headers import set_sensitive_cache
from memberhub.services.store_service import (
    checkout,
    list_orders,
    list_products,
    order_out,
    product_out,
    quote_cart,
)

router = APIRouter(tags=["Store"])


@router.get("/products", response_model=List[ProductOut], summary="Product catalog")
async def products_route(
    search: Optional[str] = Query(None, max_length=200),
    category: Optional[str] = Query(None, max_length=64),
    min_price: Optional[Decimal] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[Decimal] = Query(None, alias="maxPrice", ge=0),
    sort: ProductSort = Query(ProductSort.POPULAR),
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_async_db),
) -> List[ProductOut]:
    rows = await list_products(
        db, search=search, category=category, min_price=min_price, max_price=max_price, sort=sort
    )
    tier = viewer.tier if viewer is not None else None
    return [product_out(p, tier) for p in rows]


@router.post("/cart/quote", response_model=CartQuote, summary="Price a cart")
@rate_limit("60/minute")
async def quote_route(
    payload: CartQuoteRequest,
    request: Request,
    response: Response,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
) -> CartQuote:
    return await quote_cart(db, current_user, payload)


@router.post("/checkout", response_model=OrderOut, status_code=status.HTTP_201_CREATED, summary="Place an order")
@rate_limit("10/minute")
async def checkout_route(
    payload: CheckoutRequest,
    request: Request,
    response: Response,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
) -> OrderOut:
    set_sensitive_cache(response)
    order, _quote = await checkout(db, current_user, payload)
    return order_out(order)


@router.get("/orders", response_model=List[OrderOut], summary="My orders")
async def orders_route(
    response: Response,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
) -> List[OrderOut]:
    set_sensitive_cache(response)
    return [order_out(o) for o in await list_orders(db, current_user)]


__all__ = ["router"]
