from __future__ import annotations

"""
MemberHub • Storefront Schemas

Money is `Decimal` end to end; JSON renders it as a string with two places.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, constr

from memberhub.schemas.enums import ShippingMethod


class MemberDiscount(BaseModel):
    tier: str
    percentage: int


class ProductOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    category: str
    image_url: Optional[str] = None
    price: Decimal
    original_price: Optional[Decimal] = None
    member_price: Optional[Decimal] = None
    in_stock: bool
    free_shipping: bool
    shipping_info: Optional[str] = None
    rating: float = 0.0
    reviews: int = 0
    member_discount: Optional[MemberDiscount] = None


class CartItemIn(BaseModel):
    product_id: str = Field(..., alias="productId")
    quantity: int

    model_config = {"populate_by_name": True}


class CartQuoteRequest(BaseModel):
    items: List[CartItemIn]
    shipping_method: ShippingMethod = Field(ShippingMethod.STANDARD, alias="shippingMethod")

    model_config = {"populate_by_name": True}


class QuoteLine(BaseModel):
    product_id: str
    name: str
    quantity: int
    unit_price: Decimal
    discount_percentage: int = 0
    line_total: Decimal


class CartQuote(BaseModel):
    lines: List[QuoteLine]
    subtotal: Decimal
    discount: Decimal
    shipping: Decimal
    total: Decimal
    currency: str
    shipping_method: ShippingMethod


class ShippingAddress(BaseModel):
    full_name: constr(strip_whitespace=True, min_length=1, max_length=200) = Field(..., alias="fullName")
    line1: constr(strip_whitespace=True, min_length=1, max_length=300)
    line2: Optional[str] = None
    city: constr(strip_whitespace=True, min_length=1, max_length=100)
    postal_code: constr(strip_whitespace=True, min_length=1, max_length=20) = Field(..., alias="postalCode")
    country: constr(strip_whitespace=True, min_length=2, max_length=64)

    model_config = {"populate_by_name": True}


class CheckoutRequest(CartQuoteRequest):
    shipping_address: ShippingAddress = Field(..., alias="shippingAddress")


class OrderItemOut(BaseModel):
    product_id: Optional[str] = None
    name: str
    unit_price: Decimal
    quantity: int
    line_total: Decimal


class OrderOut(BaseModel):
    id: str
    order_number: str
    status: str
    payment_status: str
    shipping_method: str
    shipping_address: Optional[Dict[str, Any]] = None
    currency: str
    subtotal: Decimal
    discount: Decimal
    shipping: Decimal
    total: Decimal
    items: List[OrderItemOut]
    created_at: Optional[datetime] = None
