# tests/test_services/test_store_pricing.py
import re
from decimal import Decimal

import pytest
from fastapi import HTTPException

from memberhub.schemas.enums import ShippingMethod
from memberhub.schemas.store import CartItemIn, CheckoutRequest
from memberhub.services.store_service import (
    checkout,
    generate_order_number,
    member_price,
    price_cart,
    product_out,
)
from tests.fixtures.fakes import FakeDB, FakeResult, make_product, make_user

RATES = {"standard": Decimal("5.00"), "express": Decimal("15.00"), "overnight": Decimal("30.00")}


def _items(*pairs):
    return [CartItemIn(product_id=pid, quantity=qty) for pid, qty in pairs]


def _price(items, products, tier="basic", method=ShippingMethod.STANDARD):
    return price_cart(
        items,
        {str(p.id): p for p in products},
        user_tier=tier,
        shipping_method=method,
        shipping_rates=RATES,
        currency="USD",
    )


def test_member_discount_applies_at_or_above_discount_tier():
    poster = make_product(price="20.00", discount_tier="premium", discount_percentage=10)

    assert member_price(poster, "premium") == Decimal("18.00")
    assert member_price(poster, "allAccess") == Decimal("18.00")
    assert member_price(poster, "basic") == Decimal("20.00")
    assert member_price(poster, None) == Decimal("20.00")


def test_quote_totals_with_discount_and_shipping():
    poster = make_product(price="20.00", discount_tier="basic", discount_percentage=10)
    mug = make_product(name="Mug", price="12.50")

    quote = _price(_items((str(poster.id), 2), (str(mug.id), 1)), [poster, mug])

    assert quote.subtotal == Decimal("52.50")
    assert quote.discount == Decimal("4.00")
    assert quote.shipping == Decimal("5.00")
    assert quote.total == Decimal("53.50")
    assert [line.line_total for line in quote.lines] == [Decimal("36.00"), Decimal("12.50")]
    assert quote.lines[0].discount_percentage == 10
    assert quote.currency == "USD"


def test_shipping_method_selects_rate():
    mug = make_product(price="10.00")
    quote = _price(_items((str(mug.id), 1)), [mug], method=ShippingMethod.OVERNIGHT)
    assert quote.shipping == Decimal("30.00")
    assert quote.total == Decimal("40.00")


def test_shipping_waived_when_every_line_ships_free():
    a = make_product(price="10.00", free_shipping=True)
    b = make_product(price="5.00", free_shipping=True)
    quote = _price(_items((str(a.id), 1), (str(b.id), 1)), [a, b], method=ShippingMethod.EXPRESS)
    assert quote.shipping == Decimal("0.00")


def test_shipping_charged_when_one_line_is_not_free():
    a = make_product(price="10.00", free_shipping=True)
    b = make_product(price="5.00")
    quote = _price(_items((str(a.id), 1), (str(b.id), 1)), [a, b])
    assert quote.shipping == Decimal("5.00")


def test_non_positive_quantities_are_dropped():
    a = make_product(price="10.00")
    b = make_product(price="99.00")
    quote = _price(_items((str(a.id), 1), (str(b.id), 0), (str(b.id), -3)), [a, b])
    assert len(quote.lines) == 1
    assert quote.subtotal == Decimal("10.00")


def test_empty_cart_is_rejected():
    a = make_product()
    with pytest.raises(HTTPException) as ei:
        _price(_items((str(a.id), 0)), [a])
    assert ei.value.status_code == 400
    assert ei.value.detail == "Cart is empty"


def test_out_of_stock_and_unknown_products_are_rejected():
    gone = make_product(in_stock=False)
    with pytest.raises(HTTPException) as ei:
        _price(_items((str(gone.id), 1)), [gone])
    assert ei.value.status_code == 400

    with pytest.raises(HTTPException) as ei:
        _price(_items(("00000000-0000-0000-0000-000000000000", 1)), [])
    assert ei.value.status_code == 400


def test_discount_rounds_half_up_to_cents():
    odd = make_product(price="9.99", discount_tier="basic", discount_percentage=15)
    quote = _price(_items((str(odd.id), 1)), [odd])
    # 9.99 * 0.15 = 1.4985
    assert quote.discount == Decimal("1.50")
    assert quote.lines[0].line_total == Decimal("8.49")


def test_order_number_format():
    numbers = {generate_order_number() for _ in range(20)}
    assert all(re.fullmatch(r"ORD-[A-Z0-9]{9}", n) for n in numbers)
    assert len(numbers) > 1


def test_product_out_member_price_only_when_eligible():
    poster = make_product(price="20.00", discount_tier="premium", discount_percentage=25)

    eligible = product_out(poster, "premium")
    assert eligible.member_price == Decimal("15.00")
    assert eligible.member_discount.tier == "premium"

    not_eligible = product_out(poster, "basic")
    assert not_eligible.member_price is None
    assert not_eligible.member_discount.percentage == 25


@pytest.mark.anyio
async def test_checkout_records_paid_order_and_purchases():
    poster = make_product(price="20.00")
    user = make_user(tier="basic")
    db = FakeDB().queue(FakeResult([poster]))

    req = CheckoutRequest.model_validate(
        {
            "items": [{"productId": str(poster.id), "quantity": 2}],
            "shippingMethod": "standard",
            "shippingAddress": {
                "fullName": "Ada Member",
                "line1": "1 Main St",
                "city": "Springfield",
                "postalCode": "12345",
                "country": "US",
            },
        }
    )
    order, quote = await checkout(db, user, req)

    assert db.commits == 1
    assert db.added == [order]
    assert order.payment_status == "completed"
    assert order.status == "processing"
    assert order.total == quote.total == Decimal("40.00") + quote.shipping
    assert len(order.items) == 1 and order.items[0].quantity == 2
    assert order.shipping_address["full_name"] == "Ada Member"
    assert user.purchased_product_ids == [str(poster.id)]
