import pytest

from petmarket.orders.models import (
    CheckoutRequest,
    ShippingAddress,
    build_order_row,
    can_transition,
    compute_amounts,
    to_money,
)

@pytest.mark.parametrize("unit_price, quantity, expected", [
    (100.0, 1, {"buyer_fee": 5.0, "seller_fee": 10.0, "total_amount": 105.0, "seller_payout": 90.0}),
    (50.0, 2, {"buyer_fee": 5.0, "seller_fee": 10.0, "total_amount": 105.0, "seller_payout": 90.0}),
    (19.99, 3, {"buyer_fee": 3.0, "seller_fee": 6.0, "total_amount": 62.97, "seller_payout": 53.97}),
])
def test_compute_amounts(unit_price, quantity, expected):
    amounts = compute_amounts(unit_price, quantity)
    assert amounts.model_dump(include=set(expected)) == expected

def test_fee_identities_hold_after_rounding():
    for price in (0.01, 0.99, 12.34, 250.0, 1999.95):
        for qty in (1, 2, 7):
            a = compute_amounts(price, qty)
            gross = price * qty
            assert a.total_amount == to_money(gross + a.buyer_fee)
            assert a.seller_payout == to_money(gross - a.seller_fee)
            assert a.total_amount - a.seller_payout == pytest.approx(a.buyer_fee + a.seller_fee, abs=0.011)

def test_seller_transitions():
    assert can_transition("paid", "shipped")
    assert can_transition("shipped", "delivered")
    assert can_transition("pending", "cancelled")
    assert can_transition("paid", "cancelled")
    assert not can_transition("pending", "paid")
    assert not can_transition("pending", "shipped")
    assert not can_transition("delivered", "cancelled")
    assert not can_transition("unknown", "paid")

def test_shipping_address_formats_structured_address():
    addr = ShippingAddress(street="1 rue des Lilas", city="Lyon", state="ARA", zipCode="69001")
    assert addr.format() == "1 rue des Lilas, Lyon, ARA 69001"

def test_build_order_row_snapshot():
    details = CheckoutRequest(shippingAddress="12 avenue Foch, Paris", phone="0600000000", notes="")
    row = build_order_row(
        buyer_id="b1", seller_id="s1", listing_id="l1", unit_price=50.0, quantity=2, checkout=details,
    )
    assert row["status"] == "pending"
    assert row["total_amount"] == 105.0
    assert row["seller_payout"] == 90.0
    assert row["shipping_address"] == "12 avenue Foch, Paris"
    assert row["notes"] is None
    assert "stripe_payment_id" not in row
