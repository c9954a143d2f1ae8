import pytest

from petmarket.payments import metadata as payments_metadata
from petmarket.utils.errors import InvalidOrders

def test_make_metadata():
    meta = payments_metadata.make_metadata(["a", "b"], "buyer-1")
    assert meta == {"orderIds": "a,b", "buyerId": "buyer-1", "platform": "petmarket"}

def test_make_metadata_respects_value_limit():
    ids = ["x" * 99] * 5  # 5 * 99 + 4 virgules = 499
    assert len(payments_metadata.make_metadata(ids, "b")["orderIds"]) == 499
    with pytest.raises(InvalidOrders):
        payments_metadata.make_metadata(ids + ["y"], "b")

@pytest.mark.parametrize("raw, expected", [
    ("a,b", ["a", "b"]),
    (" a , b ,, a ", ["a", "b"]),
    ("", []),
    (None, []),
    (42, []),
])
def test_parse_order_ids(raw, expected):
    assert payments_metadata.parse_order_ids(raw) == expected

def test_extract_from_event():
    event = {
        "type": "payment_intent.succeeded",
        "data": {"object": {"id": "pi_1", "metadata": {"orderIds": "o1,o2", "buyerId": "b1"}}},
    }
    intent, order_ids, buyer_id = payments_metadata.extract_from_event(event)
    assert intent["id"] == "pi_1"
    assert order_ids == ["o1", "o2"]
    assert buyer_id == "b1"

def test_extract_from_event_without_metadata():
    intent, order_ids, buyer_id = payments_metadata.extract_from_event({"type": "payment_intent.succeeded"})
    assert intent == {}
    assert order_ids == []
    assert buyer_id is None
