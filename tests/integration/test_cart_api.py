def test_get_cart(client, marketplace):
    r = client.get("/api/cart")
    assert r.status_code == 200
    body = r.json()
    assert len(body["items"]) == 2
    assert body["summary"] == {"subtotal": 200.0, "buyerFee": 10.0, "total": 210.0}

def test_add_update_remove_clear(client, marketplace):
    r = client.post("/api/cart/items", json={"listingId": "listing-b", "quantity": 1})
    assert r.status_code == 200
    assert r.json()["quantity"] == 3

    r = client.patch("/api/cart/items/line-b", json={"quantity": 1})
    assert r.status_code == 200
    assert r.json()["quantity"] == 1

    assert client.delete("/api/cart/items/line-b").status_code == 200
    assert client.delete("/api/cart/items/line-b").status_code == 404

    r = client.delete("/api/cart")
    assert r.status_code == 200
    assert r.json()["removed"] == 1

def test_add_unknown_listing_404(client, marketplace):
    r = client.post("/api/cart/items", json={"listingId": "nope"})
    assert r.status_code == 404
    assert r.json()["error"] == "not_found"

def test_quantity_must_be_positive(client, marketplace):
    assert client.patch("/api/cart/items/line-b", json={"quantity": 0}).status_code == 422

def test_store_failure_is_structured_500(client, marketplace):
    marketplace.fail("cart", "select")
    r = client.get("/api/cart")
    assert r.status_code == 500
    assert r.json()["error"] == "upstream_failure"

def test_cart_requires_authentication(app, client, marketplace):
    from petmarket.utils.security import require_user

    app.dependency_overrides.pop(require_user, None)
    r = client.get("/api/cart")
    assert r.status_code == 401
    assert r.json()["error"] == "not_authenticated"
