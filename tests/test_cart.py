# tests/test_cart.py


def add(client, headers, product_id, quantity=None):
    payload = {"productId": product_id}
    if quantity is not None:
        payload["quantity"] = quantity
    return client.post("/cart/add", json=payload, headers=headers)


def items(response):
    return [(it["product"]["id"], it["quantity"]) for it in response.json()["data"]["cart"]["items"]]


def test_cart_requires_authentication(client):
    assert client.get("/cart").status_code == 401
    r = client.post("/cart/add", json={"productId": "x"}, headers={"Authorization": "Bearer wrong"})
    assert r.status_code == 401
    assert r.json()["message"] == "Token is not valid"


def test_get_cart_creates_empty_cart(client, alice_headers):
    r = client.get("/cart", headers=alice_headers)
    assert r.status_code == 200
    cart = r.json()["data"]["cart"]
    assert cart["user"] == "alice"
    assert cart["items"] == []
    # same cart on the next read
    assert client.get("/cart", headers=alice_headers).json()["data"]["cart"]["id"] == cart["id"]


def test_add_then_add_beyond_stock(client, alice_headers, make_product):
    product = make_product(stock=5)

    r = add(client, alice_headers, product["id"], 3)
    assert r.status_code == 200
    assert r.json()["message"] == "Item added to cart successfully"
    assert items(r) == [(product["id"], 3)]

    r = add(client, alice_headers, product["id"], 3)
    assert r.status_code == 400
    assert r.json()["message"] == "Cannot add more items. Insufficient stock available"

    assert items(client.get("/cart", headers=alice_headers)) == [(product["id"], 3)]


def test_add_merges_existing_line(client, alice_headers, make_product):
    product = make_product(stock=5)
    add(client, alice_headers, product["id"], 2)
    r = add(client, alice_headers, product["id"], 3)
    assert items(r) == [(product["id"], 5)]


def test_add_defaults_to_one(client, alice_headers, make_product):
    product = make_product()
    r = add(client, alice_headers, product["id"])
    assert items(r) == [(product["id"], 1)]


def test_add_appends_in_order(client, alice_headers, make_product):
    first = make_product(name="First")
    second = make_product(name="Second")
    add(client, alice_headers, first["id"])
    r = add(client, alice_headers, second["id"], 2)
    assert items(r) == [(first["id"], 1), (second["id"], 2)]


def test_add_more_than_stock(client, alice_headers, make_product):
    product = make_product(stock=2)
    r = add(client, alice_headers, product["id"], 3)
    assert r.status_code == 400
    assert r.json()["message"] == "Insufficient stock available"
    assert client.get("/cart", headers=alice_headers).json()["data"]["cart"]["items"] == []


def test_add_validation(client, alice_headers, make_product):
    r = client.post("/cart/add", json={}, headers=alice_headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Product ID is required"

    r = add(client, alice_headers, "missing")
    assert r.status_code == 404
    assert r.json()["message"] == "Product not found"

    product = make_product()
    r = add(client, alice_headers, product["id"], 0)
    assert r.status_code == 400
    assert r.json()["message"] == "Quantity must be at least 1"


def test_cart_items_show_current_product_state(client, admin_headers, alice_headers, make_product):
    product = make_product(price=30, stock=5)
    add(client, alice_headers, product["id"], 2)

    client.put(f"/products/{product['id']}", json={"price": 25, "stock": 1}, headers=admin_headers)
    line = client.get("/cart", headers=alice_headers).json()["data"]["cart"]["items"][0]
    assert line["quantity"] == 2
    assert line["product"] == {
        "id": product["id"],
        "name": product["name"],
        "price": 25,
        "image": product["image"],
        "stock": 1,
    }

    client.delete(f"/products/{product['id']}", headers=admin_headers)
    line = client.get("/cart", headers=alice_headers).json()["data"]["cart"]["items"][0]
    assert line["product"] is None


def test_remove_item(client, alice_headers, make_product):
    keep = make_product(name="Keep")
    drop = make_product(name="Drop")
    add(client, alice_headers, keep["id"])
    add(client, alice_headers, drop["id"])

    r = client.post("/cart/remove", json={"productId": drop["id"]}, headers=alice_headers)
    assert r.status_code == 200
    assert items(r) == [(keep["id"], 1)]


def test_remove_absent_product_leaves_cart_unchanged(client, alice_headers, make_product):
    product = make_product()
    add(client, alice_headers, product["id"], 2)
    r = client.post("/cart/remove", json={"productId": "not-in-cart"}, headers=alice_headers)
    assert r.status_code == 200
    assert items(r) == [(product["id"], 2)]


def test_remove_errors(client, alice_headers):
    r = client.post("/cart/remove", json={"productId": "x"}, headers=alice_headers)
    assert r.status_code == 404
    assert r.json()["message"] == "Cart not found"

    client.get("/cart", headers=alice_headers)
    r = client.post("/cart/remove", json={}, headers=alice_headers)
    assert r.status_code == 400


def test_update_quantity(client, alice_headers, make_product):
    product = make_product(stock=5)
    add(client, alice_headers, product["id"], 1)
    r = client.post("/cart/update", json={"productId": product["id"], "quantity": 4}, headers=alice_headers)
    assert r.status_code == 200
    assert r.json()["message"] == "Cart updated successfully"
    assert items(r) == [(product["id"], 4)]


def test_update_product_not_in_cart_is_not_found(client, alice_headers, make_product):
    in_cart = make_product(name="In cart")
    other = make_product(name="Other", stock=10)
    add(client, alice_headers, in_cart["id"])

    r = client.post("/cart/update", json={"productId": other["id"], "quantity": 2}, headers=alice_headers)
    assert r.status_code == 404
    assert r.json()["message"] == "Item not found in cart"
    assert items(client.get("/cart", headers=alice_headers)) == [(in_cart["id"], 1)]


def test_update_without_cart(client, alice_headers, make_product):
    product = make_product()
    r = client.post("/cart/update", json={"productId": product["id"], "quantity": 1}, headers=alice_headers)
    assert r.status_code == 404
    assert r.json()["message"] == "Cart not found"


def test_update_validation(client, alice_headers, make_product):
    product = make_product(stock=2)
    add(client, alice_headers, product["id"])

    r = client.post("/cart/update", json={"productId": product["id"]}, headers=alice_headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Product ID and quantity are required"

    r = client.post("/cart/update", json={"productId": product["id"], "quantity": 0}, headers=alice_headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Quantity must be at least 1"

    r = client.post("/cart/update", json={"productId": product["id"], "quantity": 3}, headers=alice_headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Insufficient stock available"

    r = client.post("/cart/update", json={"productId": "gone", "quantity": 1}, headers=alice_headers)
    assert r.status_code == 404
    assert r.json()["message"] == "Product not found"


def test_clear_twice(client, alice_headers, make_product):
    product = make_product()
    add(client, alice_headers, product["id"], 2)

    first = client.delete("/cart", headers=alice_headers)
    assert first.status_code == 200
    assert first.json()["data"]["cart"]["items"] == []

    second = client.delete("/cart", headers=alice_headers)
    assert second.status_code == 200
    assert second.json()["message"] == "Cart cleared successfully"
    assert second.json()["data"]["cart"]["id"] == first.json()["data"]["cart"]["id"]


def test_clear_without_cart(client, alice_headers):
    r = client.delete("/cart", headers=alice_headers)
    assert r.status_code == 404


def test_carts_are_per_user(client, alice_headers, bob_headers, make_product):
    product = make_product(stock=5)
    add(client, alice_headers, product["id"], 2)
    add(client, bob_headers, product["id"], 3)

    assert items(client.get("/cart", headers=alice_headers)) == [(product["id"], 2)]
    assert items(client.get("/cart", headers=bob_headers)) == [(product["id"], 3)]

    client.delete("/cart", headers=bob_headers)
    assert items(client.get("/cart", headers=alice_headers)) == [(product["id"], 2)]
