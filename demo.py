#!/usr/bin/env python
"""Scripted walkthrough against a running server.

Start the API with tokens for an admin and a shopper, e.g.

    API_TOKENS='{"admin-token": "admin1:admin", "alice-token": "alice:user"}' \
        uvicorn app.main:app --port 8085
"""
from sdk.pystore import StoreClient

BASE_URL = "http://127.0.0.1:8085"


def main():
    admin = StoreClient(base_url=BASE_URL, token="admin-token")
    alice = StoreClient(base_url=BASE_URL, token="alice-token")

    # -----------------------------
    # Create products
    # -----------------------------
    print("Creating products...")
    laptop = admin.create_product("Laptop", "14 inch ultrabook", 1500, "Electronics", stock=3)
    mouse = admin.create_product("Mouse", "Wireless mouse", 25, "Electronics", stock=10, featured=True)
    print(laptop)
    print(mouse)

    # -----------------------------
    # Browse
    # -----------------------------
    print("\nElectronics between $10 and $50...")
    print(alice.list_products(category="Electronics", min_price=10, max_price=50))

    print("\nSearching for 'ultrabook'...")
    print(alice.search_products("ultrabook"))

    # -----------------------------
    # Cart
    # -----------------------------
    print("\nAdding products to cart...")
    print(alice.add_to_cart(laptop["id"], 1))
    print(alice.add_to_cart(mouse["id"], 2))

    print("\nSetting mouse quantity to 4...")
    print(alice.update_cart(mouse["id"], 4))

    print("\nSetting laptop stock to 0 and viewing cart (line items show live stock)...")
    admin.update_product(laptop["id"], stock=0)
    print(alice.view_cart())

    print("\nRemoving laptop, then clearing the cart...")
    print(alice.remove_from_cart(laptop["id"]))
    print(alice.clear_cart())

    # -----------------------------
    # Cleanup
    # -----------------------------
    admin.delete_product(laptop["id"])
    admin.delete_product(mouse["id"])


if __name__ == "__main__":
    main()
