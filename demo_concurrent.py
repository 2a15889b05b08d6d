"""Fires concurrent adds of the same product into one cart.

Cart updates are read-modify-write without locking, so two adds racing each other
can both read the same starting quantity and one increment gets lost.
Run the server as described in demo.py.
"""
import asyncio

from sdk.pystore import StoreClient

BASE_URL = "http://127.0.0.1:8085"


async def add_one(client: StoreClient, product_id: str, n: int):
    r = await client.add_to_cart_async(product_id, 1)
    if r.status_code == 200:
        print(f"✅ add #{n} accepted")
    else:
        print(f"❌ add #{n} rejected: {r.json().get('message')}")


async def main():
    admin = StoreClient(base_url=BASE_URL, token="admin-token")
    alice = StoreClient(base_url=BASE_URL, token="alice-token")

    product = admin.create_product("Gaming Laptop", "Limited run", 1999, "Electronics", stock=10)
    if alice.view_cart()["items"]:
        alice.clear_cart()
    print(f"\n🖥️  Created product: {product['id']} (stock {product['stock']})")

    print("\n⚡ Sending 5 concurrent adds of 1 unit...")
    await asyncio.gather(*(add_one(alice, product["id"], n) for n in range(1, 6)))

    cart = alice.view_cart()
    quantity = sum(it["quantity"] for it in cart["items"])
    print(f"\n🛒 Quantity in cart: {quantity} (5 if no update was lost)")

    alice.clear_cart()
    admin.delete_product(product["id"])


if __name__ == "__main__":
    asyncio.run(main())
