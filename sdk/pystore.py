# sdk/pystore.py
from typing import Any, Dict, Optional

import httpx
import requests


class StoreClient:
    def __init__(self, base_url: str = "http://localhost:8085", token: Optional[str] = None, timeout: int = 10):
        self.base_url = base_url.rstrip("/")
        self.session = requests.Session()
        self.timeout = timeout
        self.token = token
        if token:
            self.session.headers.update({"Authorization": f"Bearer {token}"})

    def _data(self, r: requests.Response) -> Dict[str, Any]:
        r.raise_for_status()
        return r.json().get("data", {})

    # Products
    def list_products(self, category: Optional[str] = None, min_price: Optional[float] = None,
                      max_price: Optional[float] = None, search: Optional[str] = None,
                      page: int = 1, limit: int = 12):
        params: Dict[str, Any] = {"page": page, "limit": limit}
        if category:
            params["category"] = category
        if min_price is not None:
            params["minPrice"] = min_price
        if max_price is not None:
            params["maxPrice"] = max_price
        if search:
            params["search"] = search
        r = self.session.get(f"{self.base_url}/products", params=params, timeout=self.timeout)
        return self._data(r)

    def search_products(self, text: str, page: int = 1, limit: int = 12):
        return self.list_products(search=text, page=page, limit=limit)

    def get_product(self, product_id: str):
        r = self.session.get(f"{self.base_url}/products/{product_id}", timeout=self.timeout)
        return self._data(r)["product"]

    # Admin
    def create_product(self, name: str, description: str, price: float, category: str,
                       stock: int = 0, image: Optional[str] = None, featured: bool = False):
        payload: Dict[str, Any] = {
            "name": name, "description": description, "price": price,
            "category": category, "stock": stock, "featured": featured,
        }
        if image:
            payload["image"] = image
        r = self.session.post(f"{self.base_url}/products", json=payload, timeout=self.timeout)
        return self._data(r)["product"]

    def update_product(self, product_id: str, **fields):
        r = self.session.put(f"{self.base_url}/products/{product_id}", json=fields, timeout=self.timeout)
        return self._data(r)["product"]

    def delete_product(self, product_id: str):
        r = self.session.delete(f"{self.base_url}/products/{product_id}", timeout=self.timeout)
        return self._data(r)

    def upload_image(self, path: str):
        with open(path, "rb") as fh:
            r = self.session.post(f"{self.base_url}/products/upload", files={"image": fh}, timeout=self.timeout)
        return self._data(r)["imageUrl"]

    # Cart
    def view_cart(self):
        r = self.session.get(f"{self.base_url}/cart", timeout=self.timeout)
        return self._data(r)["cart"]

    def add_to_cart(self, product_id: str, quantity: int = 1):
        r = self.session.post(f"{self.base_url}/cart/add", json={
            "productId": product_id, "quantity": quantity
        }, timeout=self.timeout)
        return self._data(r)["cart"]

    def remove_from_cart(self, product_id: str):
        r = self.session.post(f"{self.base_url}/cart/remove", json={"productId": product_id}, timeout=self.timeout)
        return self._data(r)["cart"]

    def update_cart(self, product_id: str, quantity: int):
        r = self.session.post(f"{self.base_url}/cart/update", json={
            "productId": product_id, "quantity": quantity
        }, timeout=self.timeout)
        return self._data(r)["cart"]

    def clear_cart(self):
        r = self.session.delete(f"{self.base_url}/cart", timeout=self.timeout)
        return self._data(r)["cart"]

    # Async add (used to fire concurrent requests)
    async def add_to_cart_async(self, product_id: str, quantity: int = 1) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            # do not raise here; callers inspect 400s
            return await client.post(f"{self.base_url}/cart/add",
                                     json={"productId": product_id, "quantity": quantity},
                                     headers=headers)
