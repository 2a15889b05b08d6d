# app/models.py
from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from .config import PLACEHOLDER_IMAGE


class Product(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    description: str
    price: float
    category: str
    stock: int = 0
    image: str = PLACEHOLDER_IMAGE
    featured: bool = False
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    def summary(self):
        """The fields a cart line shows for its product."""
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "image": self.image,
            "stock": self.stock,
        }


class CartItem(BaseModel):
    product: str
    quantity: int


class Cart(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    user: str
    items: List[CartItem] = []
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    def find_item(self, product_id: str) -> int:
        for index, item in enumerate(self.items):
            if item.product == product_id:
                return index
        return -1
