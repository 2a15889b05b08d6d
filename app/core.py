import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Shared request schemas, validation and small helpers used by the services.

CATEGORIES = ["Electronics", "Clothing", "Books", "Home & Garden", "Sports", "Toys", "Other"]
ALL_CATEGORIES = "all"

NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 1000

REQUIRED_PRODUCT_FIELDS = ("name", "description", "price", "category")

FALSE_STRINGS = ("", "0", "false", "f", "no", "n", "off")


class ProductIn(BaseModel):
    # Everything is optional here so create can report missing fields itself
    # and update can tell "absent" from an explicit zero.
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(None, allow_inf_nan=False)
    category: Optional[str] = None
    stock: Optional[int] = None
    image: Optional[str] = None
    featured: Optional[bool] = None

    @field_validator("stock", mode="before")
    @classmethod
    def _whole_number_or_absent(cls, value):
        # anything that is not a whole number counts as not sent
        if value is None or isinstance(value, bool):
            return None
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        if not math.isfinite(number) or not number.is_integer():
            return None
        return int(number)

    @field_validator("featured", mode="before")
    @classmethod
    def _truthy(cls, value):
        if value is None or isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in FALSE_STRINGS:
            return False
        return bool(value)


class ProductFilters(BaseModel):
    category: Optional[str] = None
    min_price: Optional[float] = Field(None, allow_inf_nan=False)
    max_price: Optional[float] = Field(None, allow_inf_nan=False)
    search: Optional[str] = None


class CartItemIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: Optional[str] = Field(None, alias="productId")


class AddToCartIn(CartItemIn):
    quantity: Optional[int] = 1


class RemoveFromCartIn(CartItemIn):
    pass


class UpdateCartIn(CartItemIn):
    quantity: Optional[int] = None


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def provided_fields(payload: ProductIn) -> Dict[str, Any]:
    """Fields the caller actually sent. An explicit null counts as absent."""
    fields = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    if isinstance(fields.get("name"), str):
        fields["name"] = fields["name"].strip()
    return fields


def missing_product_fields(fields: Dict[str, Any]) -> List[str]:
    return [f for f in REQUIRED_PRODUCT_FIELDS if fields.get(f) in (None, "")]


def validate_product(doc: Dict[str, Any]) -> List[Dict[str, str]]:
    """Check a complete product record. Returns a list of violations, empty when valid."""
    violations: List[Dict[str, str]] = []

    def violation(field: str, message: str):
        violations.append({"field": field, "message": message})

    name = doc.get("name")
    if not name:
        violation("name", "Please provide a product name")
    elif len(name) > NAME_MAX_LENGTH:
        violation("name", "Product name cannot be more than 100 characters")

    description = doc.get("description")
    if not description:
        violation("description", "Please provide a product description")
    elif len(description) > DESCRIPTION_MAX_LENGTH:
        violation("description", "Description cannot be more than 1000 characters")

    price = doc.get("price")
    if price is None:
        violation("price", "Please provide a price")
    elif not math.isfinite(price):
        violation("price", "Price must be a finite number")
    elif price < 0:
        violation("price", "Price cannot be negative")

    if doc.get("category") not in CATEGORIES:
        violation("category", "Please select a valid category")

    stock = doc.get("stock")
    if stock is None:
        violation("stock", "Please provide stock quantity")
    elif stock < 0:
        violation("stock", "Stock cannot be negative")

    return violations


def _make_product_dict(fields: Dict[str, Any], placeholder_image: str) -> Dict[str, Any]:
    now = utcnow()
    return {
        "name": fields.get("name"),
        "description": fields.get("description"),
        "price": float(fields["price"]) if fields.get("price") is not None else None,
        "category": fields.get("category"),
        "stock": int(fields.get("stock") or 0),
        "image": fields.get("image") or placeholder_image,
        "featured": bool(fields.get("featured", False)),
        "created_at": now,
        "updated_at": now,
    }


def envelope(message: str, data: Optional[Dict[str, Any]] = None, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body
