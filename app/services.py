import math
from typing import Any, Dict

from .auth import CallerContext
from .core import (
    AddToCartIn, ProductFilters, ProductIn, RemoveFromCartIn, UpdateCartIn,
    _make_product_dict, missing_product_fields, provided_fields, utcnow, validate_product,
)
from .errors import BadRequestError, NotFoundError
from .models import Cart, CartItem, Product

# Product catalog and cart logic behind the API routes. Every function does one
# logical store operation and raises ApiError subclasses on failure.


def product_json(product: Product) -> Dict[str, Any]:
    return product.model_dump(by_alias=True)


# Product endpoints
async def list_products_logic(db, filters: ProductFilters, page: int, limit: int):
    skip = (page - 1) * limit
    products = await db.products.find(filters, skip, limit)
    total = await db.products.count(filters)
    pages = math.ceil(total / limit)
    return {
        "products": [product_json(p) for p in products],
        "pagination": {
            "current": page,
            "pages": pages,
            "total": total,
            "hasNext": page < pages,
            "hasPrev": page > 1,
        },
    }


async def get_product_logic(db, product_id: str) -> Product:
    product = await db.products.get(product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product


async def create_product_logic(db, payload: ProductIn, placeholder_image: str) -> Product:
    fields = provided_fields(payload)
    if missing_product_fields(fields):
        raise BadRequestError("Please provide name, description, price, and category")

    doc = _make_product_dict(fields, placeholder_image)
    violations = validate_product(doc)
    if violations:
        raise BadRequestError("Product validation failed", errors=violations)
    return await db.products.insert(doc)


async def update_product_logic(db, product_id: str, payload: ProductIn) -> Product:
    product = await get_product_logic(db, product_id)

    # presence, not truthiness: stock=0 / price=0 / featured=false must stick
    fields = provided_fields(payload)
    merged = {**product.model_dump(), **fields}
    violations = validate_product(merged)
    if violations:
        raise BadRequestError("Product validation failed", errors=violations)

    updated = product.model_copy(update={**fields, "updated_at": utcnow()})
    return await db.products.save(updated)


async def delete_product_logic(db, product_id: str) -> None:
    if not await db.products.delete(product_id):
        raise NotFoundError("Product not found")


# Cart endpoints
async def populate_cart(db, cart: Cart) -> Dict[str, Any]:
    """Resolve each line item to the product as it is right now."""
    products = await db.products.get_many({item.product for item in cart.items})
    body = cart.model_dump(by_alias=True)
    for item in body["items"]:
        product = products.get(item["product"])
        item["product"] = product.summary() if product else None
    return body


async def get_cart_logic(db, caller: CallerContext):
    cart = await db.carts.get_for_user(caller.user_id)
    if cart is None:
        cart = await db.carts.create(caller.user_id)
    return await populate_cart(db, cart)


async def cart_add_logic(db, caller: CallerContext, payload: AddToCartIn):
    if not payload.product_id:
        raise BadRequestError("Product ID is required")
    quantity = 1 if payload.quantity is None else payload.quantity
    if quantity < 1:
        raise BadRequestError("Quantity must be at least 1")

    product = await db.products.get(payload.product_id)
    if product is None:
        raise NotFoundError("Product not found")
    if product.stock < quantity:
        raise BadRequestError("Insufficient stock available")

    cart = await db.carts.get_for_user(caller.user_id)
    if cart is None:
        cart = await db.carts.create(caller.user_id)

    index = cart.find_item(payload.product_id)
    if index > -1:
        new_quantity = cart.items[index].quantity + quantity
        if product.stock < new_quantity:
            raise BadRequestError("Cannot add more items. Insufficient stock available")
        cart.items[index].quantity = new_quantity
    else:
        cart.items.append(CartItem(product=payload.product_id, quantity=quantity))

    cart = await db.carts.save(cart)
    return await populate_cart(db, cart)


async def cart_remove_logic(db, caller: CallerContext, payload: RemoveFromCartIn):
    if not payload.product_id:
        raise BadRequestError("Product ID is required")

    cart = await db.carts.get_for_user(caller.user_id)
    if cart is None:
        raise NotFoundError("Cart not found")

    # removing something that isn't there is not an error
    cart.items = [item for item in cart.items if item.product != payload.product_id]
    cart = await db.carts.save(cart)
    return await populate_cart(db, cart)


async def cart_update_logic(db, caller: CallerContext, payload: UpdateCartIn):
    if not payload.product_id or payload.quantity is None:
        raise BadRequestError("Product ID and quantity are required")
    if payload.quantity < 1:
        raise BadRequestError("Quantity must be at least 1")

    product = await db.products.get(payload.product_id)
    if product is None:
        raise NotFoundError("Product not found")
    if product.stock < payload.quantity:
        raise BadRequestError("Insufficient stock available")

    cart = await db.carts.get_for_user(caller.user_id)
    if cart is None:
        raise NotFoundError("Cart not found")

    # unlike add, update never creates a line item
    index = cart.find_item(payload.product_id)
    if index == -1:
        raise NotFoundError("Item not found in cart")

    cart.items[index].quantity = payload.quantity
    cart = await db.carts.save(cart)
    return await populate_cart(db, cart)


async def cart_clear_logic(db, caller: CallerContext):
    cart = await db.carts.get_for_user(caller.user_id)
    if cart is None:
        raise NotFoundError("Cart not found")

    cart.items = []
    cart = await db.carts.save(cart)
    return await populate_cart(db, cart)
