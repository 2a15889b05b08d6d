import itertools
import logging
import uuid
from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, TEXT, AsyncMongoClient
from pymongo.errors import DuplicateKeyError

from .config import Settings
from .core import ALL_CATEGORIES, ProductFilters, utcnow
from .models import Cart, Product

# Product and cart collections. Two backends share the same async interface:
# an in-process one (tests, demos) and MongoDB.

logger = logging.getLogger(__name__)


# ---------------------------
# In-memory backend
# ---------------------------
def _matches(product: Product, filters: ProductFilters) -> bool:
    if filters.category and filters.category != ALL_CATEGORIES and product.category != filters.category:
        return False
    if filters.min_price is not None and product.price < filters.min_price:
        return False
    if filters.max_price is not None and product.price > filters.max_price:
        return False
    if filters.search:
        haystack = f"{product.name} {product.description}".lower()
        if not any(term.lower() in haystack for term in filters.search.split()):
            return False
    return True


class MemoryProductCollection:
    def __init__(self):
        self._products: Dict[str, Product] = {}
        self._order: Dict[str, int] = {}
        self._seq = itertools.count()

    def _query(self, filters: ProductFilters) -> List[Product]:
        found = [p for p in self._products.values() if _matches(p, filters)]
        found.sort(key=lambda p: (p.created_at, self._order[p.id]), reverse=True)
        return found

    async def find(self, filters: ProductFilters, skip: int, limit: int) -> List[Product]:
        return [p.model_copy(deep=True) for p in self._query(filters)[skip:skip + limit]]

    async def count(self, filters: ProductFilters) -> int:
        return len(self._query(filters))

    async def get(self, product_id: str) -> Optional[Product]:
        p = self._products.get(product_id)
        return p.model_copy(deep=True) if p else None

    async def get_many(self, product_ids: Iterable[str]) -> Dict[str, Product]:
        return {pid: self._products[pid].model_copy(deep=True)
                for pid in product_ids if pid in self._products}

    async def insert(self, doc: Dict[str, Any]) -> Product:
        pid = uuid.uuid4().hex
        product = Product(id=pid, **doc)
        self._products[pid] = product
        self._order[pid] = next(self._seq)
        return product.model_copy(deep=True)

    async def save(self, product: Product) -> Product:
        self._products[product.id] = product.model_copy(deep=True)
        return product

    async def delete(self, product_id: str) -> bool:
        self._order.pop(product_id, None)
        return self._products.pop(product_id, None) is not None


class MemoryCartCollection:
    def __init__(self):
        self._carts: Dict[str, Cart] = {}

    async def get_for_user(self, user_id: str) -> Optional[Cart]:
        cart = self._carts.get(user_id)
        return cart.model_copy(deep=True) if cart else None

    async def create(self, user_id: str) -> Cart:
        if user_id in self._carts:
            return self._carts[user_id].model_copy(deep=True)
        now = utcnow()
        cart = Cart(id=uuid.uuid4().hex, user=user_id, items=[], created_at=now, updated_at=now)
        self._carts[user_id] = cart
        return cart.model_copy(deep=True)

    async def save(self, cart: Cart) -> Cart:
        cart.updated_at = utcnow()
        self._carts[cart.user] = cart.model_copy(deep=True)
        return cart


class MemoryDatabase:
    name = "memory"

    def __init__(self):
        self.products = MemoryProductCollection()
        self.carts = MemoryCartCollection()

    async def ensure_indexes(self):
        pass

    async def ping(self) -> bool:
        return True

    async def close(self):
        pass


# ---------------------------
# MongoDB backend
# ---------------------------
def build_product_query(filters: ProductFilters) -> Dict[str, Any]:
    query: Dict[str, Any] = {}
    if filters.category and filters.category != ALL_CATEGORIES:
        query["category"] = filters.category
    if filters.min_price is not None or filters.max_price is not None:
        query["price"] = {}
        if filters.min_price is not None:
            query["price"]["$gte"] = filters.min_price
        if filters.max_price is not None:
            query["price"]["$lte"] = filters.max_price
    if filters.search:
        query["$text"] = {"$search": filters.search}
    return query


def _object_id(value: str) -> Optional[ObjectId]:
    return ObjectId(value) if ObjectId.is_valid(value) else None


def product_from_document(doc: Dict[str, Any]) -> Product:
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id"))
    return Product.model_validate(doc)


def product_to_document(product: Product) -> Dict[str, Any]:
    return product.model_dump(by_alias=True, exclude={"id"})


def cart_from_document(doc: Dict[str, Any]) -> Cart:
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id"))
    return Cart.model_validate(doc)


def cart_to_document(cart: Cart) -> Dict[str, Any]:
    return cart.model_dump(by_alias=True, exclude={"id"})


class MongoProductCollection:
    def __init__(self, collection):
        self._col = collection

    async def find(self, filters: ProductFilters, skip: int, limit: int) -> List[Product]:
        cursor = (
            self._col.find(build_product_query(filters))
            .sort([("createdAt", DESCENDING), ("_id", DESCENDING)])
            .skip(skip)
            .limit(limit)
        )
        return [product_from_document(doc) for doc in await cursor.to_list()]

    async def count(self, filters: ProductFilters) -> int:
        return await self._col.count_documents(build_product_query(filters))

    async def get(self, product_id: str) -> Optional[Product]:
        oid = _object_id(product_id)
        if oid is None:
            return None
        doc = await self._col.find_one({"_id": oid})
        return product_from_document(doc) if doc else None

    async def get_many(self, product_ids: Iterable[str]) -> Dict[str, Product]:
        oids = [oid for oid in (_object_id(pid) for pid in product_ids) if oid is not None]
        if not oids:
            return {}
        cursor = self._col.find({"_id": {"$in": oids}})
        products = [product_from_document(doc) for doc in await cursor.to_list()]
        return {p.id: p for p in products}

    async def insert(self, doc: Dict[str, Any]) -> Product:
        product = Product(id="", **doc)
        result = await self._col.insert_one(product_to_document(product))
        return product.model_copy(update={"id": str(result.inserted_id)})

    async def save(self, product: Product) -> Product:
        await self._col.replace_one({"_id": ObjectId(product.id)}, product_to_document(product))
        return product

    async def delete(self, product_id: str) -> bool:
        oid = _object_id(product_id)
        if oid is None:
            return False
        result = await self._col.delete_one({"_id": oid})
        return result.deleted_count == 1


class MongoCartCollection:
    def __init__(self, collection):
        self._col = collection

    async def get_for_user(self, user_id: str) -> Optional[Cart]:
        doc = await self._col.find_one({"user": user_id})
        return cart_from_document(doc) if doc else None

    async def create(self, user_id: str) -> Cart:
        now = utcnow()
        document = {"user": user_id, "items": [], "createdAt": now, "updatedAt": now}
        try:
            result = await self._col.insert_one(document)
        except DuplicateKeyError:
            # another request created it first
            return await self.get_for_user(user_id)
        return Cart(id=str(result.inserted_id), user=user_id, items=[], created_at=now, updated_at=now)

    async def save(self, cart: Cart) -> Cart:
        cart.updated_at = utcnow()
        await self._col.replace_one({"_id": ObjectId(cart.id)}, cart_to_document(cart))
        return cart


class MongoDatabase:
    name = "mongo"

    def __init__(self, url: str, database_name: str):
        self._client = AsyncMongoClient(url)
        self._db = self._client[database_name]
        self.products = MongoProductCollection(self._db["products"])
        self.carts = MongoCartCollection(self._db["carts"])

    async def ensure_indexes(self):
        products = self._db["products"]
        await products.create_index([("category", ASCENDING), ("price", ASCENDING)])
        await products.create_index([("name", TEXT), ("description", TEXT)])
        await self._db["carts"].create_index([("user", ASCENDING)], unique=True)
        logger.info("MongoDB indexes ensured on %s", self._db.name)

    async def ping(self) -> bool:
        await self._db.command("ping")
        return True

    async def close(self):
        await self._client.close()


def create_database(settings: Settings):
    if settings.database_backend == "mongo":
        logger.info("Using MongoDB database %s", settings.database_name)
        return MongoDatabase(settings.database_url, settings.database_name)
    if settings.database_backend != "memory":
        raise ValueError(f"Unknown database backend: {settings.database_backend}")
    logger.info("Using in-memory database")
    return MemoryDatabase()
