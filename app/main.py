# app/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, File, Query, Request, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth import CallerContext, TokenAuthenticator, get_caller, require_admin
from .config import Settings, settings as default_settings
from .core import (
    AddToCartIn, ProductFilters, ProductIn, RemoveFromCartIn, UpdateCartIn, envelope,
)
from .database import create_database
from .errors import ApiError, server_errors
from .log import configure_logging
from .services import (
    cart_add_logic, cart_clear_logic, cart_remove_logic, cart_update_logic,
    create_product_logic, delete_product_logic, get_cart_logic, get_product_logic,
    list_products_logic, product_json, update_product_logic,
)
from .storage import LocalImageStorage

logger = logging.getLogger(__name__)

router = APIRouter()


def get_db(request: Request):
    return request.app.state.db


def _ok(message: str, data=None, status_code: int = 200, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=jsonable_encoder(envelope(message, data, **extra)))


@router.get("/health")
async def health(db=Depends(get_db)):
    with server_errors("Database unavailable", "Health check"):
        await db.ping()
    return _ok("OK", {"status": "ok", "database": db.name})


# ---------------------------
# Product endpoints
# ---------------------------
@router.post("/products/upload")
async def upload_product_image(
    request: Request,
    image: Optional[UploadFile] = File(None),
    caller: CallerContext = Depends(require_admin),
):
    with server_errors("Image upload failed", "Upload image"):
        url = await request.app.state.image_storage.save(image)
    return _ok("Image uploaded successfully", {"imageUrl": url}, imageUrl=url)


@router.get("/products")
async def list_products(
    request: Request,
    category: Optional[str] = None,
    min_price: Optional[float] = Query(None, alias="minPrice", allow_inf_nan=False),
    max_price: Optional[float] = Query(None, alias="maxPrice", allow_inf_nan=False),
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    db=Depends(get_db),
):
    filters = ProductFilters(category=category, min_price=min_price, max_price=max_price, search=search)
    limit = limit or request.app.state.settings.default_page_size
    with server_errors("Server error while fetching products", "Get products"):
        data = await list_products_logic(db, filters, page, limit)
    return _ok("Products retrieved successfully", data)


@router.get("/products/{product_id}")
async def get_product(product_id: str, db=Depends(get_db)):
    with server_errors("Server error while fetching product", "Get product"):
        product = await get_product_logic(db, product_id)
    return _ok("Product retrieved successfully", {"product": product_json(product)})


@router.post("/products")
async def create_product(
    payload: ProductIn,
    request: Request,
    caller: CallerContext = Depends(require_admin),
    db=Depends(get_db),
):
    placeholder = request.app.state.settings.placeholder_image
    with server_errors("Server error while creating product", "Create product"):
        product = await create_product_logic(db, payload, placeholder)
    logger.info("Product %s created by %s", product.id, caller.user_id)
    return _ok("Product created successfully", {"product": product_json(product)}, status_code=201)


@router.put("/products/{product_id}")
async def update_product(
    product_id: str,
    payload: ProductIn,
    caller: CallerContext = Depends(require_admin),
    db=Depends(get_db),
):
    with server_errors("Server error while updating product", "Update product"):
        product = await update_product_logic(db, product_id, payload)
    return _ok("Product updated successfully", {"product": product_json(product)})


@router.delete("/products/{product_id}")
async def delete_product(
    product_id: str,
    caller: CallerContext = Depends(require_admin),
    db=Depends(get_db),
):
    with server_errors("Server error while deleting product", "Delete product"):
        await delete_product_logic(db, product_id)
    logger.info("Product %s deleted by %s", product_id, caller.user_id)
    return _ok("Product deleted successfully", {})


# ---------------------------
# Cart endpoints
# ---------------------------
@router.get("/cart")
async def view_cart(caller: CallerContext = Depends(get_caller), db=Depends(get_db)):
    with server_errors("Server error while fetching cart", "Get cart"):
        cart = await get_cart_logic(db, caller)
    return _ok("Cart retrieved successfully", {"cart": cart})


@router.post("/cart/add")
async def cart_add(payload: AddToCartIn, caller: CallerContext = Depends(get_caller), db=Depends(get_db)):
    with server_errors("Server error while adding to cart", "Add to cart"):
        cart = await cart_add_logic(db, caller, payload)
    return _ok("Item added to cart successfully", {"cart": cart})


@router.post("/cart/remove")
async def cart_remove(payload: RemoveFromCartIn, caller: CallerContext = Depends(get_caller), db=Depends(get_db)):
    with server_errors("Server error while removing from cart", "Remove from cart"):
        cart = await cart_remove_logic(db, caller, payload)
    return _ok("Item removed from cart successfully", {"cart": cart})


@router.post("/cart/update")
async def cart_update(payload: UpdateCartIn, caller: CallerContext = Depends(get_caller), db=Depends(get_db)):
    with server_errors("Server error while updating cart", "Update cart"):
        cart = await cart_update_logic(db, caller, payload)
    return _ok("Cart updated successfully", {"cart": cart})


@router.delete("/cart")
async def cart_clear(caller: CallerContext = Depends(get_caller), db=Depends(get_db)):
    with server_errors("Server error while clearing cart", "Clear cart"):
        cart = await cart_clear_logic(db, caller)
    return _ok("Cart cleared successfully", {"cart": cart})


# ---------------------------
# Error envelopes
# ---------------------------
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    body = {"success": False, "message": exc.detail}
    if isinstance(exc, ApiError):
        if exc.error is not None:
            body["error"] = exc.error
        if exc.errors is not None:
            body["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(body), headers=exc.headers)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    # input is left out: it may hold NaN or Infinity
    errors = [{"loc": e["loc"], "msg": e["msg"], "type": e["type"]} for e in exc.errors()]
    body = {"success": False, "message": "Invalid request", "errors": errors}
    return JSONResponse(status_code=400, content=jsonable_encoder(body))


# ---------------------------
# App factory
# ---------------------------
def create_app(
    settings: Optional[Settings] = None,
    database=None,
    authenticator=None,
    image_storage=None,
) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.log_level)

    db = database if database is not None else create_database(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await db.ensure_indexes()
        yield
        await db.close()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.settings = settings
    app.state.db = db
    app.state.authenticator = authenticator or TokenAuthenticator(settings.api_tokens)
    app.state.image_storage = image_storage or LocalImageStorage(
        settings.upload_dir, settings.public_base_url, settings.allowed_image_formats
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(router)
    if settings.api_prefix:
        app.include_router(router, prefix=settings.api_prefix)
    app.mount("/images", StaticFiles(directory=settings.upload_dir, check_dir=False), name="images")
    return app


app = create_app()
