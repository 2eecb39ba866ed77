import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.config import settings
from storefront.database import create_db_and_tables
from storefront.exceptions import StorefrontError
from storefront.routes import (
    addresses,
    admin_orders,
    auth,
    cart,
    health,
    orders,
    products,
    users,
)

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local
    if settings.env == "local":
        create_db_and_tables()
    yield

app = FastAPI(title="Storefront Orders API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.code}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(users.router, prefix="/users", tags=["Users"])
app.include_router(products.router, prefix="/products", tags=["Products"])
app.include_router(products.admin_router, prefix="/admin/products", tags=["Admin Products"])
app.include_router(cart.router, prefix="/cart", tags=["Cart"])
app.include_router(addresses.router, prefix="/addresses", tags=["Addresses"])
app.include_router(orders.router, prefix="/orders", tags=["Orders"])
app.include_router(admin_orders.router, prefix="/admin/orders", tags=["Admin Orders"])
app.include_router(health.router, prefix="/health", tags=["Health"])


@app.get("/")
def root():
    return {
        "auth_endpoints": [
            "/auth/register", "/auth/login"
        ],
        "user_endpoints": [
            "/users/me"
        ],
        "products": [
            "/products", "/products/{product_id}"
        ],
        "admin_product_endpoints": [
            "/admin/products", "/admin/products/{product_id}/inventory"
        ],
        "cart": [
            "/cart", "/cart/items", "/cart/items/{item_id}",
            "/cart/validate", "/cart/summary", "/cart/refresh-prices"
        ],
        "addresses": [
            "/addresses", "/addresses/{address_id}"
        ],
        "orders": [
            "/orders", "/orders/{order_id}", "/orders/{order_id}/cancel"
        ],
        "admin_order_endpoints": [
            "/admin/orders", "/admin/orders/statistics", "/admin/orders/{order_id}",
            "/admin/orders/{order_id}/status", "/admin/orders/{order_id}/payment",
            "/admin/orders/items/{item_id}/fulfill"
        ],
    }
