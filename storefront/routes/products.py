from fastapi import APIRouter, Depends, HTTPException, status
from typing import Optional
from sqlmodel import Session, select
from slugify import slugify
import logging

from storefront.database import get_session
from storefront.dependencies.permissions import require_catalog_admin
from storefront.models.product import Product
from storefront.models.user import User
from storefront.schemas.product_schemas import ProductCreate, InventoryUpdate
from storefront.services.inventory_service import set_stock, stock_status
from storefront.utils.money import money_out, to_money
from storefront.utils.pagination import paginate

logger = logging.getLogger(__name__)

router = APIRouter()
admin_router = APIRouter()


def serialize_product(product: Product) -> dict:
    return {
        "id": product.id,
        "title": product.title,
        "slug": product.slug,
        "description": product.description,
        "sku": product.sku,
        "price": money_out(product.price),
        "currency": product.currency,
        "stock": product.stock_quantity,
        "in_stock": product.in_stock,
        "stock_status": stock_status(product),
        "is_active": product.is_active,
        "image": product.main_image,
        "images": product.images or [],
        "specifications": product.specifications or {},
    }


# -------- PUBLIC CATALOG --------

@router.get("")
def list_products(
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    in_stock: Optional[bool] = None,
    session: Session = Depends(get_session),
):
    query = select(Product).where(Product.is_active == True)  # noqa: E712

    if search:
        query = query.where(Product.title.ilike(f"%{search}%"))

    if in_stock is not None:
        query = query.where(Product.in_stock == in_stock)

    return paginate(
        session=session,
        query=query.order_by(Product.created_at.desc()),
        page=page,
        limit=limit,
        serialize=serialize_product,
    )


@router.get("/{product_id}")
def get_product(product_id: int, session: Session = Depends(get_session)):
    product = session.get(Product, product_id)
    if not product or not product.is_active:
        raise HTTPException(404, "Product not found")
    return serialize_product(product)


# -------- ADMIN CATALOG --------

@admin_router.post("", status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_catalog_admin),
):
    slug = payload.slug.strip() if payload.slug and payload.slug.strip() else slugify(payload.title)

    if session.exec(select(Product).where(Product.slug == slug)).first():
        raise HTTPException(400, "Product slug already exists")

    product = Product(
        title=payload.title,
        slug=slug,
        description=payload.description,
        sku=payload.sku,
        price=to_money(payload.price),
        currency=payload.currency,
        stock_quantity=payload.stock_quantity,
        in_stock=payload.stock_quantity > 0,
        is_active=payload.is_active,
        images=payload.images,
        specifications=payload.specifications,
    )

    session.add(product)
    session.commit()
    session.refresh(product)

    logger.info(f"Product {product.id} created by admin {current_user.id}")
    return serialize_product(product)


@admin_router.patch("/{product_id}/inventory")
def update_inventory(
    product_id: int,
    payload: InventoryUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_catalog_admin),
):
    product = session.get(Product, product_id)
    if not product:
        raise HTTPException(404, "Product not found")

    old_stock = product.stock_quantity
    set_stock(session, product, payload.stock)
    session.commit()
    session.refresh(product)

    logger.info(
        f"Stock for product {product.id} changed {old_stock} -> {product.stock_quantity} "
        f"by admin {current_user.id}"
    )

    return {
        "message": "Inventory updated",
        "product_id": product.id,
        "stock": product.stock_quantity,
        "in_stock": product.in_stock,
        "stock_status": stock_status(product),
    }
