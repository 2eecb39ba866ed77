"""Inventory Record adjustments.

Stock lives on the product row. Every mutation here runs inside the
caller's transaction and never commits on its own.
"""

import logging
from datetime import datetime
from typing import Dict, Iterable

from sqlalchemy import update
from sqlmodel import Session, select

from storefront.models.product import Product

logger = logging.getLogger(__name__)


def lock_products(session: Session, product_ids: Iterable[int]) -> Dict[int, Product]:
    """Load products by id, row-locking them where the dialect supports it."""
    ids = sorted(set(product_ids))
    if not ids:
        return {}

    products = session.exec(
        select(Product)
        .where(Product.id.in_(ids))
        .order_by(Product.id)
        .with_for_update()
    ).all()

    return {p.id: p for p in products}


def reserve_stock(session: Session, product_id: int, quantity: int) -> bool:
    """Decrement stock only if enough is left. Returns False when it is not."""
    result = session.exec(
        update(Product)
        .where(Product.id == product_id, Product.stock_quantity >= quantity)
        .values(
            stock_quantity=Product.stock_quantity - quantity,
            updated_at=datetime.utcnow(),
        )
    )

    if result.rowcount != 1:
        logger.warning(f"Stock reservation failed for product {product_id} (qty {quantity})")
        return False

    session.exec(
        update(Product)
        .where(Product.id == product_id, Product.stock_quantity <= 0)
        .values(in_stock=False)
    )
    logger.info(f"Reserved {quantity} units of product {product_id}")
    return True


def restore_stock(session: Session, product_id: int, quantity: int) -> None:
    session.exec(
        update(Product)
        .where(Product.id == product_id)
        .values(
            stock_quantity=Product.stock_quantity + quantity,
            in_stock=True,
            updated_at=datetime.utcnow(),
        )
    )
    logger.info(f"Restored {quantity} units of product {product_id}")


def set_stock(session: Session, product: Product, stock: int) -> Product:
    if stock < 0:
        raise ValueError("Stock cannot be negative")

    product.stock_quantity = stock
    product.in_stock = stock > 0
    product.updated_at = datetime.utcnow()
    session.add(product)
    return product


def stock_status(product: Product, low_stock_threshold: int = 5) -> str:
    if product.stock_quantity == 0:
        return "OUT_OF_STOCK"
    if product.stock_quantity <= low_stock_threshold:
        return "LOW_STOCK"
    return "IN_STOCK"
