import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple

from sqlmodel import Session, select

from storefront.exceptions import (
    CartItemNotFoundError,
    InsufficientStockError,
    ProductNotFoundError,
)
from storefront.models.cart import Cart, CartItem
from storefront.models.product import Product
from storefront.schemas.cart_schemas import CartValidationResult, PriceChange
from storefront.utils.money import money_out, to_money

logger = logging.getLogger(__name__)


def find_cart(session: Session, user_id: int) -> Optional[Cart]:
    return session.exec(select(Cart).where(Cart.user_id == user_id)).first()


def get_cart(session: Session, user_id: int) -> Cart:
    """Return the user's cart, creating it on first access."""
    cart = find_cart(session, user_id)
    if cart is None:
        cart = Cart(user_id=user_id)
        session.add(cart)
        session.commit()
        session.refresh(cart)
        logger.info(f"Created cart {cart.id} for user {user_id}")
    return cart


def line_problem(item: CartItem, product: Optional[Product]) -> Tuple[Optional[str], bool]:
    """Check one cart line against live product state.

    Returns ``(error, unavailable)``; insufficient stock is an error that
    does not make the product wholly unavailable.
    """
    if product is None:
        return f"Product {item.product_id} no longer exists", True

    if not product.is_active:
        return f"Product \"{product.title}\" is no longer available", True

    if not product.in_stock or product.stock_quantity <= 0:
        return f"Product \"{product.title}\" is out of stock", True

    if item.quantity > product.stock_quantity:
        return (
            f"Only {product.stock_quantity} units of \"{product.title}\" "
            f"available, but {item.quantity} requested"
        ), False

    return None, False


def validate_cart(session: Session, user_id: int) -> CartValidationResult:
    cart = get_cart(session, user_id)

    errors = []
    unavailable = []
    price_changes = []

    for item in cart.items:
        product = session.get(Product, item.product_id)

        error, is_unavailable = line_problem(item, product)
        if error:
            errors.append(error)
            if is_unavailable:
                unavailable.append(item.product_id)

        # informational only, never affects is_valid
        if product is not None and to_money(item.price) != to_money(product.price):
            price_changes.append(PriceChange(
                product_id=item.product_id,
                old_price=money_out(item.price),
                new_price=money_out(product.price),
            ))

    return CartValidationResult(
        is_valid=not errors,
        errors=errors,
        unavailable_product_ids=unavailable,
        price_changes=price_changes,
    )


def _active_product(session: Session, product_id: int) -> Product:
    product = session.get(Product, product_id)
    if not product or not product.is_active:
        raise ProductNotFoundError(product_id)
    return product


def add_item(session: Session, user_id: int, product_id: int, quantity: int) -> Cart:
    product = _active_product(session, product_id)

    if not product.is_available:
        raise InsufficientStockError(product.title, 0, quantity)

    cart = get_cart(session, user_id)

    existing_item = next(
        (i for i in cart.items if i.product_id == product_id), None
    )

    if existing_item:
        new_quantity = existing_item.quantity + quantity
        if new_quantity > product.stock_quantity:
            raise InsufficientStockError(
                product.title,
                product.stock_quantity - existing_item.quantity,
                quantity,
            )
        existing_item.quantity = new_quantity
        existing_item.price = product.price  # refresh to current price
        session.add(existing_item)
    else:
        if quantity > product.stock_quantity:
            raise InsufficientStockError(product.title, product.stock_quantity, quantity)

        session.add(CartItem(
            cart_id=cart.id,
            product_id=product.id,
            quantity=quantity,
            price=product.price,
        ))

    cart.updated_at = datetime.utcnow()
    session.add(cart)
    session.commit()
    session.refresh(cart)
    return cart


def _owned_item(cart: Cart, item_id: int) -> CartItem:
    item = next((i for i in cart.items if i.id == item_id), None)
    if item is None:
        raise CartItemNotFoundError(item_id)
    return item


def update_item(session: Session, user_id: int, item_id: int, quantity: int) -> Cart:
    cart = get_cart(session, user_id)
    item = _owned_item(cart, item_id)

    if quantity <= 0:
        return remove_item(session, user_id, item_id)

    product = _active_product(session, item.product_id)
    if not product.in_stock or product.stock_quantity < quantity:
        raise InsufficientStockError(product.title, product.stock_quantity, quantity)

    item.quantity = quantity
    item.price = product.price
    session.add(item)
    session.commit()
    session.refresh(cart)
    return cart


def remove_item(session: Session, user_id: int, item_id: int) -> Cart:
    cart = get_cart(session, user_id)
    item = _owned_item(cart, item_id)

    cart.items.remove(item)
    session.delete(item)
    session.commit()
    session.refresh(cart)
    return cart


def empty_cart(session: Session, cart: Cart) -> None:
    """Delete every line but keep the cart row. Does not commit."""
    for item in list(cart.items):
        session.delete(item)
    cart.items.clear()
    cart.updated_at = datetime.utcnow()
    session.add(cart)


def clear_cart(session: Session, user_id: int) -> Cart:
    cart = get_cart(session, user_id)
    empty_cart(session, cart)
    session.commit()
    session.refresh(cart)
    return cart


def refresh_cart_prices(session: Session, user_id: int) -> Cart:
    cart = get_cart(session, user_id)

    for item in cart.items:
        product = session.get(Product, item.product_id)
        if product and product.is_active and to_money(item.price) != to_money(product.price):
            item.price = product.price
            session.add(item)

    session.commit()
    session.refresh(cart)
    return cart


def calculate_cart_totals(cart: Cart) -> dict:
    subtotal = sum(
        (item.line_total for item in cart.items),
        Decimal("0"),
    )
    return {
        "subtotal": to_money(subtotal),
        "total_items": cart.total_items,
        "item_count": len(cart.items),
    }


def serialize_cart(cart: Cart) -> dict:
    items = []
    for item in cart.items:
        product = item.product
        items.append({
            "item_id": item.id,
            "product_id": item.product_id,
            "title": product.title if product else None,
            "price": money_out(item.price),
            "current_price": money_out(product.price) if product else None,
            "quantity": item.quantity,
            "stock": product.stock_quantity if product else 0,
            "in_stock": product.in_stock if product else False,
            "total": money_out(item.line_total),
        })

    totals = calculate_cart_totals(cart)
    return {
        "cart_id": cart.id,
        "items": items,
        "subtotal": money_out(totals["subtotal"]),
        "total_items": totals["total_items"],
        "item_count": totals["item_count"],
    }
