"""Checkout: turn a user's cart into an order in one transaction.

Everything is validated before the first write. Stock is reserved with a
conditional UPDATE so two concurrent checkouts cannot oversell the same
product; the loser of such a race gets a ``CartValidationError`` and its
whole transaction is rolled back.
"""

import logging
import random
import time
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal

from sqlmodel import Session, select

from storefront.constants.order_status import OrderStatus, PaymentStatus
from storefront.constants.pricing import (
    DEFAULT_CURRENCY,
    FREE_SHIPPING_THRESHOLD,
    ORDER_NUMBER_MAX_ATTEMPTS,
    ORDER_NUMBER_PREFIX,
    STANDARD_SHIPPING_RATE,
    TAX_RATE,
)
from storefront.exceptions import (
    CartValidationError,
    EmptyCartError,
    InactiveUserError,
    OrderNumberGenerationError,
)
from storefront.models.order import Order
from storefront.models.order_item import OrderItem
from storefront.models.user import User
from storefront.schemas.checkout_schemas import CheckoutRequest
from storefront.services.address_service import BILLING, SHIPPING, resolve_order_address
from storefront.services.cart_service import empty_cart, find_cart, line_problem
from storefront.services.inventory_service import lock_products, reserve_stock
from storefront.services.order_event_service import log_order_event
from storefront.utils.money import to_money

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    discount: Decimal
    total: Decimal


def calculate_order_totals(subtotal, discount=Decimal("0")) -> OrderTotals:
    subtotal = to_money(subtotal)
    discount = to_money(discount)

    tax = to_money(subtotal * TAX_RATE)
    shipping = Decimal("0.00") if subtotal >= FREE_SHIPPING_THRESHOLD else STANDARD_SHIPPING_RATE
    shipping = to_money(shipping)
    total = to_money(subtotal + tax + shipping - discount)

    return OrderTotals(
        subtotal=subtotal,
        tax=tax,
        shipping=shipping,
        discount=discount,
        total=total,
    )


def _candidate_order_number() -> str:
    timestamp = str(int(time.time() * 1000))
    suffix = f"{random.randint(0, 999):03d}"
    return f"{ORDER_NUMBER_PREFIX}{timestamp[-8:]}{suffix}"


def generate_order_number(session: Session) -> str:
    for attempt in range(1, ORDER_NUMBER_MAX_ATTEMPTS + 1):
        candidate = _candidate_order_number()

        taken = session.exec(
            select(Order.id).where(Order.order_number == candidate)
        ).first()

        if taken is None:
            return candidate

        logger.warning(f"Order number collision on {candidate} (attempt {attempt})")

    raise OrderNumberGenerationError(ORDER_NUMBER_MAX_ATTEMPTS)


def create_order(session: Session, user_id: int, checkout: CheckoutRequest) -> Order:
    try:
        order = _place_order(session, user_id, checkout)
        session.commit()
    except Exception:
        session.rollback()
        raise

    session.refresh(order)
    logger.info(f"Order {order.order_number} placed by user {user_id} (total {order.total})")
    return order


def _place_order(session: Session, user_id: int, checkout: CheckoutRequest) -> Order:
    user = session.get(User, user_id)
    if user is None or not user.can_login:
        raise InactiveUserError(user_id)

    # 1. cart with live product state
    cart = find_cart(session, user_id)
    if cart is None or cart.is_empty:
        raise EmptyCartError()

    lines = list(cart.items)
    products = lock_products(session, [line.product_id for line in lines])

    # 2. re-validate every line, reporting all of them
    errors = []
    unavailable = []
    for line in lines:
        error, is_unavailable = line_problem(line, products.get(line.product_id))
        if error:
            errors.append(error)
            if is_unavailable:
                unavailable.append(line.product_id)

    if errors:
        raise CartValidationError(errors, unavailable)

    # 3. addresses
    shipping_address = resolve_order_address(
        session,
        user_id,
        checkout.shipping_address_id,
        checkout.shipping_address,
        SHIPPING,
    )

    billing_id = checkout.billing_address_id
    billing_data = checkout.billing_address
    if billing_id is None and billing_data is None:
        billing_address = dict(shipping_address)
    else:
        billing_address = resolve_order_address(
            session, user_id, billing_id, billing_data, BILLING
        )

    # 4. totals from captured cart prices
    subtotal = sum(
        (to_money(line.price) * line.quantity for line in lines),
        Decimal("0"),
    )
    totals = calculate_order_totals(subtotal)

    # 5-6. header
    order = Order(
        order_number=generate_order_number(session),
        user_id=user_id,
        status=OrderStatus.pending.value,
        payment_status=PaymentStatus.pending.value,
        subtotal=totals.subtotal,
        tax=totals.tax,
        shipping=totals.shipping,
        discount=totals.discount,
        total=totals.total,
        currency=DEFAULT_CURRENCY,
        shipping_address=shipping_address,
        billing_address=billing_address,
        payment_method=checkout.payment_method,
        customer_notes=checkout.customer_notes,
    )
    session.add(order)
    session.flush()

    # 7. lines with a frozen product snapshot
    for line in lines:
        product = products[line.product_id]
        session.add(OrderItem(
            order_id=order.id,
            product_id=product.id,
            product_title=product.title,
            product_sku=product.sku,
            product_description=product.description,
            product_images=list(product.images) if product.images else None,
            product_specifications=dict(product.specifications) if product.specifications else None,
            quantity=line.quantity,
            unit_price=to_money(line.price),
        ))

    # 8. reserve stock
    quantities = defaultdict(int)
    for line in lines:
        quantities[line.product_id] += line.quantity

    for product_id, quantity in quantities.items():
        if not reserve_stock(session, product_id, quantity):
            product = products[product_id]
            raise CartValidationError(
                [f"Product \"{product.title}\" no longer has {quantity} units in stock"],
            )

    # 9. cart is emptied, not deleted
    empty_cart(session, cart)

    log_order_event(
        session,
        order_id=order.id,
        event_type="order_created",
        label="Order placed",
        actor=f"user:{user_id}",
        details={
            "order_number": order.order_number,
            "total": str(totals.total),
            "items": len(lines),
        },
    )

    return order
