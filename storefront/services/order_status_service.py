"""Order status state machine and post-purchase mutations.

Forward transitions only stamp timestamps. Cancellation, whether the
customer asks for it or an admin moves the order to ``cancelled``, puts the
ordered quantities back on the shelf in the same transaction.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlmodel import Session, select

from storefront.constants.order_status import (
    CLOSED_STATUSES,
    FULFILLABLE_STATUSES,
    FulfillmentStatus,
    OrderStatus,
    PaymentStatus,
    can_transition,
)
from storefront.exceptions import (
    FulfillmentError,
    InvalidTransitionError,
    NotCancellableError,
    OrderItemNotFoundError,
    OrderNotFoundError,
    PaymentMismatchError,
    PaymentStateError,
)
from storefront.models.order import Order
from storefront.models.order_item import OrderItem
from storefront.services.inventory_service import restore_stock
from storefront.services.order_event_service import log_order_event
from storefront.utils.money import to_money

logger = logging.getLogger(__name__)

STATUS_TIMESTAMPS = {
    OrderStatus.confirmed: "confirmed_at",
    OrderStatus.shipped: "shipped_at",
    OrderStatus.delivered: "delivered_at",
}


def _commit(session: Session, obj):
    try:
        session.commit()
    except Exception:
        session.rollback()
        raise
    session.refresh(obj)
    return obj


def _append_note(order: Order, note: Optional[str]):
    if not note:
        return
    order.admin_notes = f"{order.admin_notes}\n{note}" if order.admin_notes else note


def _apply_cancellation(session: Session, order: Order, reason: Optional[str], actor: str):
    for item in order.items:
        restore_stock(session, item.product_id, item.quantity)
        if item.fulfillment_status != FulfillmentStatus.fulfilled.value:
            item.fulfillment_status = FulfillmentStatus.cancelled.value
            session.add(item)

    previous = order.status
    now = datetime.utcnow()
    order.status = OrderStatus.cancelled.value
    order.cancelled_at = now
    order.updated_at = now
    _append_note(order, reason)
    session.add(order)

    log_order_event(
        session,
        order_id=order.id,
        event_type="order_cancelled",
        label="Order cancelled",
        actor=actor,
        details={"from": previous, "reason": reason},
    )


def update_order_status(
    session: Session,
    order_id: int,
    target_status,
    tracking_number: Optional[str] = None,
    carrier: Optional[str] = None,
    notes: Optional[str] = None,
    actor: str = "admin",
) -> Order:
    # concurrent cancellations must not restore stock twice
    order = session.exec(
        select(Order).where(Order.id == order_id).with_for_update()
    ).first()
    if not order:
        raise OrderNotFoundError(order_id)

    target = OrderStatus(target_status)

    if not can_transition(order.status, target):
        raise InvalidTransitionError(order.status, target.value)

    try:
        if target == OrderStatus.cancelled:
            _apply_cancellation(session, order, notes, actor)
        else:
            previous = order.status
            now = datetime.utcnow()

            order.status = target.value
            order.updated_at = now

            stamp = STATUS_TIMESTAMPS.get(target)
            if stamp:
                setattr(order, stamp, now)

            if target == OrderStatus.shipped:
                if tracking_number:
                    order.tracking_number = tracking_number
                if carrier:
                    order.carrier = carrier

            if target == OrderStatus.refunded and order.payment_status == PaymentStatus.paid.value:
                order.payment_status = PaymentStatus.refunded.value

            _append_note(order, notes)

            session.add(order)

            log_order_event(
                session,
                order_id=order.id,
                event_type=f"order_{target.value}",
                label=f"Order {target.value}",
                actor=actor,
                details={
                    "from": previous,
                    "to": target.value,
                    "tracking_number": order.tracking_number,
                },
            )
    except Exception:
        session.rollback()
        raise

    _commit(session, order)
    logger.info(f"Order {order.order_number} moved to {order.status}")
    return order


def cancel_order(
    session: Session,
    user_id: int,
    order_id: int,
    reason: Optional[str] = None,
) -> Order:
    order = session.exec(
        select(Order)
        .where(Order.id == order_id, Order.user_id == user_id)
        .with_for_update()
    ).first()

    # missing and foreign orders are indistinguishable
    if not order:
        raise OrderNotFoundError(order_id)

    if not order.can_be_cancelled:
        raise NotCancellableError(order.status)

    try:
        _apply_cancellation(session, order, reason, f"user:{user_id}")
    except Exception:
        session.rollback()
        raise

    _commit(session, order)
    logger.info(f"Order {order.order_number} cancelled by user {user_id}")
    return order


def fulfill_order_item(
    session: Session,
    order_item_id: int,
    quantity: int,
    actor: str = "admin",
) -> OrderItem:
    item = session.get(OrderItem, order_item_id)
    if not item:
        raise OrderItemNotFoundError(order_item_id)

    if quantity <= 0:
        raise FulfillmentError("Fulfillment quantity must be greater than 0")

    order = item.order
    if order.status not in [s.value for s in FULFILLABLE_STATUSES]:
        raise FulfillmentError(
            f"Cannot fulfill items of an order in status {order.status}",
            order_status=order.status,
        )

    if item.fulfillment_status == FulfillmentStatus.cancelled.value:
        raise FulfillmentError("Cannot fulfill a cancelled order item")

    if quantity > item.remaining_quantity:
        raise FulfillmentError(
            f"Cannot fulfill {quantity} of {item.product_title}; "
            f"only {item.remaining_quantity} remaining",
            remaining_quantity=item.remaining_quantity,
        )

    item.fulfilled_quantity += quantity
    item.fulfillment_status = (
        FulfillmentStatus.fulfilled.value
        if item.remaining_quantity == 0
        else FulfillmentStatus.partially_fulfilled.value
    )
    session.add(item)

    log_order_event(
        session,
        order_id=order.id,
        event_type="item_fulfilled",
        label=f"{quantity} x {item.product_title} fulfilled",
        actor=actor,
        details={"order_item_id": item.id, "quantity": quantity},
    )

    return _commit(session, item)


def record_payment(
    session: Session,
    order_id: int,
    transaction_id: str,
    amount,
    status,
    actor: str = "admin",
) -> Order:
    order = session.exec(
        select(Order).where(Order.id == order_id).with_for_update()
    ).first()
    if not order:
        raise OrderNotFoundError(order_id)

    if order.status in [s.value for s in CLOSED_STATUSES]:
        raise PaymentStateError(order.status)

    status = PaymentStatus(status)
    amount = to_money(amount)

    if status == PaymentStatus.paid and amount != to_money(order.total):
        raise PaymentMismatchError(order.total, amount)

    order.payment_status = status.value
    order.payment_reference = transaction_id
    order.updated_at = datetime.utcnow()
    session.add(order)

    log_order_event(
        session,
        order_id=order.id,
        event_type=f"payment_{status.value}",
        label=f"Payment {status.value}",
        actor=actor,
        details={"transaction_id": transaction_id, "amount": str(amount)},
    )

    _commit(session, order)
    logger.info(f"Payment {transaction_id} recorded as {status.value} for order {order.order_number}")
    return order
