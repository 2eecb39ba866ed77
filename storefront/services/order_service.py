from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlmodel import Session, select

from storefront.constants.order_status import OrderStatus
from storefront.exceptions import OrderNotFoundError
from storefront.models.order import Order
from storefront.models.order_item import OrderItem
from storefront.models.user import User
from storefront.services.order_event_service import list_order_events
from storefront.utils.money import money_out, to_money
from storefront.utils.pagination import paginate

# orders that never turned into money
NON_REVENUE_STATUSES = [OrderStatus.cancelled.value, OrderStatus.refunded.value]


def get_order(session: Session, user_id: int, order_id: int) -> Order:
    order = session.get(Order, order_id)

    if not order or order.user_id != user_id:
        raise OrderNotFoundError(order_id)

    return order


def get_order_admin(session: Session, order_id: int) -> Order:
    order = session.get(Order, order_id)
    if not order:
        raise OrderNotFoundError(order_id)
    return order


def _date_filters(query, start_date: Optional[date], end_date: Optional[date]):
    if start_date:
        query = query.where(Order.created_at >= datetime.combine(start_date, time.min))

    if end_date:
        query = query.where(Order.created_at <= datetime.combine(end_date, time.max))

    return query


def list_orders(
    session: Session,
    user_id: int,
    page: int = 1,
    limit: int = 10,
    status: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> dict:
    query = select(Order).where(Order.user_id == user_id)

    if status:
        query = query.where(Order.status == OrderStatus(status).value)

    query = _date_filters(query, start_date, end_date).order_by(Order.created_at.desc())

    return paginate(
        session=session,
        query=query,
        page=page,
        limit=limit,
        serialize=serialize_order_summary,
    )


def list_all_orders(
    session: Session,
    page: int = 1,
    limit: int = 10,
    status: Optional[str] = None,
    search: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> dict:
    query = select(Order, User).join(User, User.id == Order.user_id)

    if search:
        query = query.where(
            (User.first_name.ilike(f"%{search}%")) |
            (User.last_name.ilike(f"%{search}%")) |
            (User.email.ilike(f"%{search}%")) |
            (Order.order_number.ilike(f"%{search}%"))
        )

    if status:
        query = query.where(Order.status == OrderStatus(status).value)

    query = _date_filters(query, start_date, end_date).order_by(Order.created_at.desc())

    return paginate(
        session=session,
        query=query,
        page=page,
        limit=limit,
        serialize=lambda row: {
            **serialize_order_summary(row[0]),
            "customer_name": row[1].full_name,
            "customer_email": row[1].email,
        },
    )


def get_order_statistics(
    session: Session,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> dict:
    counts_query = _date_filters(
        select(Order.status, func.count(Order.id)).group_by(Order.status),
        start_date,
        end_date,
    )
    by_status = {status: count for status, count in session.exec(counts_query).all()}

    revenue_query = _date_filters(
        select(func.count(Order.id), func.coalesce(func.sum(Order.total), 0))
        .where(Order.status.not_in(NON_REVENUE_STATUSES)),
        start_date,
        end_date,
    )
    revenue_orders, revenue = session.exec(revenue_query).one()

    revenue = to_money(revenue or 0)
    average = to_money(revenue / revenue_orders) if revenue_orders else Decimal("0.00")

    return {
        "total_orders": sum(by_status.values()),
        "total_revenue": money_out(revenue),
        "average_order_value": money_out(average),
        "orders_by_status": {
            s.value: by_status.get(s.value, 0) for s in OrderStatus
        },
    }


# -------- serializers --------

def serialize_order_item(item: OrderItem) -> dict:
    return {
        "id": item.id,
        "product_id": item.product_id,
        "title": item.product_title,
        "sku": item.product_sku,
        "image": item.product_images[0] if item.product_images else None,
        "quantity": item.quantity,
        "unit_price": money_out(item.unit_price),
        "total": money_out(to_money(item.line_total)),
        "fulfilled_quantity": item.fulfilled_quantity,
        "fulfillment_status": item.fulfillment_status,
    }


def serialize_order_summary(order: Order) -> dict:
    return {
        "order_id": order.id,
        "order_number": order.order_number,
        "status": order.status,
        "payment_status": order.payment_status,
        "total": money_out(order.total),
        "currency": order.currency,
        "total_items": order.total_items,
        "created_at": order.created_at,
    }


def serialize_order(session: Session, order: Order) -> dict:
    return {
        **serialize_order_summary(order),
        "subtotal": money_out(order.subtotal),
        "tax": money_out(order.tax),
        "shipping": money_out(order.shipping),
        "discount": money_out(order.discount),
        "shipping_address": order.shipping_address,
        "billing_address": order.billing_address,
        "payment_method": order.payment_method,
        "payment_reference": order.payment_reference,
        "customer_notes": order.customer_notes,
        "admin_notes": order.admin_notes,
        "tracking_number": order.tracking_number,
        "carrier": order.carrier,
        "can_be_cancelled": order.can_be_cancelled,
        "updated_at": order.updated_at,
        "confirmed_at": order.confirmed_at,
        "shipped_at": order.shipped_at,
        "delivered_at": order.delivered_at,
        "cancelled_at": order.cancelled_at,
        "items": [serialize_order_item(i) for i in order.items],
        "timeline": [
            {
                "event": e.event_type,
                "label": e.label,
                "actor": e.actor,
                "created_at": e.created_at,
            }
            for e in list_order_events(session, order.id)
        ],
    }
