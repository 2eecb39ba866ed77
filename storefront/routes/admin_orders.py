# -------- ADMIN ORDERS --------
from datetime import date
from fastapi import APIRouter, Depends, Query
from typing import Optional
from sqlmodel import Session
from storefront.constants.order_status import OrderStatus
from storefront.database import get_session
from storefront.dependencies.permissions import require_analytics, require_order_admin
from storefront.models.user import User
from storefront.schemas.orders_schemas import (
    FulfillItemRequest,
    OrderStatusUpdate,
    PaymentRecordRequest,
)
from storefront.services.order_service import (
    get_order_admin,
    get_order_statistics,
    list_all_orders,
    serialize_order,
    serialize_order_item,
)
from storefront.services.order_status_service import (
    fulfill_order_item,
    record_payment,
    update_order_status,
)


router = APIRouter()


@router.get("")
def list_orders(
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    status: Optional[OrderStatus] = None,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    session: Session = Depends(get_session),
    _: User = Depends(require_order_admin)
):
    return list_all_orders(
        session,
        page=page,
        limit=limit,
        status=status.value if status else None,
        search=search,
        start_date=start_date,
        end_date=end_date,
    )


# declared before /{order_id} so "statistics" is not parsed as an id
@router.get("/statistics")
def order_statistics(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    session: Session = Depends(get_session),
    _: User = Depends(require_analytics)
):
    return get_order_statistics(session, start_date=start_date, end_date=end_date)


@router.get("/{order_id}")
def order_details(
    order_id: int,
    session: Session = Depends(get_session),
    _: User = Depends(require_order_admin),
):
    return serialize_order(session, get_order_admin(session, order_id))


@router.put("/{order_id}/status")
def change_order_status(
    order_id: int,
    data: OrderStatusUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_order_admin),
):
    order = update_order_status(
        session,
        order_id,
        data.status,
        tracking_number=data.tracking_number,
        carrier=data.carrier,
        notes=data.notes,
        actor=f"admin:{admin.id}",
    )
    return {
        "message": f"Order status updated to {order.status}",
        "order": serialize_order(session, order),
    }


@router.post("/{order_id}/payment")
def add_payment(
    order_id: int,
    data: PaymentRecordRequest,
    session: Session = Depends(get_session),
    admin: User = Depends(require_order_admin),
):
    order = record_payment(
        session,
        order_id,
        transaction_id=data.transaction_id,
        amount=data.amount,
        status=data.status,
        actor=f"admin:{admin.id}",
    )
    return {
        "message": "Payment recorded",
        "order": serialize_order(session, order),
    }


@router.post("/items/{item_id}/fulfill")
def fulfill_item(
    item_id: int,
    data: FulfillItemRequest,
    session: Session = Depends(get_session),
    admin: User = Depends(require_order_admin),
):
    item = fulfill_order_item(session, item_id, data.quantity, actor=f"admin:{admin.id}")
    return {
        "message": "Item fulfilled",
        "item": serialize_order_item(item),
    }
