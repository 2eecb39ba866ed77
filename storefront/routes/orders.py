from datetime import date
from fastapi import APIRouter, Depends, Query, status
from typing import Optional
from sqlmodel import Session
from storefront.constants.order_status import OrderStatus
from storefront.database import get_session
from storefront.dependencies.permissions import require_customer
from storefront.models.user import User
from storefront.schemas.checkout_schemas import CheckoutRequest
from storefront.schemas.orders_schemas import OrderCancelRequest
from storefront.services.checkout_service import create_order
from storefront.services.order_service import get_order, list_orders, serialize_order
from storefront.services.order_status_service import cancel_order

router = APIRouter()


# Place order from cart

@router.post("", status_code=status.HTTP_201_CREATED)
def place_order(
    data: CheckoutRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer)
):
    order = create_order(session, current_user.id, data)
    return {
        "message": "Order placed",
        "order": serialize_order(session, order),
    }


# My orders

@router.get("")
def my_orders(
    page: int = 1,
    limit: int = 10,
    status: Optional[OrderStatus] = None,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer)
):
    return list_orders(
        session,
        current_user.id,
        page=page,
        limit=limit,
        status=status.value if status else None,
        start_date=start_date,
        end_date=end_date,
    )


@router.get("/{order_id}")
def order_detail(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer)
):
    order = get_order(session, current_user.id, order_id)
    return serialize_order(session, order)


@router.post("/{order_id}/cancel")
def cancel_my_order(
    order_id: int,
    data: Optional[OrderCancelRequest] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer)
):
    order = cancel_order(
        session,
        current_user.id,
        order_id,
        reason=data.reason if data else None,
    )
    return {
        "message": "Order cancelled",
        "order": serialize_order(session, order),
    }
