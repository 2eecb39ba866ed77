from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from storefront.constants.order_status import OrderStatus, PaymentStatus


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    tracking_number: Optional[str] = None
    carrier: Optional[str] = None
    notes: Optional[str] = None


class OrderCancelRequest(BaseModel):
    reason: Optional[str] = None


class PaymentRecordRequest(BaseModel):
    transaction_id: str = Field(min_length=1)
    amount: Decimal = Field(gt=0)
    status: PaymentStatus


class FulfillItemRequest(BaseModel):
    quantity: int = Field(gt=0)

