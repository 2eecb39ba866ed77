from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import Column, JSON
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from storefront.constants.order_status import (
    OrderStatus,
    PaymentStatus,
    CANCELLABLE_STATUSES,
)
from storefront.models.order_item import OrderItem


class Order(SQLModel, table=True):
    __tablename__ = "orders"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_number: str = Field(max_length=50, index=True, unique=True)
    user_id: int = Field(foreign_key="user.id", index=True)

    status: str = Field(default=OrderStatus.pending.value, index=True)
    payment_status: str = Field(default=PaymentStatus.pending.value)

    # totals, frozen at checkout
    subtotal: Decimal = Field(max_digits=10, decimal_places=2)
    tax: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)
    shipping: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)
    discount: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)
    total: Decimal = Field(max_digits=10, decimal_places=2)
    currency: str = Field(default="USD", max_length=10)

    # address snapshots
    shipping_address: dict = Field(sa_column=Column(JSON, nullable=False))
    billing_address: dict = Field(sa_column=Column(JSON, nullable=False))

    payment_method: Optional[str] = Field(default=None, max_length=50)
    payment_reference: Optional[str] = Field(default=None, max_length=100)
    customer_notes: Optional[str] = None

    # fulfillment, set after creation
    admin_notes: Optional[str] = None
    tracking_number: Optional[str] = Field(default=None, max_length=100)
    carrier: Optional[str] = Field(default=None, max_length=100)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    confirmed_at: Optional[datetime] = None
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    items: List["OrderItem"] = Relationship(back_populates="order")

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def can_be_cancelled(self) -> bool:
        return self.status in [s.value for s in CANCELLABLE_STATUSES]
