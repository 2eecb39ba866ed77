from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import CheckConstraint, Column, JSON
from typing import List, Optional, TYPE_CHECKING
from decimal import Decimal

from storefront.constants.order_status import FulfillmentStatus

if TYPE_CHECKING:
    from storefront.models.order import Order


class OrderItem(SQLModel, table=True):
    __tablename__ = "order_item"
    __table_args__ = (
        CheckConstraint("fulfilled_quantity <= quantity", name="ck_order_item_fulfilled_le_quantity"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="orders.id", index=True)
    product_id: int = Field(foreign_key="product.id")

    # product snapshot at time of order
    product_title: str
    product_sku: Optional[str] = None
    product_description: Optional[str] = None
    product_images: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    product_specifications: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    quantity: int
    unit_price: Decimal = Field(max_digits=10, decimal_places=2)

    fulfilled_quantity: int = Field(default=0)
    fulfillment_status: str = Field(default=FulfillmentStatus.pending.value)

    order: Optional["Order"] = Relationship(back_populates="items")

    @property
    def line_total(self) -> Decimal:
        return Decimal(self.unit_price) * self.quantity

    @property
    def remaining_quantity(self) -> int:
        return self.quantity - self.fulfilled_quantity
