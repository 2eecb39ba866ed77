from sqlmodel import SQLModel, Field
from sqlalchemy import CheckConstraint, Column, JSON
from typing import Optional, List
from datetime import datetime
from decimal import Decimal


class Product(SQLModel, table=True):
    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="ck_product_stock_non_negative"),
    )

    #main info
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    slug: str = Field(index=True, unique=True)
    description: str = ""
    sku: Optional[str] = None

    #pricing
    price: Decimal = Field(max_digits=10, decimal_places=2)
    currency: str = Field(default="USD")

    #inventory record
    stock_quantity: int = Field(default=0)
    in_stock: bool = Field(default=True)
    is_active: bool = Field(default=True)

    #snapshot material for order lines
    images: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    specifications: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    #timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_available(self) -> bool:
        return self.is_active and self.in_stock and self.stock_quantity > 0

    @property
    def main_image(self) -> Optional[str]:
        return self.images[0] if self.images else None
