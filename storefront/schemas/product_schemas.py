from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class ProductCreate(BaseModel):
    title: str
    slug: Optional[str] = None  # derived from the title when omitted
    description: str = ""
    sku: Optional[str] = None
    price: Decimal = Field(gt=0)
    currency: str = "USD"
    stock_quantity: int = Field(default=0, ge=0)
    is_active: bool = True
    images: Optional[List[str]] = None
    specifications: Optional[dict] = None


class InventoryUpdate(BaseModel):
    stock: int = Field(ge=0)
