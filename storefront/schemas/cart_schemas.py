from typing import List
from pydantic import BaseModel, Field


class CartAddRequest(BaseModel):
    product_id: int
    quantity: int = Field(default=1, gt=0)


class CartUpdateRequest(BaseModel):
    quantity: int  # 0 or less removes the line


class PriceChange(BaseModel):
    product_id: int
    old_price: float
    new_price: float


class CartValidationResult(BaseModel):
    is_valid: bool
    errors: List[str] = []
    unavailable_product_ids: List[int] = []
    price_changes: List[PriceChange] = []
