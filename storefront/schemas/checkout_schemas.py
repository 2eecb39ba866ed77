# storefront/schemas/checkout_schemas.py
from pydantic import BaseModel
from typing import Optional

from storefront.schemas.address_schemas import OrderAddressInput


class CheckoutRequest(BaseModel):
    shipping_address_id: Optional[int] = None
    shipping_address: Optional[OrderAddressInput] = None
    billing_address_id: Optional[int] = None     # defaults to the shipping address
    billing_address: Optional[OrderAddressInput] = None
    payment_method: Optional[str] = None
    customer_notes: Optional[str] = None
