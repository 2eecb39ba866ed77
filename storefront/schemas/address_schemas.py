from typing import Optional
from pydantic import BaseModel

from storefront.models.address import AddressType


class AddressCreate(BaseModel):
    type: AddressType = AddressType.both
    first_name: str
    last_name: str
    company: Optional[str] = None
    address_line1: str
    address_line2: Optional[str] = None
    city: str
    state: str
    postal_code: str
    country: str = "United States"
    phone: Optional[str] = None
    is_default: bool = False
    label: Optional[str] = None


class OrderAddressInput(BaseModel):
    # everything optional here; completeness is checked by the address resolver
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None
