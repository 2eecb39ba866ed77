from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum


class AddressType(str, Enum):
    shipping = "shipping"
    billing = "billing"
    both = "both"


class Address(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    type: str = Field(default=AddressType.both.value)

    first_name: str
    last_name: str
    company: Optional[str] = None
    address_line1: str
    address_line2: Optional[str] = None
    city: str
    state: str
    postal_code: str
    country: str = Field(default="United States")
    phone: Optional[str] = None

    is_default: bool = Field(default=False)
    label: Optional[str] = None  # "Home", "Work" ...
    created_at: datetime = Field(default_factory=datetime.utcnow)

    def can_ship(self) -> bool:
        return self.type in (AddressType.shipping.value, AddressType.both.value)

    def can_bill(self) -> bool:
        return self.type in (AddressType.billing.value, AddressType.both.value)

    def to_order_address(self) -> dict:
        return {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "company": self.company,
            "address_line1": self.address_line1,
            "address_line2": self.address_line2,
            "city": self.city,
            "state": self.state,
            "postal_code": self.postal_code,
            "country": self.country,
            "phone": self.phone,
        }
