"""Address book helpers and the checkout address resolver.

A checkout address comes either from the user's saved address book (by id)
or from an inline payload. Both end up in the same snapshot shape that is
stored on the order.
"""

from typing import List, Optional, Union

from pydantic import BaseModel
from sqlmodel import Session, select

from storefront.exceptions import (
    AddressIncompleteError,
    AddressIneligibleError,
    AddressNotFoundError,
    AddressRequiredError,
)
from storefront.models.address import Address

SHIPPING = "shipping"
BILLING = "billing"

REQUIRED_ADDRESS_FIELDS = [
    "first_name",
    "last_name",
    "address_line1",
    "city",
    "state",
    "postal_code",
    "country",
]

ORDER_ADDRESS_FIELDS = [
    "first_name",
    "last_name",
    "company",
    "address_line1",
    "address_line2",
    "city",
    "state",
    "postal_code",
    "country",
    "phone",
]


def _clean(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def normalize_address_data(address_data: Union[dict, BaseModel]) -> dict:
    if isinstance(address_data, BaseModel):
        address_data = address_data.model_dump()

    return {
        field: _clean(address_data.get(field))
        for field in ORDER_ADDRESS_FIELDS
    }


def missing_address_fields(address: dict) -> List[str]:
    return [field for field in REQUIRED_ADDRESS_FIELDS if not address.get(field)]


def resolve_order_address(
    session: Session,
    user_id: int,
    address_id: Optional[int] = None,
    address_data: Optional[Union[dict, BaseModel]] = None,
    purpose: str = SHIPPING,
) -> dict:
    if address_id is not None:
        address = session.get(Address, address_id)

        # foreign addresses look exactly like missing ones
        if not address or address.user_id != user_id:
            raise AddressNotFoundError(purpose)

        if purpose == SHIPPING and not address.can_ship():
            raise AddressIneligibleError(purpose)

        if purpose == BILLING and not address.can_bill():
            raise AddressIneligibleError(purpose)

        return address.to_order_address()

    if address_data is not None:
        address = normalize_address_data(address_data)

        missing = missing_address_fields(address)
        if missing:
            raise AddressIncompleteError(purpose, missing)

        return address

    raise AddressRequiredError(purpose)


# -------- address book --------

def create_address(session: Session, user_id: int, data: BaseModel) -> Address:
    values = data.model_dump()
    values["type"] = getattr(values["type"], "value", values["type"])

    if values.get("is_default"):
        for existing in list_addresses(session, user_id):
            if existing.is_default:
                existing.is_default = False
                session.add(existing)

    address = Address(user_id=user_id, **values)
    session.add(address)
    session.commit()
    session.refresh(address)
    return address


def list_addresses(session: Session, user_id: int) -> List[Address]:
    return session.exec(
        select(Address)
        .where(Address.user_id == user_id)
        .order_by(Address.created_at.desc())
    ).all()


def delete_address(session: Session, user_id: int, address_id: int) -> None:
    address = session.get(Address, address_id)

    if not address or address.user_id != user_id:
        raise AddressNotFoundError("saved")

    session.delete(address)
    session.commit()
