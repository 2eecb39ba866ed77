from fastapi import APIRouter, Depends, status
from sqlmodel import Session
from storefront.database import get_session
from storefront.dependencies.permissions import require_customer
from storefront.models.address import Address
from storefront.models.user import User
from storefront.schemas.address_schemas import AddressCreate
from storefront.services.address_service import create_address, delete_address, list_addresses

router = APIRouter()


def serialize_address(address: Address) -> dict:
    return {
        "id": address.id,
        "type": address.type,
        "label": address.label,
        "is_default": address.is_default,
        **address.to_order_address(),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def add_address(
    data: AddressCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer)
):
    address = create_address(session, current_user.id, data)
    return {"message": "Address saved", "address": serialize_address(address)}


@router.get("")
def get_addresses(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer)
):
    return [serialize_address(a) for a in list_addresses(session, current_user.id)]


@router.delete("/{address_id}")
def remove_address(
    address_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer)
):
    delete_address(session, current_user.id, address_id)
    return {"message": "Address deleted"}
