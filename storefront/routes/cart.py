from fastapi import APIRouter, Depends
from sqlmodel import Session
from storefront.database import get_session
from storefront.dependencies.permissions import require_customer
from storefront.models.user import User
from storefront.schemas.cart_schemas import CartAddRequest, CartUpdateRequest, CartValidationResult
from storefront.services import cart_service
from storefront.services.checkout_service import calculate_order_totals
from storefront.utils.money import money_out


router = APIRouter()


# View Cart

@router.get("")
def get_cart(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer)
):
    cart = cart_service.get_cart(session, current_user.id)
    return cart_service.serialize_cart(cart)


# Add to Cart

@router.post("/items")
def add_to_cart(
    data: CartAddRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer)
):
    cart = cart_service.add_item(session, current_user.id, data.product_id, data.quantity)
    return {"message": "Added to cart", "cart": cart_service.serialize_cart(cart)}


# Update quantity

@router.put("/items/{item_id}")
def update_cart_item(
    item_id: int,
    data: CartUpdateRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer)
):
    cart = cart_service.update_item(session, current_user.id, item_id, data.quantity)
    return {"message": "Cart updated", "cart": cart_service.serialize_cart(cart)}


# Remove single item

@router.delete("/items/{item_id}")
def remove_cart_item(
    item_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer)
):
    cart = cart_service.remove_item(session, current_user.id, item_id)
    return {"message": "Item removed", "cart": cart_service.serialize_cart(cart)}


# Clear cart

@router.delete("")
def clear_cart(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer)
):
    cart_service.clear_cart(session, current_user.id)
    return {"message": "Cart cleared"}


@router.get("/validate", response_model=CartValidationResult)
def validate_cart(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer)
):
    return cart_service.validate_cart(session, current_user.id)


@router.post("/refresh-prices")
def refresh_prices(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer)
):
    cart = cart_service.refresh_cart_prices(session, current_user.id)
    return cart_service.serialize_cart(cart)


# Checkout preview

@router.get("/summary")
def cart_summary(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer)
):
    cart = cart_service.get_cart(session, current_user.id)
    totals = calculate_order_totals(cart_service.calculate_cart_totals(cart)["subtotal"])

    return {
        "total_items": cart.total_items,
        "subtotal": money_out(totals.subtotal),
        "tax": money_out(totals.tax),
        "shipping": money_out(totals.shipping),
        "discount": money_out(totals.discount),
        "total": money_out(totals.total),
    }
