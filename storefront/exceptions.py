"""Domain errors raised by the storefront services.

Every error carries an HTTP status and a machine-readable code so the
exception handler in ``storefront.main`` can translate it uniformly into
``{"code": ..., "message": ...}``. Extra keyword arguments become part of
the response body.
"""

from typing import List, Optional


class StorefrontError(Exception):
    status_code = 400
    code = "BAD_REQUEST"

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, **self.details}


# -------- identity --------

class InactiveUserError(StorefrontError):
    code = "USER_INACTIVE"

    def __init__(self, user_id: int):
        super().__init__(f"User {user_id} is not active")


# -------- cart / catalog --------

class EmptyCartError(StorefrontError):
    code = "EMPTY_CART"

    def __init__(self):
        super().__init__("Cart is empty")


class CartValidationError(StorefrontError):
    code = "CART_VALIDATION_FAILED"

    def __init__(self, errors: List[str], unavailable_product_ids: Optional[List[int]] = None):
        super().__init__(
            f"Cart validation failed: {', '.join(errors)}",
            errors=list(errors),
            unavailable_product_ids=list(unavailable_product_ids or []),
        )
        self.errors = list(errors)


class ProductNotFoundError(StorefrontError):
    status_code = 404
    code = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} not found or inactive")


class CartItemNotFoundError(StorefrontError):
    status_code = 404
    code = "CART_ITEM_NOT_FOUND"

    def __init__(self, item_id: int):
        super().__init__(f"Cart item {item_id} not found")


class InsufficientStockError(StorefrontError):
    status_code = 409
    code = "INSUFFICIENT_STOCK"

    def __init__(self, title: str, available: int, requested: int):
        super().__init__(
            f"Only {available} units of \"{title}\" available, but {requested} requested",
            available=available,
            requested=requested,
        )


# -------- addresses --------

class AddressRequiredError(StorefrontError):
    code = "ADDRESS_REQUIRED"

    def __init__(self, purpose: str):
        super().__init__(f"{purpose} address is required", purpose=purpose)


class AddressNotFoundError(StorefrontError):
    status_code = 404
    code = "ADDRESS_NOT_FOUND"

    def __init__(self, purpose: str):
        super().__init__(f"{purpose} address not found", purpose=purpose)


class AddressIneligibleError(StorefrontError):
    code = "ADDRESS_INELIGIBLE"

    def __init__(self, purpose: str):
        super().__init__(f"Address cannot be used for {purpose}", purpose=purpose)


class AddressIncompleteError(StorefrontError):
    code = "ADDRESS_INCOMPLETE"

    def __init__(self, purpose: str, missing_fields: List[str]):
        super().__init__(
            f"{purpose} address is missing: {', '.join(missing_fields)}",
            purpose=purpose,
            missing_fields=list(missing_fields),
        )
        self.missing_fields = list(missing_fields)


# -------- orders --------

class OrderNotFoundError(StorefrontError):
    status_code = 404
    code = "ORDER_NOT_FOUND"

    def __init__(self, order_id):
        super().__init__(f"Order {order_id} not found")


class OrderItemNotFoundError(StorefrontError):
    status_code = 404
    code = "ORDER_ITEM_NOT_FOUND"

    def __init__(self, item_id):
        super().__init__(f"Order item {item_id} not found")


class InvalidTransitionError(StorefrontError):
    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, current_status: str, target_status: str):
        super().__init__(
            f"Invalid status transition from {current_status} to {target_status}",
            current_status=current_status,
            target_status=target_status,
        )
        self.current_status = current_status
        self.target_status = target_status


class NotCancellableError(StorefrontError):
    code = "NOT_CANCELLABLE"

    def __init__(self, current_status: str):
        super().__init__(
            f"Order cannot be cancelled in its current status: {current_status}",
            current_status=current_status,
        )


class FulfillmentError(StorefrontError):
    code = "INVALID_FULFILLMENT"


class PaymentMismatchError(StorefrontError):
    code = "PAYMENT_AMOUNT_MISMATCH"

    def __init__(self, expected, received):
        super().__init__(
            f"Payment amount {received} does not match order total {expected}",
            expected=float(expected),
            received=float(received),
        )


class OrderNumberGenerationError(StorefrontError):
    status_code = 500
    code = "ORDER_NUMBER_EXHAUSTED"

    def __init__(self, attempts: int):
        super().__init__(f"Could not generate a unique order number after {attempts} attempts")


class PaymentStateError(StorefrontError):
    code = "INVALID_PAYMENT_STATE"

    def __init__(self, order_status: str):
        super().__init__(
            f"Cannot record a payment for an order in status {order_status}",
            order_status=order_status,
        )
