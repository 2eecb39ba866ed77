from enum import Enum


class OrderStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    processing = "processing"
    shipped = "shipped"
    delivered = "delivered"
    cancelled = "cancelled"
    refunded = "refunded"


class PaymentStatus(str, Enum):
    pending = "pending"
    paid = "paid"
    failed = "failed"
    refunded = "refunded"


class FulfillmentStatus(str, Enum):
    pending = "pending"
    partially_fulfilled = "partially_fulfilled"
    fulfilled = "fulfilled"
    cancelled = "cancelled"


ALLOWED_TRANSITIONS = {
    OrderStatus.pending: [OrderStatus.confirmed, OrderStatus.cancelled],
    OrderStatus.confirmed: [OrderStatus.processing, OrderStatus.cancelled],
    OrderStatus.processing: [OrderStatus.shipped, OrderStatus.cancelled],
    OrderStatus.shipped: [OrderStatus.delivered],
    OrderStatus.delivered: [OrderStatus.refunded],
    OrderStatus.cancelled: [],
    OrderStatus.refunded: [],
}

# customer-initiated cancellation is narrower than the admin transition table
CANCELLABLE_STATUSES = [OrderStatus.pending, OrderStatus.confirmed]

FULFILLABLE_STATUSES = [
    OrderStatus.confirmed,
    OrderStatus.processing,
    OrderStatus.shipped,
]


def can_transition(current, target) -> bool:
    return OrderStatus(target) in ALLOWED_TRANSITIONS.get(OrderStatus(current), [])

# no payment may be recorded against these
CLOSED_STATUSES = [OrderStatus.cancelled, OrderStatus.refunded]
