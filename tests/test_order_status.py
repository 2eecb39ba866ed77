"""Order status state machine and cancellation."""

import pytest
from sqlmodel import select

from storefront.constants.order_status import ALLOWED_TRANSITIONS, OrderStatus
from storefront.exceptions import (
    InvalidTransitionError,
    NotCancellableError,
    OrderNotFoundError,
)
from storefront.models.order_event import OrderEvent
from storefront.services.order_status_service import cancel_order, update_order_status

ALL_PAIRS = [(current, target) for current in OrderStatus for target in OrderStatus]
ALLOWED_PAIRS = [(c, t) for c, t in ALL_PAIRS if t in ALLOWED_TRANSITIONS[c]]
FORBIDDEN_PAIRS = [(c, t) for c, t in ALL_PAIRS if t not in ALLOWED_TRANSITIONS[c]]

TIMESTAMP_FIELD = {
    OrderStatus.confirmed: "confirmed_at",
    OrderStatus.shipped: "shipped_at",
    OrderStatus.delivered: "delivered_at",
    OrderStatus.cancelled: "cancelled_at",
}


class TestTransitionTable:

    def test_table_shape(self):
        assert len(ALLOWED_PAIRS) == 8
        assert ALLOWED_TRANSITIONS[OrderStatus.cancelled] == []
        assert ALLOWED_TRANSITIONS[OrderStatus.refunded] == []

    @pytest.mark.parametrize("current,target", ALLOWED_PAIRS, ids=lambda s: s.value)
    def test_allowed_transition_succeeds(self, session, make_user, make_product, make_order, current, target):
        order = make_order(make_user(), [(make_product(), 1)], status=current)

        updated = update_order_status(session, order.id, target)

        assert updated.status == target.value
        field = TIMESTAMP_FIELD.get(target)
        if field:
            assert getattr(updated, field) is not None

    @pytest.mark.parametrize("current,target", FORBIDDEN_PAIRS, ids=lambda s: s.value)
    def test_forbidden_transition_fails(self, session, make_user, make_product, make_order, current, target):
        order = make_order(make_user(), [(make_product(), 1)], status=current)

        with pytest.raises(InvalidTransitionError) as exc:
            update_order_status(session, order.id, target)

        assert exc.value.current_status == current.value
        assert exc.value.target_status == target.value
        assert str(exc.value) == f"Invalid status transition from {current.value} to {target.value}"

        session.refresh(order)
        assert order.status == current.value


class TestUpdateOrderStatus:

    def test_unknown_order(self, session):
        with pytest.raises(OrderNotFoundError):
            update_order_status(session, 999, OrderStatus.confirmed)

    def test_shipping_records_tracking(self, session, make_user, make_product, make_order):
        order = make_order(make_user(), [(make_product(), 1)], status=OrderStatus.processing)

        order = update_order_status(
            session,
            order.id,
            "shipped",
            tracking_number="1Z999",
            carrier="UPS",
            notes="Left warehouse",
        )

        assert order.tracking_number == "1Z999"
        assert order.carrier == "UPS"
        assert order.admin_notes == "Left warehouse"
        assert order.shipped_at is not None

    def test_processing_sets_no_timestamp(self, session, make_user, make_product, make_order):
        order = make_order(make_user(), [(make_product(), 1)], status=OrderStatus.confirmed)

        order = update_order_status(session, order.id, OrderStatus.processing)

        assert order.shipped_at is None
        assert order.delivered_at is None

    def test_refund_of_paid_order_refunds_payment(self, session, make_user, make_product, make_order):
        order = make_order(
            make_user(),
            [(make_product(), 1)],
            status=OrderStatus.delivered,
            payment_status="paid",
        )

        order = update_order_status(session, order.id, OrderStatus.refunded)

        assert order.payment_status == "refunded"

    def test_transition_is_logged(self, session, make_user, make_product, make_order):
        order = make_order(make_user(), [(make_product(), 1)])

        update_order_status(session, order.id, OrderStatus.confirmed, actor="admin:1")

        event = session.exec(select(OrderEvent).where(OrderEvent.order_id == order.id)).one()
        assert event.event_type == "order_confirmed"
        assert event.actor == "admin:1"
        assert event.details["from"] == "pending"

    def test_admin_cancel_restores_stock(self, session, make_user, make_product, make_order):
        product = make_product(stock=4)
        order = make_order(make_user(), [(product, 3)], status=OrderStatus.processing)

        order = update_order_status(session, order.id, OrderStatus.cancelled, notes="Out of region")

        session.refresh(product)
        assert product.stock_quantity == 7
        assert order.cancelled_at is not None
        assert order.admin_notes == "Out of region"
        assert all(i.fulfillment_status == "cancelled" for i in order.items)


class TestCancelOrder:

    def test_restores_stock_for_every_line(self, session, make_user, make_product, make_order):
        user = make_user()
        a = make_product(stock=5)
        b = make_product(stock=3)
        order = make_order(user, [(a, 2), (b, 1)])

        order = cancel_order(session, user.id, order.id, reason="Changed my mind")

        session.refresh(a)
        session.refresh(b)
        assert [a.stock_quantity, b.stock_quantity] == [7, 4]
        assert a.in_stock is True and b.in_stock is True
        assert order.status == "cancelled"
        assert order.cancelled_at is not None
        assert order.admin_notes == "Changed my mind"

    def test_sold_out_product_becomes_available(self, session, make_user, make_product, make_order):
        user = make_user()
        product = make_product(stock=0)
        order = make_order(user, [(product, 2)], status=OrderStatus.confirmed)

        cancel_order(session, user.id, order.id)

        session.refresh(product)
        assert product.stock_quantity == 2
        assert product.in_stock is True

    @pytest.mark.parametrize("status", [
        OrderStatus.processing,
        OrderStatus.shipped,
        OrderStatus.delivered,
        OrderStatus.cancelled,
        OrderStatus.refunded,
    ])
    def test_not_cancellable_leaves_stock(self, session, make_user, make_product, make_order, status):
        user = make_user()
        product = make_product(stock=5)
        order = make_order(user, [(product, 2)], status=status)

        with pytest.raises(NotCancellableError):
            cancel_order(session, user.id, order.id)

        session.refresh(product)
        session.refresh(order)
        assert product.stock_quantity == 5
        assert order.status == status.value

    def test_foreign_order_looks_missing(self, session, make_user, make_product, make_order):
        owner = make_user()
        stranger = make_user()
        order = make_order(owner, [(make_product(), 1)])

        with pytest.raises(OrderNotFoundError):
            cancel_order(session, stranger.id, order.id)

        session.refresh(order)
        assert order.status == "pending"

    def test_cancellation_is_logged(self, session, make_user, make_product, make_order):
        user = make_user()
        order = make_order(user, [(make_product(), 1)])

        cancel_order(session, user.id, order.id, reason="Too slow")

        event = session.exec(select(OrderEvent).where(OrderEvent.order_id == order.id)).one()
        assert event.event_type == "order_cancelled"
        assert event.actor == f"user:{user.id}"
        assert event.details["reason"] == "Too slow"


class TestCancellationPaths:

    def test_admin_then_customer_restores_once(self, session, make_user, make_product, make_order):
        user = make_user()
        product = make_product(stock=5)
        order = make_order(user, [(product, 2)])

        update_order_status(session, order.id, OrderStatus.cancelled, actor="admin:1")
        with pytest.raises(NotCancellableError):
            cancel_order(session, user.id, order.id)

        session.refresh(product)
        assert product.stock_quantity == 7

    def test_customer_then_admin_restores_once(self, session, make_user, make_product, make_order):
        user = make_user()
        product = make_product(stock=5)
        order = make_order(user, [(product, 2)])

        cancel_order(session, user.id, order.id)
        with pytest.raises(InvalidTransitionError):
            update_order_status(session, order.id, OrderStatus.cancelled)

        session.refresh(product)
        assert product.stock_quantity == 7
        events = session.exec(select(OrderEvent).where(OrderEvent.order_id == order.id)).all()
        assert [e.event_type for e in events] == ["order_cancelled"]

    def test_reason_is_appended_to_existing_notes(self, session, make_user, make_product, make_order):
        user = make_user()
        order = make_order(user, [(make_product(), 1)])
        order.admin_notes = "Gift wrap requested"
        session.add(order)
        session.commit()

        order = cancel_order(session, user.id, order.id, reason="Changed my mind")

        assert order.admin_notes == "Gift wrap requested\nChanged my mind"

    def test_status_notes_are_appended(self, session, make_user, make_product, make_order):
        order = make_order(make_user(), [(make_product(), 1)])

        update_order_status(session, order.id, OrderStatus.confirmed, notes="Verified by phone")
        order = update_order_status(session, order.id, OrderStatus.processing, notes="Picked")

        assert order.admin_notes == "Verified by phone\nPicked"
