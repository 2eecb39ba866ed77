"""Post-purchase mutations: line fulfillment, payments and reporting."""

from datetime import date
from decimal import Decimal

import pytest

from storefront.constants.order_status import OrderStatus
from storefront.exceptions import (
    FulfillmentError,
    OrderItemNotFoundError,
    OrderNotFoundError,
    PaymentMismatchError,
    PaymentStateError,
)
from storefront.services.order_service import (
    get_order,
    get_order_statistics,
    list_orders,
    serialize_order,
)
from storefront.services.order_status_service import (
    cancel_order,
    fulfill_order_item,
    record_payment,
)


class TestFulfillOrderItem:

    def test_partial_then_full(self, session, make_user, make_product, make_order):
        order = make_order(make_user(), [(make_product(), 3)], status=OrderStatus.confirmed)
        item = order.items[0]

        item = fulfill_order_item(session, item.id, 2)
        assert item.fulfilled_quantity == 2
        assert item.fulfillment_status == "partially_fulfilled"

        item = fulfill_order_item(session, item.id, 1)
        assert item.fulfilled_quantity == 3
        assert item.fulfillment_status == "fulfilled"

    def test_cannot_exceed_ordered_quantity(self, session, make_user, make_product, make_order):
        order = make_order(make_user(), [(make_product(), 2)], status=OrderStatus.processing)
        item = order.items[0]
        fulfill_order_item(session, item.id, 1)

        with pytest.raises(FulfillmentError):
            fulfill_order_item(session, item.id, 2)

        session.refresh(item)
        assert item.fulfilled_quantity == 1

    @pytest.mark.parametrize("status", [
        OrderStatus.pending,
        OrderStatus.delivered,
        OrderStatus.cancelled,
        OrderStatus.refunded,
    ])
    def test_only_open_orders_can_be_fulfilled(self, session, make_user, make_product, make_order, status):
        order = make_order(make_user(), [(make_product(), 1)], status=status)

        with pytest.raises(FulfillmentError):
            fulfill_order_item(session, order.items[0].id, 1)

    def test_unknown_item(self, session):
        with pytest.raises(OrderItemNotFoundError):
            fulfill_order_item(session, 404, 1)

    def test_cancel_keeps_fulfilled_lines(self, session, make_user, make_product, make_order):
        user = make_user()
        order = make_order(user, [(make_product(), 1), (make_product(), 2)], status=OrderStatus.confirmed)
        done, open_ = order.items
        fulfill_order_item(session, done.id, 1)

        order = cancel_order(session, user.id, order.id)

        statuses = {i.id: i.fulfillment_status for i in order.items}
        assert statuses == {done.id: "fulfilled", open_.id: "cancelled"}


class TestRecordPayment:

    def test_paid_with_matching_amount(self, session, make_user, make_product, make_order):
        order = make_order(make_user(), [(make_product(price="20.00"), 2)])

        order = record_payment(session, order.id, "txn_123", Decimal("40.00"), "paid")

        assert order.payment_status == "paid"
        assert order.payment_reference == "txn_123"

    def test_amount_mismatch(self, session, make_user, make_product, make_order):
        order = make_order(make_user(), [(make_product(price="20.00"), 2)])

        with pytest.raises(PaymentMismatchError):
            record_payment(session, order.id, "txn_123", Decimal("39.99"), "paid")

        session.refresh(order)
        assert order.payment_status == "pending"

    def test_failed_payment_skips_amount_check(self, session, make_user, make_product, make_order):
        order = make_order(make_user(), [(make_product(price="20.00"), 2)])

        order = record_payment(session, order.id, "txn_9", Decimal("1.00"), "failed")

        assert order.payment_status == "failed"

    @pytest.mark.parametrize("status", [OrderStatus.cancelled, OrderStatus.refunded])
    def test_closed_order_rejects_payment(self, session, make_user, make_product, make_order, status):
        order = make_order(make_user(), [(make_product(price="20.00"), 1)], status=status)

        with pytest.raises(PaymentStateError) as exc:
            record_payment(session, order.id, "txn_1", order.total, "paid")

        assert exc.value.code == "INVALID_PAYMENT_STATE"
        session.refresh(order)
        assert order.payment_status == "pending"
        assert order.payment_reference is None

    def test_payment_after_cancellation(self, session, make_user, make_product, make_order):
        user = make_user()
        order = make_order(user, [(make_product(price="20.00"), 1)])
        cancel_order(session, user.id, order.id)

        with pytest.raises(PaymentStateError):
            record_payment(session, order.id, "txn_1", order.total, "paid")

        session.refresh(order)
        assert order.status == "cancelled"
        assert order.payment_status == "pending"

    def test_unknown_order(self, session):
        with pytest.raises(OrderNotFoundError):
            record_payment(session, 1, "txn", Decimal("1.00"), "paid")


class TestOrderQueries:

    def test_get_order_hides_foreign_orders(self, session, make_user, make_product, make_order):
        owner = make_user()
        order = make_order(owner, [(make_product(), 1)])

        assert get_order(session, owner.id, order.id).id == order.id
        with pytest.raises(OrderNotFoundError):
            get_order(session, make_user().id, order.id)

    def test_list_orders_paginates_and_filters(self, session, make_user, make_product, make_order):
        user = make_user()
        product = make_product()
        for _ in range(3):
            make_order(user, [(product, 1)])
        make_order(user, [(product, 1)], status=OrderStatus.shipped)
        make_order(make_user(), [(product, 1)])

        page = list_orders(session, user.id, page=1, limit=2)
        assert page["total_items"] == 4
        assert page["total_pages"] == 2
        assert len(page["results"]) == 2

        shipped = list_orders(session, user.id, status="shipped")
        assert [o["status"] for o in shipped["results"]] == ["shipped"]

        assert list_orders(session, user.id, start_date=date(2000, 1, 1), end_date=date(2000, 1, 2))["total_items"] == 0

    def test_statistics_exclude_cancelled_revenue(self, session, make_user, make_product, make_order):
        user = make_user()
        product = make_product(price="10.00")
        make_order(user, [(product, 1)])
        make_order(user, [(product, 3)], status=OrderStatus.delivered)
        make_order(user, [(product, 5)], status=OrderStatus.cancelled)

        stats = get_order_statistics(session)

        assert stats["total_orders"] == 3
        assert stats["total_revenue"] == 40.0
        assert stats["average_order_value"] == 20.0
        assert stats["orders_by_status"]["cancelled"] == 1
        assert stats["orders_by_status"]["refunded"] == 0

    def test_serialized_order_renders_money_as_numbers(self, session, make_user, make_product, make_order):
        order = make_order(make_user(), [(make_product(price="29.99"), 2)])

        data = serialize_order(session, order)

        assert data["total"] == 59.98
        assert data["items"][0]["unit_price"] == 29.99
        assert data["items"][0]["total"] == 59.98
        assert data["can_be_cancelled"] is True
        assert data["timeline"] == []
