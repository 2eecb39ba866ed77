from decimal import Decimal

import pytest

from storefront.exceptions import (
    CartItemNotFoundError,
    InsufficientStockError,
    ProductNotFoundError,
)
from storefront.services import cart_service


class TestValidateCart:

    def test_valid_cart(self, session, make_user, make_product, fill_cart):
        user = make_user()
        fill_cart(user, [(make_product(stock=3), 3)])

        result = cart_service.validate_cart(session, user.id)

        assert result.is_valid is True
        assert result.errors == []
        assert result.price_changes == []

    def test_empty_cart_is_valid(self, session, make_user):
        user = make_user()

        result = cart_service.validate_cart(session, user.id)

        assert result.is_valid is True

    def test_reports_every_problem(self, session, make_user, make_product, fill_cart):
        user = make_user()
        retired = make_product(is_active=False, title="Retired")
        sold_out = make_product(stock=0, title="Sold Out")
        scarce = make_product(stock=2, title="Scarce")
        fill_cart(user, [(retired, 1), (sold_out, 1), (scarce, 5)])

        result = cart_service.validate_cart(session, user.id)

        assert result.is_valid is False
        assert result.errors == [
            "Product \"Retired\" is no longer available",
            "Product \"Sold Out\" is out of stock",
            "Only 2 units of \"Scarce\" available, but 5 requested",
        ]
        # short stock is an error but the product is still available
        assert result.unavailable_product_ids == [retired.id, sold_out.id]

    def test_price_change_does_not_invalidate(self, session, make_user, make_product, fill_cart):
        user = make_user()
        product = make_product(price="10.00")
        fill_cart(user, [(product, 1)])

        product.price = Decimal("12.50")
        session.add(product)
        session.commit()

        result = cart_service.validate_cart(session, user.id)

        assert result.is_valid is True
        assert len(result.price_changes) == 1
        change = result.price_changes[0]
        assert change.product_id == product.id
        assert change.old_price == 10.0
        assert change.new_price == 12.5


class TestCartOperations:

    def test_cart_is_created_lazily(self, session, make_user):
        user = make_user()
        assert cart_service.find_cart(session, user.id) is None

        cart = cart_service.get_cart(session, user.id)

        assert cart.id is not None
        assert cart_service.get_cart(session, user.id).id == cart.id

    def test_adding_same_product_merges_lines(self, session, make_user, make_product):
        user = make_user()
        product = make_product(stock=5)

        cart_service.add_item(session, user.id, product.id, 2)
        cart = cart_service.add_item(session, user.id, product.id, 1)

        assert len(cart.items) == 1
        assert cart.items[0].quantity == 3

    def test_add_beyond_stock(self, session, make_user, make_product):
        user = make_user()
        product = make_product(stock=3)
        cart_service.add_item(session, user.id, product.id, 2)

        with pytest.raises(InsufficientStockError):
            cart_service.add_item(session, user.id, product.id, 2)

    def test_add_inactive_product(self, session, make_user, make_product):
        user = make_user()
        product = make_product(is_active=False)

        with pytest.raises(ProductNotFoundError):
            cart_service.add_item(session, user.id, product.id, 1)

    def test_update_quantity(self, session, make_user, make_product):
        user = make_user()
        product = make_product(stock=5)
        cart = cart_service.add_item(session, user.id, product.id, 1)

        cart = cart_service.update_item(session, user.id, cart.items[0].id, 4)

        assert cart.items[0].quantity == 4

    def test_update_to_zero_removes_line(self, session, make_user, make_product):
        user = make_user()
        cart = cart_service.add_item(session, user.id, make_product().id, 1)

        cart = cart_service.update_item(session, user.id, cart.items[0].id, 0)

        assert cart.items == []

    def test_cannot_touch_another_users_line(self, session, make_user, make_product):
        owner = make_user()
        stranger = make_user()
        cart = cart_service.add_item(session, owner.id, make_product().id, 1)

        with pytest.raises(CartItemNotFoundError):
            cart_service.remove_item(session, stranger.id, cart.items[0].id)

    def test_clear_cart_keeps_cart(self, session, make_user, make_product):
        user = make_user()
        cart = cart_service.add_item(session, user.id, make_product().id, 1)

        cleared = cart_service.clear_cart(session, user.id)

        assert cleared.id == cart.id
        assert cleared.is_empty

    def test_refresh_prices(self, session, make_user, make_product, fill_cart):
        user = make_user()
        product = make_product(price="10.00")
        fill_cart(user, [(product, 2)])
        product.price = Decimal("8.00")
        session.add(product)
        session.commit()

        cart = cart_service.refresh_cart_prices(session, user.id)

        assert cart.items[0].price == Decimal("8.00")
        assert cart_service.calculate_cart_totals(cart)["subtotal"] == Decimal("16.00")
