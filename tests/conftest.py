"""Pytest fixtures for storefront tests.

Every test gets its own in-memory SQLite database. API tests share the
test's session with the app through a ``get_session`` override.
"""

import os

os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite://")
os.environ.setdefault("ENV", "test")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from storefront.constants.order_status import OrderStatus
from storefront.database import build_engine, create_db_and_tables, get_session
from storefront.main import app
from storefront.models.address import Address
from storefront.models.cart import Cart, CartItem
from storefront.models.order import Order
from storefront.models.order_item import OrderItem
from storefront.models.product import Product
from storefront.models.user import User
from storefront.utils.hash import hash_password
from storefront.utils.token import create_access_token

SHIPPING_ADDRESS = {
    "first_name": "Ada",
    "last_name": "Lovelace",
    "address_line1": "12 Analytical Way",
    "city": "Springfield",
    "state": "IL",
    "postal_code": "62701",
    "country": "United States",
}


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(session):
    app.dependency_overrides[get_session] = lambda: session
    yield TestClient(app)
    app.dependency_overrides.clear()


# -------- factories --------

@pytest.fixture
def make_user(session):
    counter = {"n": 0}

    def _make(role="customer", can_login=True, password="secret123"):
        counter["n"] += 1
        user = User(
            first_name="Test",
            last_name=f"User{counter['n']}",
            username=f"user{counter['n']}",
            email=f"user{counter['n']}@example.com",
            password=hash_password(password),
            role=role,
            can_login=can_login,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_product(session):
    counter = {"n": 0}

    def _make(price="29.99", stock=10, is_active=True, title=None):
        counter["n"] += 1
        title = title or f"Product {counter['n']}"
        product = Product(
            title=title,
            slug=f"product-{counter['n']}",
            description=f"{title} description",
            sku=f"SKU-{counter['n']:04d}",
            price=Decimal(price),
            stock_quantity=stock,
            in_stock=stock > 0,
            is_active=is_active,
            images=[f"https://cdn.example.com/{counter['n']}.jpg"],
            specifications={"color": "blue"},
        )
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    return _make


@pytest.fixture
def fill_cart(session):
    """Put ``[(product, quantity), ...]`` into the user's cart at current prices."""

    def _fill(user, lines):
        cart = Cart(user_id=user.id)
        session.add(cart)
        session.commit()
        session.refresh(cart)

        for product, quantity in lines:
            session.add(CartItem(
                cart_id=cart.id,
                product_id=product.id,
                quantity=quantity,
                price=product.price,
            ))
        session.commit()
        session.refresh(cart)
        return cart

    return _fill


@pytest.fixture
def make_address(session):
    def _make(user, type="both", **overrides):
        address = Address(user_id=user.id, type=type, **{**SHIPPING_ADDRESS, **overrides})
        session.add(address)
        session.commit()
        session.refresh(address)
        return address

    return _make


@pytest.fixture
def make_order(session):
    """Insert an order directly in a given status, without touching stock."""
    counter = {"n": 0}

    def _make(user, lines, status=OrderStatus.pending, payment_status="pending"):
        counter["n"] += 1
        subtotal = sum((p.price * q for p, q in lines), Decimal("0"))
        order = Order(
            order_number=f"ORDTEST{counter['n']:04d}",
            user_id=user.id,
            status=OrderStatus(status).value,
            payment_status=payment_status,
            subtotal=subtotal,
            total=subtotal,
            shipping_address=dict(SHIPPING_ADDRESS),
            billing_address=dict(SHIPPING_ADDRESS),
        )
        session.add(order)
        session.flush()

        for product, quantity in lines:
            session.add(OrderItem(
                order_id=order.id,
                product_id=product.id,
                product_title=product.title,
                quantity=quantity,
                unit_price=product.price,
            ))

        session.commit()
        session.refresh(order)
        return order

    return _make


@pytest.fixture
def auth_headers():
    def _headers(user) -> dict:
        token = create_access_token(user.id, role=user.role)
        return {"Authorization": f"Bearer {token}"}

    return _headers
