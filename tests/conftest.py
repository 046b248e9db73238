"""
Shared fixtures: an in-memory SQLite store, a fake Redis and a small catalog.
"""
import os

#must be set before storefront modules are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import fakeredis
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.data.database import init_db
from storefront.data.models import CategoryModel, ProductModel
from storefront.domain.schemas import AddressIn
from storefront.domain.shopper import Authenticated
from storefront.services.auth_client import AuthClient
from storefront.services.cart_service import CartService
from storefront.services.catalog_service import CatalogService
from storefront.services.guest_cart_service import GuestCartService
from storefront.services.order_service import OrderService
from storefront.services.payment_gateway import PaymentGateway

GATEWAY_SECRET = "s3cr3t"
GATEWAY_KEY_ID = "rzp_test_key"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def redis_client():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def catalog_data(db):
    """Two categories, four active products and one inactive one."""
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    vegetables = CategoryModel(name="Vegetables", created_at=base)
    fruits = CategoryModel(name="Fruits", created_at=base)
    db.add_all([vegetables, fruits])
    db.flush()

    products = {
        "tomato": ProductModel(name="Tomato", price=Decimal("40.00"), unit="kg", category_id=vegetables.id,
                               is_featured=True, stock_quantity=100, created_at=base + timedelta(minutes=1)),
        "cherry": ProductModel(name="Cherry Tomatoes", price=Decimal("120.00"), unit="piece", category_id=vegetables.id,
                               stock_quantity=20, created_at=base + timedelta(minutes=2)),
        "apple": ProductModel(name="Apple", price=Decimal("150.00"), unit="kg", category_id=fruits.id,
                              is_featured=True, stock_quantity=50, created_at=base + timedelta(minutes=3)),
        "potato": ProductModel(name="Potato", price=Decimal("30.00"), unit="kg", category_id=vegetables.id,
                               stock_quantity=200, created_at=base + timedelta(minutes=4)),
        "green_tomato": ProductModel(name="Green Tomato", price=Decimal("60.00"), unit="kg",
                                     category_id=vegetables.id, is_active=False, created_at=base + timedelta(minutes=5)),
    }
    db.add_all(products.values())
    db.commit()

    ids = {name: p.id for name, p in products.items()}
    ids["vegetables"] = vegetables.id
    ids["fruits"] = fruits.id
    return ids


@pytest.fixture
def catalog(db):
    return CatalogService(db)


@pytest.fixture
def carts(db):
    return CartService(db)


@pytest.fixture
def orders(db):
    return OrderService(db)


@pytest.fixture
def guest_carts(catalog, redis_client):
    return GuestCartService(catalog, redis_client)


@pytest.fixture
def gateway():
    gw = PaymentGateway(key_id=GATEWAY_KEY_ID, key_secret=GATEWAY_SECRET, base_url="http://gateway.test/v1")
    gw._post_order = lambda payload: {"id": "order_1", "amount": payload["amount"], "currency": payload["currency"]}
    return gw


@pytest.fixture
def auth_client():
    client = MagicMock(spec=AuthClient)
    client.get_user.return_value = {"id": "user-1", "email": "asha@example.com", "user_metadata": {"full_name": "Asha"}}
    client.sign_in_with_password.return_value = {
        "access_token": "token-1",
        "refresh_token": "refresh-1",
        "user": {"id": "user-1", "email": "asha@example.com", "user_metadata": {"full_name": "Asha"}},
    }
    client.oauth_url.return_value = "http://auth.test/auth/v1/authorize?provider=google"
    return client


@pytest.fixture
def user():
    return Authenticated(id="user-1", email="asha@example.com", access_token="token-1", full_name="Asha")


@pytest.fixture
def address():
    return AddressIn(
        full_name="Asha Kumar",
        phone="98765 43210",
        address_line_1="12 Market Street",
        city="Tirunelveli",
        state="Tamil Nadu",
        postal_code="627001",
    )


def cart_line(product_id: str, price: str, quantity) -> dict:
    return {"product_id": product_id, "quantity": Decimal(str(quantity)), "products": {"price": Decimal(price)}}
