"""Shared fixtures: in-memory database, accounts, catalog and an API client"""
import os

os.environ["OTEL_ENABLED"] = "false"
os.environ["LOG_FORMAT"] = "text"
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from decimal import Decimal
from fastapi.testclient import TestClient

from marketplace.db import database
from marketplace.main import app
from marketplace.models.product import Product
from marketplace.models.user import Profile, Seller, UserRole
from marketplace.services.auth import Actor, create_access_token, hash_password

PASSWORD = "secret123"
PASSWORD_HASH = hash_password(PASSWORD)

ADDRESS = {
    "address_line1": "12 Brick Lane",
    "city": "Pune",
    "state": "Maharashtra",
    "pin_code": "411001",
}


def make_actor(db, role, phone, name="Test User", shop_name=None):
    """Create a profile (plus seller record) and return its Actor"""
    profile = Profile(role=role, phone=phone, name=name, password_hash=PASSWORD_HASH)
    db.add(profile)
    db.flush()
    seller_id = None
    if shop_name:
        seller = Seller(user_id=profile.id, shop_name=shop_name)
        db.add(seller)
        db.flush()
        seller_id = seller.id
    db.commit()
    return Actor(user_id=profile.id, role=role, seller_id=seller_id)


def make_product(db, seller_id, title="Cement 50kg", price="250.00", stock=100, min_qty=1, **kwargs):
    product = Product(
        seller_id=seller_id,
        title=title,
        category=kwargs.pop("category", "cement"),
        price=Decimal(str(price)),
        unit=kwargs.pop("unit", "bag"),
        stock=stock,
        min_qty=min_qty,
        **kwargs
    )
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


def auth_headers(actor):
    token = create_access_token({"sub": actor.user_id, "role": actor.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def db_session():
    engine = database.init_database("sqlite://")
    database.create_tables()
    session = database.SessionLocal()
    yield session
    session.close()
    database.Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def client(db_session):
    # No context manager: lifespan would re-initialise the database
    return TestClient(app)


@pytest.fixture
def customer(db_session):
    return make_actor(db_session, UserRole.CUSTOMER, "9000000001", name="Asha")


@pytest.fixture
def other_customer(db_session):
    return make_actor(db_session, UserRole.CUSTOMER, "9000000002", name="Ravi")


@pytest.fixture
def seller(db_session):
    return make_actor(db_session, UserRole.SELLER, "9000000003", name="Mehta", shop_name="Mehta Traders")


@pytest.fixture
def other_seller(db_session):
    return make_actor(db_session, UserRole.SELLER, "9000000004", name="Khan", shop_name="Khan Steel")


@pytest.fixture
def admin(db_session):
    return make_actor(db_session, UserRole.ADMIN, "9000000005", name="Ops")


@pytest.fixture
def product(db_session, seller):
    return make_product(db_session, seller.seller_id)


@pytest.fixture
def order_payload(product):
    """Two bags at 250.00: subtotal 500.00, cash on delivery"""
    return {
        "items": [{"product_id": product.id, "quantity": 2}],
        "delivery_address": ADDRESS,
        "payment_method": "cod",
    }
