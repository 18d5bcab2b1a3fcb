import os
import tempfile
from decimal import Decimal

# must be set before freshcart.config is imported anywhere
_DB_PATH = os.path.join(tempfile.gettempdir(), "freshcart-test.db")
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_PATH}"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ["PAYMENT_MOCK_DELAY_MS"] = "0"

import pytest
from fastapi.testclient import TestClient

from freshcart.adapters.mock_payment import MockPaymentAdapter, get_payment_adapter
from freshcart.auth import create_access_token
from freshcart.db import SessionLocal, init_db
from freshcart.main import app
from freshcart.models.category import Category
from freshcart.models.item import Item


@pytest.fixture(autouse=True)
def fresh_db():
    init_db(reset=True)
    yield


@pytest.fixture
def db():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def payments():
    adapter = MockPaymentAdapter(delay_ms=0)
    app.dependency_overrides[get_payment_adapter] = lambda: adapter
    yield adapter
    app.dependency_overrides.pop(get_payment_adapter, None)


@pytest.fixture
def client(payments):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def user_token():
    return create_access_token("user-1", role="user")


@pytest.fixture
def admin_token():
    return create_access_token("admin-1", role="admin")


@pytest.fixture
def admin_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def user_headers(user_token):
    return {"Authorization": f"Bearer {user_token}"}


@pytest.fixture
def grocery(db):
    """
    Produce > Fruit > Citrus > Lemons, Produce > Vegetables, Bakery.
    Returns a dict of name -> id for categories and items.
    """
    ids = {}

    def cat(name, parent=None):
        c = Category(name=name, parent_id=ids[parent] if parent else None)
        db.add(c)
        db.flush()
        ids[name] = c.id

    cat("Produce")
    cat("Fruit", "Produce")
    cat("Citrus", "Fruit")
    cat("Lemons", "Citrus")
    cat("Vegetables", "Produce")
    cat("Bakery")

    def item(name, price, category, stock=10):
        i = Item(name=name, price=price, stock=stock, category_id=ids[category], description=f"Fresh {name.lower()}")
        db.add(i)
        db.flush()
        ids[name] = i.id

    item("Meyer Lemon", Decimal("2.99"), "Lemons")
    item("Orange", Decimal("5.00"), "Citrus")
    item("Carrots", Decimal("1.49"), "Vegetables")
    item("Sourdough", Decimal("4.50"), "Bakery")
    db.commit()
    return ids
