import base64
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from marketplace.config import Settings
from marketplace.db_models import Product
from marketplace.main import create_app
from marketplace.models.user import UserCreate
from marketplace.services.auth import create_access_token
from marketplace.services.user_service import user_service


TEST_KEY = base64.b64encode(bytes(range(32))).decode("ascii")


@pytest.fixture
def test_settings():
    return Settings(
        DATABASE_URL="sqlite://",
        SECRET_KEY="test-secret",
        JWT_SECRET=None,
        STOREFRONT_ENCRYPTION_KEY=TEST_KEY,
        STOREFRONT_ENCRYPTION_KEY_FILE=None,
    )


@pytest.fixture
def app(test_settings):
    return create_app(test_settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db(app):
    session = app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    def _make(email: str, name: str = None):
        return user_service.create_user(db, UserCreate(email=email, name=name))
    return _make


@pytest.fixture
def make_product(db):
    def _make(owner, name: str, price: str = "10.00", stock: int = 5):
        product = Product(user_id=owner.id, name=name, description="", price=Decimal(price), stock=stock)
        db.add(product)
        db.commit()
        db.refresh(product)
        return product
    return _make


@pytest.fixture
def auth_headers(test_settings):
    def _headers(user):
        token = create_access_token({"sub": user.id}, test_settings)
        return {"Authorization": f"Bearer {token}"}
    return _headers
