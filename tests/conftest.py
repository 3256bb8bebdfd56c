"""Pytest fixtures for storefront tests."""

import base64
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from storefront.config import Settings
from storefront.database import ORDERS, PRODUCTS, USERS, DatabaseRouter
from storefront.main import create_app
from storefront.models.product import Product
from storefront.utils.identity import IdentityVerifier

IDENTITY_SECRET = "test-identity-secret"
WEBHOOK_SECRET = "whsec_" + base64.b64encode(b"test-webhook-secret").decode()


def make_token(user_id, role=None, email=None, secret=IDENTITY_SECRET, expires_in=3600):
    claims = {"sub": user_id, "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in)}
    if role:
        claims["role"] = role
    if email:
        claims["email"] = email
    return jwt.encode(claims, secret, algorithm="HS256")


@pytest.fixture
def databases():
    """Three independent in-memory stores."""
    router = DatabaseRouter({ORDERS: "sqlite://", PRODUCTS: "sqlite://", USERS: "sqlite://"})
    router.init_db()
    yield router
    router.dispose()


@pytest.fixture
def settings():
    return Settings(
        IDENTITY_JWT_SECRET=IDENTITY_SECRET,
        IDENTITY_WEBHOOK_SECRET=WEBHOOK_SECRET,
        DEBUG_ROUTES=True,
    )


@pytest.fixture
def app(settings, databases):
    verifier = IdentityVerifier(secret=IDENTITY_SECRET, algorithms=["HS256"])
    return create_app(settings=settings, databases=databases, identity=verifier)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth_headers():
    """Build Authorization headers for a given user."""
    def _headers(user_id="user_alice", role=None, email=None):
        return {"Authorization": f"Bearer {make_token(user_id, role=role, email=email)}"}
    return _headers


@pytest.fixture
def make_product(databases):
    """Insert a product and return it detached from its session."""
    def _make(name="Saree A", price=1200, stock=5, status="active", **kwargs):
        slug = kwargs.pop("slug", None) or f"{name.lower().replace(' ', '-')}-{uuid.uuid4().hex[:6]}"
        db = databases.session(PRODUCTS)
        try:
            product = Product(name=name, slug=slug, price=price, stock_quantity=stock, status=status, **kwargs)
            db.add(product)
            db.commit()
            db.refresh(product)
            db.expunge(product)
            return product
        finally:
            db.close()
    return _make


@pytest.fixture
def read_store(databases):
    """Run a query function against a fresh session of one store."""
    def _read(store, fn):
        db = databases.session(store)
        try:
            return fn(db)
        finally:
            db.close()
    return _read


@pytest.fixture
def shipping_address():
    return {
        "first_name": "Asha",
        "last_name": "Rao",
        "address_line_1": "12 MG Road",
        "city": "Bengaluru",
        "state": "Karnataka",
        "postal_code": "560001",
        "country": "India",
        "phone": "+91 9876543210",
    }
