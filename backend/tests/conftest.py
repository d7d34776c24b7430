import os
import tempfile

# Must be set before anything imports storefront.config
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DB_INIT_MODE"] = "create_all"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SMTP_HOST"] = ""
os.environ["LOG_FILE"] = os.path.join(tempfile.gettempdir(), "yummy-express-tests.log")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.core.database import Base, get_db
from storefront.models.product import Product
from storefront.schemas.user import RegisterRequest
from storefront.services.order_service import order_service
from storefront.services.rate_limiter import rate_limiter
from storefront.services.user_service import user_service

ADMIN_ROLE = 1
CUSTOMER_ROLE = 2
PASSWORD = "pa55word-long"


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = SessionLocal()
    user_service.ensure_roles(session)
    order_service.ensure_statuses(session)
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def make_user(db):
    def _make(email="alice@example.com", password=PASSWORD, role_id=CUSTOMER_ROLE, **profile):
        request = RegisterRequest(email=email, password=password, **profile)
        return user_service.create_user(db, request, role_id, is_activated=True)
    return _make


@pytest.fixture
def make_product(db):
    counter = {"n": 0}

    def _make(price=100, name=None, step=1.0, **references):
        counter["n"] += 1
        product = Product(
            name=name or f"Product {counter['n']}",
            price=price,
            description="",
            upc=f"UPC{counter['n']:06d}",
            quantity=10,
            step=step,
            image="",
            **references,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product
    return _make


@pytest.fixture
def client(db):
    from storefront.main import app

    def override_get_db():
        yield db

    rate_limiter.reset()
    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        rate_limiter.reset()


@pytest.fixture
def login(client):
    """Authenticate through the API and return (access, refresh)."""
    def _login(email, password=PASSWORD):
        res = client.post("/v1/auth/authenticate", json={"email": email, "password": password})
        assert res.status_code == 200, res.text
        body = res.json()
        return body["accessToken"], body["refreshToken"]
    return _login